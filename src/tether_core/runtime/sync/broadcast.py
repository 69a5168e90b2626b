"""Broadcast channel implementation: multi-producer, multi-consumer fan-out.

Every message gets the next sequence number and lands in a ring holding the
last `capacity` messages. Each receiver owns a cursor (the next sequence
number it expects) and a WakeSlot. A cursor that points before the oldest
retained message has lagged: the receiver is told how many messages it lost
and jumps to the oldest one still available.
"""

from __future__ import annotations

from datetime import UTC, datetime

from tether_core.result import Err, Ok, Result
from tether_core.runtime._logging import get_logger
from tether_core.runtime.errors import (
    ChannelClosed,
    ChannelClosedError,
    ChannelEmpty,
    EndOfStream,
    EndOfStreamError,
    Lagged,
    LaggedError,
)
from tether_core.runtime.sync.stats import ChannelStats
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['BroadcastReceiver', 'BroadcastSender', 'create_broadcast']

log = get_logger(__name__)


class _BroadcastState[T]:
    """Shared ring buffer and bookkeeping for one broadcast channel."""

    __slots__ = (
        'capacity',
        'created_at',
        'high_watermark',
        'ring',
        'rx_slots',
        'tail',
        'total_received',
        'tx_count',
    )

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            msg = f'Broadcast channel capacity must be at least 1, got {capacity}'
            raise ValueError(msg)

        self.capacity: int = capacity
        self.ring: list[T | None] = [None] * capacity
        self.tail: int = 0
        self.tx_count: int = 1
        self.rx_slots: set[WakeSlot] = set()
        self.created_at: datetime = datetime.now(UTC)
        self.high_watermark: int = 0
        self.total_received: int = 0

    def oldest(self) -> int:
        """Sequence number of the oldest message still in the ring."""
        return max(0, self.tail - self.capacity)

    def retained(self) -> int:
        return self.tail - self.oldest()

    def stats(self) -> ChannelStats:
        return ChannelStats(
            sender_count=self.tx_count,
            receiver_count=len(self.rx_slots),
            queue_size=self.retained(),
            capacity=self.capacity,
            senders_closed=self.tx_count == 0,
            receivers_closed=not self.rx_slots,
            created_at=self.created_at,
            high_watermark=self.high_watermark,
            total_sent=self.tail,
            total_received=self.total_received,
        )


class BroadcastSender[T]:
    """Broadcast channel sender - every live receiver sees every message.

    Sending never suspends: when the ring is full the oldest message is
    overwritten. Supports cloning; use subscribe() to add receivers.
    """

    def __init__(self, state: _BroadcastState[T]) -> None:
        self._state = state
        self._closed: bool = False

    def send(self, value: T) -> int:
        """Broadcast a value to all receivers.

        Returns:
            Number of live receivers at the time of sending.

        Raises:
            ChannelClosedError: If no receiver is live or this sender was closed.
        """
        result = self.try_send(value)
        if isinstance(result, Err):
            raise result.error.to_exception()
        return result.value

    def try_send(self, value: T) -> Result[int, ChannelClosed]:
        """Broadcast a value without raising.

        Returns:
            Ok(receiver_count) if sent.
            Err(ChannelClosed) if no receiver is live or this sender was closed.
        """
        state = self._state
        if self._closed:
            return Err(ChannelClosed('sender closed'))
        if not state.rx_slots:
            return Err(ChannelClosed('no receivers'))

        state.ring[state.tail % state.capacity] = value
        state.tail += 1
        state.high_watermark = max(state.high_watermark, state.retained())

        for slot in state.rx_slots:
            slot.wake()
        return Ok(len(state.rx_slots))

    def clone(self) -> BroadcastSender[T]:
        """Create another sender for the same channel.

        Raises:
            ChannelClosedError: If this sender was already closed.
        """
        if self._closed:
            raise ChannelClosedError('sender closed')
        self._state.tx_count += 1
        return BroadcastSender(self._state)

    def close(self) -> None:
        """Close this sender. Idempotent.

        When every sender is closed, receivers drain what is retained and then
        see end-of-stream.
        """
        if self._closed:
            return
        self._closed = True
        state = self._state
        state.tx_count -= 1
        if state.tx_count == 0:
            log.debug('broadcast all senders closed', receivers=len(state.rx_slots))
            for slot in state.rx_slots:
                slot.wake()

    def subscribe(self) -> BroadcastReceiver[T]:
        """Create a receiver that sees only messages sent after this call."""
        return BroadcastReceiver(self._state, self._state.tail)

    def receiver_count(self) -> int:
        return len(self._state.rx_slots)

    def stats(self) -> ChannelStats:
        return self._state.stats()

    def __enter__(self) -> BroadcastSender[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class BroadcastReceiver[T]:
    """Broadcast channel receiver with its own cursor.

    Receivers are independent: closing or lagging one never affects another.
    Does not support clone(); use resubscribe() instead.
    """

    def __init__(self, state: _BroadcastState[T], next_seq: int) -> None:
        self._state = state
        self._next: int = next_seq
        self._slot: WakeSlot = WakeSlot()
        self._closed: bool = False
        state.rx_slots.add(self._slot)

    @property
    def cursor(self) -> int:
        """Sequence number of the next message this receiver expects."""
        return self._next

    async def recv(self) -> T:
        """Receive the next broadcast message.

        Returns:
            The message at this receiver's cursor.

        Raises:
            LaggedError: If messages were overwritten before this receiver read
                them. The cursor has been moved to the oldest retained message.
            EndOfStreamError: If every sender is closed and nothing is left.
            ChannelClosedError: If this receiver was closed.
        """
        while True:
            match self.try_recv():
                case Ok(value):
                    return value
                case Err(ChannelEmpty()):
                    await self._slot.park()
                case Err(error):
                    raise error.to_exception()

    def try_recv(self) -> Result[T, ChannelEmpty | Lagged | EndOfStream | ChannelClosed]:
        """Receive without suspending.

        Returns:
            Ok(value) if a message is available at the cursor.
            Err(Lagged(n)) if n messages were lost; the cursor is advanced.
            Err(ChannelEmpty) if the cursor is at the newest message.
            Err(EndOfStream) if all senders closed and nothing is left.
            Err(ChannelClosed) if this receiver was closed.
        """
        if self._closed:
            return Err(ChannelClosed('receiver closed'))

        state = self._state
        oldest = state.oldest()
        if self._next < oldest:
            skipped = oldest - self._next
            self._next = oldest
            log.debug('broadcast receiver lagged', skipped=skipped)
            return Err(Lagged(skipped))

        if self._next < state.tail:
            value = state.ring[self._next % state.capacity]
            self._next += 1
            state.total_received += 1
            return Ok(value)  # type: ignore[arg-type]

        if state.tx_count == 0:
            return Err(EndOfStream())
        return Err(ChannelEmpty())

    def resubscribe(self) -> BroadcastReceiver[T]:
        """Create a new receiver starting at the current tail."""
        return BroadcastReceiver(self._state, self._state.tail)

    def close(self) -> None:
        """Close this receiver. Idempotent; other receivers are unaffected.

        A task parked in `recv()` on this receiver resumes with ChannelClosedError.
        """
        if self._closed:
            return
        self._closed = True
        self._slot.wake()
        self._state.rx_slots.discard(self._slot)

    def __enter__(self) -> BroadcastReceiver[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __aiter__(self) -> BroadcastReceiver[T]:
        """Iterate until end-of-stream, skipping lag reports."""
        return self

    async def __anext__(self) -> T:
        while True:
            try:
                return await self.recv()
            except LaggedError:
                continue
            except EndOfStreamError:
                raise StopAsyncIteration from None


def create_broadcast[T](capacity: int) -> tuple[BroadcastSender[T], BroadcastReceiver[T]]:
    """Create a broadcast sender/receiver pair."""
    state: _BroadcastState[T] = _BroadcastState(capacity)
    return BroadcastSender(state), BroadcastReceiver(state, state.tail)
