"""Multi-producer single-consumer channel: bounded, rendezvous or unbounded.

Values are delivered in send order. Producers that find the buffer full park
in a FIFO queue; every freed slot wakes the producer that has waited longest,
and a newly arriving producer never overtakes one that is already queued.

Capacity 0 is a rendezvous: a send only completes while the receiver is
parked in `recv()`. Capacity None removes the bound entirely.
"""

from __future__ import annotations

from collections import deque
from datetime import UTC, datetime

from tether_core.result import Err, Ok, Result
from tether_core.runtime._logging import get_logger
from tether_core.runtime.errors import (
    ChannelClosed,
    ChannelClosedError,
    ChannelEmpty,
    ChannelFull,
    EndOfStream,
    EndOfStreamError,
)
from tether_core.runtime.sync.stats import ChannelStats
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['MpscReceiver', 'MpscSender', 'create_mpsc']

log = get_logger(__name__)


class _MpscState[T]:
    """Shared mutable state for the senders and the receiver of one channel."""

    __slots__ = (
        'buffer',
        'capacity',
        'close_waiters',
        'created_at',
        'high_watermark',
        'rx_closed',
        'rx_slot',
        'total_received',
        'total_sent',
        'tx_count',
        'tx_waiters',
    )

    def __init__(self, capacity: int | None) -> None:
        if capacity is not None and capacity < 0:
            msg = f'Channel capacity must be >= 0 or None, got {capacity}'
            raise ValueError(msg)

        self.capacity: int | None = capacity
        self.buffer: deque[T] = deque()
        self.rx_slot: WakeSlot = WakeSlot()
        self.tx_waiters: deque[WakeSlot] = deque()
        self.close_waiters: list[WakeSlot] = []
        self.tx_count: int = 1
        self.rx_closed: bool = False
        self.created_at: datetime = datetime.now(UTC)
        self.high_watermark: int = 0
        self.total_sent: int = 0
        self.total_received: int = 0

    def has_room(self) -> bool:
        if self.capacity is None:
            return True
        if self.capacity == 0:
            return not self.buffer and self.rx_slot.is_registered
        return len(self.buffer) < self.capacity

    def push(self, value: T) -> None:
        self.buffer.append(value)
        self.total_sent += 1
        self.high_watermark = max(self.high_watermark, len(self.buffer))
        self.rx_slot.wake()

    def wake_next_sender(self) -> None:
        if self.tx_waiters and self.has_room():
            self.tx_waiters[0].wake()

    def stats(self) -> ChannelStats:
        return ChannelStats(
            sender_count=self.tx_count,
            receiver_count=0 if self.rx_closed else 1,
            queue_size=len(self.buffer),
            capacity=self.capacity,
            senders_closed=self.tx_count == 0,
            receivers_closed=self.rx_closed,
            created_at=self.created_at,
            high_watermark=self.high_watermark,
            total_sent=self.total_sent,
            total_received=self.total_received,
            blocked_senders=len(self.tx_waiters),
        )


class MpscSender[T]:
    """Sending half of an MPSC channel.

    Clone it to add producers. The receiver sees end-of-stream once every
    clone has been closed and the buffer is drained.
    """

    def __init__(self, state: _MpscState[T]) -> None:
        self._state = state
        self._closed: bool = False

    async def send(self, value: T) -> None:
        """Send a value, suspending while the channel is at capacity.

        Args:
            value: The value to send.

        Raises:
            ChannelClosedError: If the receiver was closed, or this sender was.

        Example:
            ```python
            tx, rx = channel(capacity=2)
            await tx.send(1)
            ```
        """
        if self._closed:
            raise ChannelClosedError('sender closed')

        state = self._state
        slot: WakeSlot | None = None
        try:
            while True:
                if state.rx_closed:
                    raise ChannelClosed('receiver closed').to_exception()
                if state.has_room() and (not state.tx_waiters or state.tx_waiters[0] is slot):
                    if slot is not None:
                        state.tx_waiters.popleft()
                        slot = None
                    state.push(value)
                    state.wake_next_sender()
                    return
                if slot is None:
                    slot = WakeSlot()
                    state.tx_waiters.append(slot)
                await slot.park()
        finally:
            if slot is not None:
                state.tx_waiters.remove(slot)
                if slot.is_woken:
                    # woken for a free slot but leaving without using it
                    state.wake_next_sender()

    def try_send(self, value: T) -> Result[None, ChannelFull | ChannelClosed]:
        """Send a value without suspending.

        Returns:
            Ok(None) if queued.
            Err(ChannelFull) if at capacity or producers are already queued.
            Err(ChannelClosed) if the receiver or this sender was closed.
        """
        state = self._state
        if self._closed:
            return Err(ChannelClosed('sender closed'))
        if state.rx_closed:
            return Err(ChannelClosed('receiver closed'))
        if not state.has_room() or state.tx_waiters:
            return Err(ChannelFull(state.capacity or 0))
        state.push(value)
        return Ok(None)

    def clone(self) -> MpscSender[T]:
        """Create another sender for the same channel.

        Raises:
            ChannelClosedError: If this sender was already closed.
        """
        if self._closed:
            raise ChannelClosedError('sender closed')
        self._state.tx_count += 1
        return MpscSender(self._state)

    def close(self) -> None:
        """Close this sender. Idempotent.

        When the last sender closes, the receiver drains the buffer and then
        sees end-of-stream.
        """
        if self._closed:
            return
        self._closed = True
        state = self._state
        state.tx_count -= 1
        if state.tx_count == 0:
            log.debug('mpsc all senders closed', buffered=len(state.buffer))
            state.rx_slot.wake()

    async def closed(self) -> None:
        """Wait until the receiver has been closed."""
        state = self._state
        while not state.rx_closed:
            slot = WakeSlot()
            state.close_waiters.append(slot)
            try:
                await slot.park()
            finally:
                if slot in state.close_waiters:
                    state.close_waiters.remove(slot)

    def is_closed(self) -> bool:
        """Return True if the receiver has been closed."""
        return self._state.rx_closed

    def stats(self) -> ChannelStats:
        return self._state.stats()

    def __enter__(self) -> MpscSender[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class MpscReceiver[T]:
    """Receiving half of an MPSC channel. There is exactly one per channel."""

    def __init__(self, state: _MpscState[T]) -> None:
        self._state = state

    async def recv(self) -> T:
        """Receive the oldest value, suspending while the channel is empty.

        Returns:
            The next value in send order.

        Raises:
            EndOfStreamError: If every sender is closed and the buffer is drained.
        """
        state = self._state
        while True:
            match self.try_recv():
                case Ok(value):
                    return value
                case Err(ChannelEmpty()):
                    if state.capacity == 0 and state.tx_waiters:
                        # the head producer resumes once we are parked below
                        state.tx_waiters[0].wake()
                    await state.rx_slot.park()
                case Err(error):
                    raise error.to_exception()

    def try_recv(self) -> Result[T, ChannelEmpty | EndOfStream]:
        """Receive without suspending.

        Returns:
            Ok(value) if a value is buffered.
            Err(ChannelEmpty) if nothing is buffered yet.
            Err(EndOfStream) if nothing is buffered and nothing more can arrive.
        """
        state = self._state
        if state.buffer:
            value = state.buffer.popleft()
            state.total_received += 1
            state.wake_next_sender()
            return Ok(value)
        if state.tx_count == 0 or state.rx_closed:
            return Err(EndOfStream())
        return Err(ChannelEmpty())

    def close(self) -> None:
        """Close the receiver. Idempotent.

        Senders fail with ChannelClosed from now on, including those parked on
        a full buffer. Values already buffered can still be drained. A task
        parked in `recv()` resumes and sees end-of-stream.
        """
        state = self._state
        if state.rx_closed:
            return
        state.rx_closed = True
        state.rx_slot.wake()
        log.debug('mpsc receiver closed', blocked_senders=len(state.tx_waiters))
        for slot in state.tx_waiters:
            slot.wake()
        close_waiters = state.close_waiters
        state.close_waiters = []
        for slot in close_waiters:
            slot.wake()

    def is_closed(self) -> bool:
        """Return True if every sender has been closed."""
        return self._state.tx_count == 0

    def stats(self) -> ChannelStats:
        return self._state.stats()

    def __len__(self) -> int:
        return len(self._state.buffer)

    def __enter__(self) -> MpscReceiver[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __aiter__(self) -> MpscReceiver[T]:
        """Iterate until end-of-stream."""
        return self

    async def __anext__(self) -> T:
        try:
            return await self.recv()
        except EndOfStreamError:
            raise StopAsyncIteration from None


def create_mpsc[T](capacity: int | None) -> tuple[MpscSender[T], MpscReceiver[T]]:
    """Create an MPSC sender/receiver pair."""
    state: _MpscState[T] = _MpscState(capacity)
    return MpscSender(state), MpscReceiver(state)
