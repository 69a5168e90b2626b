"""Oneshot channel implementation: single-value, single-use."""

from __future__ import annotations

from tether_core.result import Err, Ok, Result
from tether_core.runtime._logging import get_logger
from tether_core.runtime.errors import (
    AlreadySent,
    AlreadyTaken,
    ChannelClosed,
    ChannelClosedError,
    ChannelEmpty,
    SenderGone,
)
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['OneshotReceiver', 'OneshotSender', 'create_oneshot']

log = get_logger(__name__)


class _OneshotState[T]:
    """Shared mutable state for a oneshot sender/receiver pair."""

    __slots__ = ('has_receiver', 'has_sender', 'rx_slot', 'sent', 'taken', 'value')

    def __init__(self) -> None:
        self.rx_slot: WakeSlot = WakeSlot()
        self.value: T | None = None
        self.sent: bool = False
        self.taken: bool = False
        self.has_sender: bool = True
        self.has_receiver: bool = True


class OneshotSender[T]:
    """Oneshot channel sender - single value, single use.

    Sending never suspends. Closing the sender without sending tells the
    receiver the value will never arrive. Does not support cloning.
    """

    def __init__(self, state: _OneshotState[T]) -> None:
        self._state = state

    def send(self, value: T) -> None:
        """Send the value and wake the receiver.

        Raises:
            AlreadySentError: If a value was already sent, the sender was closed
                or the receiver was closed.
        """
        result = self.try_send(value)
        if isinstance(result, Err):
            raise result.error.to_exception()

    def try_send(self, value: T) -> Result[None, AlreadySent]:
        """Try to send the value without raising.

        Returns:
            Ok(None) if sent.
            Err(AlreadySent) if already sent, this sender was closed, or the
                receiver was closed.
        """
        state = self._state
        if state.sent or not state.has_sender or not state.has_receiver:
            return Err(AlreadySent())

        state.value = value
        state.sent = True
        state.rx_slot.wake()
        return Ok(None)

    def is_closed(self) -> bool:
        """Return True if the receiver has been closed."""
        return not self._state.has_receiver

    def close(self) -> None:
        """Drop the sender. Idempotent; a no-op after a successful send."""
        state = self._state
        if not state.has_sender:
            return
        state.has_sender = False
        if not state.sent:
            log.debug('oneshot sender closed without value')
        state.rx_slot.wake()

    def clone(self) -> OneshotSender[T]:
        """Oneshot channels do not support cloning.

        Raises:
            NotImplementedError: Always.
        """
        raise NotImplementedError('Oneshot channels do not support cloning')

    def __enter__(self) -> OneshotSender[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class OneshotReceiver[T]:
    """Oneshot channel receiver - takes the value exactly once.

    After one successful receive the channel is terminal and further receives
    fail with AlreadyTaken. Does not support cloning.
    """

    def __init__(self, state: _OneshotState[T]) -> None:
        self._state = state

    async def recv(self) -> T:
        """Receive the value, suspending until it is sent.

        Returns:
            The sent value.

        Raises:
            AlreadyTakenError: If the value was already received.
            SenderGoneError: If the sender was closed without sending.
            ChannelClosedError: If this receiver was closed.
        """
        while True:
            match self.try_recv():
                case Ok(value):
                    return value
                case Err(ChannelEmpty()):
                    await self._state.rx_slot.park()
                case Err(error):
                    raise error.to_exception()

    def try_recv(self) -> Result[T, ChannelEmpty | SenderGone | AlreadyTaken | ChannelClosed]:
        """Try to receive without suspending.

        Returns:
            Ok(value) if the value is available.
            Err(ChannelEmpty) if nothing was sent yet.
            Err(SenderGone) if the sender was closed without sending.
            Err(AlreadyTaken) if the value was already received.
            Err(ChannelClosed) if this receiver was closed.
        """
        state = self._state
        if not state.has_receiver:
            return Err(ChannelClosed('receiver closed'))
        if state.taken:
            return Err(AlreadyTaken())
        if state.sent:
            value = state.value
            state.value = None
            state.taken = True
            return Ok(value)  # type: ignore[arg-type]
        if not state.has_sender:
            return Err(SenderGone())
        return Err(ChannelEmpty())

    def close(self) -> None:
        """Drop the receiver. A pending unreceived value is discarded.

        A task parked in `recv()` resumes with ChannelClosedError.
        """
        state = self._state
        if not state.has_receiver:
            return
        state.has_receiver = False
        state.value = None
        state.rx_slot.wake()

    def clone(self) -> OneshotReceiver[T]:
        """Oneshot channels do not support cloning.

        Raises:
            NotImplementedError: Always.
        """
        raise NotImplementedError('Oneshot channels do not support cloning')

    def __enter__(self) -> OneshotReceiver[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __aiter__(self) -> OneshotReceiver[T]:
        """Start async iteration (yields at most one value)."""
        return self

    async def __anext__(self) -> T:
        """Yield the single value, then stop.

        Raises:
            StopAsyncIteration: After the value, or if the sender went away.
        """
        try:
            return await self.recv()
        except ChannelClosedError:
            raise StopAsyncIteration from None


def create_oneshot[T]() -> tuple[OneshotSender[T], OneshotReceiver[T]]:
    """Create a oneshot sender/receiver pair."""
    state: _OneshotState[T] = _OneshotState()
    return OneshotSender(state), OneshotReceiver(state)
