"""Counting semaphore with FIFO waiters, and a one-consumer signal counter."""

from __future__ import annotations

from collections import deque

from tether_core.runtime._logging import get_logger
from tether_core.runtime.errors import ChannelClosedError
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['Permit', 'Semaphore', 'SignalReceiver', 'SignalSender', 'signal_semaphore']

log = get_logger(__name__)


class Permit:
    """One unit of a Semaphore. Release it to return the unit."""

    __slots__ = ('_released', '_semaphore')

    def __init__(self, semaphore: Semaphore) -> None:
        self._semaphore = semaphore
        self._released: bool = False

    def release(self) -> None:
        """Return the permit. Idempotent."""
        if self._released:
            return
        self._released = True
        self._semaphore.add_permits(1)

    def __enter__(self) -> Permit:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()

    def __repr__(self) -> str:
        return f'Permit(released={self._released})'


class Semaphore:
    """Limits how many tasks hold a permit at once.

    Permits are granted in request order; a freed permit goes to the waiter
    at the head of the queue rather than to a newcomer.
    """

    __slots__ = ('_available', '_waiters')

    def __init__(self, permits: int) -> None:
        if permits < 1:
            msg = f'Semaphore needs at least one permit, got {permits}'
            raise ValueError(msg)
        self._available: int = permits
        self._waiters: deque[WakeSlot] = deque()

    @property
    def available(self) -> int:
        return self._available

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def try_acquire(self) -> Permit | None:
        """Take a permit if one is free and nobody is queued."""
        if self._available == 0 or self._waiters:
            return None
        self._available -= 1
        return Permit(self)

    async def acquire(self) -> Permit:
        """Take a permit, suspending behind earlier callers if none is free."""
        permit = self.try_acquire()
        if permit is not None:
            return permit

        slot = WakeSlot()
        self._waiters.append(slot)
        try:
            await slot.park()
        except BaseException:
            if slot.is_woken:
                log.debug('semaphore waiter cancelled after hand-off')
                self.add_permits(1)
            else:
                self._waiters.remove(slot)
            raise
        return Permit(self)

    def add_permits(self, n: int) -> None:
        """Add `n` permits, handing them to waiters first.

        Raises:
            ValueError: If n is negative.
        """
        if n < 0:
            msg = f'Cannot add a negative number of permits, got {n}'
            raise ValueError(msg)
        while n and self._waiters:
            self._waiters.popleft().wake()
            n -= 1
        self._available += n

    def __repr__(self) -> str:
        return f'Semaphore(available={self._available}, waiters={len(self._waiters)})'


class _SignalState:
    __slots__ = ('count', 'rx_closed', 'rx_slot', 'tx_count')

    def __init__(self, initial: int) -> None:
        self.count: int = initial
        self.rx_slot: WakeSlot = WakeSlot()
        self.tx_count: int = 1
        self.rx_closed: bool = False


class SignalSender:
    """Producing side of a signal semaphore. Clone it to add producers."""

    def __init__(self, state: _SignalState) -> None:
        self._state = state
        self._closed: bool = False

    def signal_one(self) -> None:
        """Add one signal and wake the consumer.

        Raises:
            ChannelClosedError: If this sender or the receiver was closed.
        """
        if self._closed:
            raise ChannelClosedError('sender closed')
        state = self._state
        if state.rx_closed:
            raise ChannelClosedError('receiver closed')
        state.count += 1
        state.rx_slot.wake()

    def clone(self) -> SignalSender:
        if self._closed:
            raise ChannelClosedError('sender closed')
        self._state.tx_count += 1
        return SignalSender(self._state)

    def close(self) -> None:
        """Close this sender. Idempotent."""
        if self._closed:
            return
        self._closed = True
        state = self._state
        state.tx_count -= 1
        if state.tx_count == 0:
            state.rx_slot.wake()

    def __enter__(self) -> SignalSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class SignalReceiver:
    """Consuming side of a signal semaphore. There is exactly one."""

    def __init__(self, state: _SignalState) -> None:
        self._state = state

    @property
    def pending(self) -> int:
        return self._state.count

    async def acquire_one(self) -> bool:
        """Consume one signal, suspending until one arrives.

        Returns:
            True if a signal was consumed. False once every sender is closed;
            signals still pending at that point are left for `drain()`.
        """
        state = self._state
        while True:
            if state.tx_count == 0 or state.rx_closed:
                return False
            if state.count:
                state.count -= 1
                return True
            await state.rx_slot.park()

    def drain(self) -> int:
        """Take every pending signal at once and return how many there were."""
        count = self._state.count
        self._state.count = 0
        return count

    def close(self) -> None:
        """Close the receiver. Idempotent; later signals fail."""
        state = self._state
        if state.rx_closed:
            return
        state.rx_closed = True
        state.rx_slot.wake()

    def __enter__(self) -> SignalReceiver:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def signal_semaphore(initial: int = 0) -> tuple[SignalSender, SignalReceiver]:
    """Create a signal counter fed by many producers and drained by one consumer.

    Raises:
        ValueError: If initial is negative.

    Example:
        ```python
        tx, rx = signal_semaphore()
        tx.signal_one()
        assert await rx.acquire_one()
        ```
    """
    if initial < 0:
        msg = f'Initial signal count must be >= 0, got {initial}'
        raise ValueError(msg)
    state = _SignalState(initial)
    return SignalSender(state), SignalReceiver(state)
