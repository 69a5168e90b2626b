"""WakeSlot: the single-waiter cell every primitive is built from.

A slot holds at most one parked task. Producers mutate the primitive's state
and then call `wake()`; the parked consumer resumes, re-examines the state and
either proceeds or parks again. Because only one task body runs at a time,
check-then-register is never interrupted, and the pending flag covers the one
remaining gap: a wake that arrives while nobody is registered.

The host environment is reached through two functions only:
`suspend_current` parks the calling task on a waiter and `schedule_resume`
makes it runnable again. Waiters are `anyio.Event` objects, created fresh for
every suspension and compared by identity.
"""

from __future__ import annotations

from enum import Enum

import anyio

__all__ = ['WakeSlot', 'WakeState', 'new_waiter', 'schedule_resume', 'suspend_current']


def new_waiter() -> anyio.Event:
    """Create a continuation handle for one suspension."""
    return anyio.Event()


async def suspend_current(waiter: anyio.Event) -> None:
    """Park the calling task until `waiter` is resumed."""
    await waiter.wait()


def schedule_resume(waiter: anyio.Event) -> None:
    """Make the task parked on `waiter` runnable. Never suspends."""
    waiter.set()


class WakeState(Enum):
    EMPTY = 'empty'
    REGISTERED = 'registered'
    WOKEN = 'woken'


class WakeSlot:
    """Holds at most one pending continuation.

    Registering while a waiter is already stored replaces it: the previous
    waiter is superseded (treated as cancelled) and never resumed.
    """

    __slots__ = ('_state', '_waiter')

    def __init__(self) -> None:
        self._state: WakeState = WakeState.EMPTY
        self._waiter: anyio.Event | None = None

    @property
    def state(self) -> WakeState:
        return self._state

    @property
    def is_registered(self) -> bool:
        return self._state is WakeState.REGISTERED

    @property
    def is_woken(self) -> bool:
        return self._state is WakeState.WOKEN

    def register(self, waiter: anyio.Event) -> bool:
        """Store `waiter` as the continuation to resume on the next wake.

        Returns:
            False if a wake was already pending. The pending flag is consumed
            and the caller must not suspend. True if the caller should park.
        """
        if self._state is WakeState.WOKEN:
            self._state = WakeState.EMPTY
            return False
        self._waiter = waiter
        self._state = WakeState.REGISTERED
        return True

    def wake(self) -> bool:
        """Resume the stored waiter, or remember the wake if there is none.

        Returns:
            True if a registered waiter was scheduled.
        """
        waiter = self._waiter
        self._waiter = None
        self._state = WakeState.WOKEN
        if waiter is None:
            return False
        schedule_resume(waiter)
        return True

    def take_pending(self) -> bool:
        """Clear and return the pending-wake flag."""
        if self._state is WakeState.WOKEN:
            self._state = WakeState.EMPTY
            return True
        return False

    def clear(self, waiter: anyio.Event | None = None) -> None:
        """Drop the registration without resuming it.

        Args:
            waiter: Only clear if this is the stored waiter. A newer
                registration that superseded it is left alone.
        """
        if self._state is not WakeState.REGISTERED:
            return
        if waiter is not None and self._waiter is not waiter:
            return
        self._waiter = None
        self._state = WakeState.EMPTY

    async def park(self) -> None:
        """Suspend until woken.

        Returns immediately if a wake is already pending. The registration is
        removed on every exit path, so a cancelled task never leaves a stale
        waiter behind. When cancellation arrives after the wake, the slot is
        left WOKEN so the owner can tell that the wake was delivered.
        """
        waiter = new_waiter()
        if not self.register(waiter):
            return
        try:
            await suspend_current(waiter)
        finally:
            self.clear(waiter)
        self.take_pending()

    def __repr__(self) -> str:
        return f'WakeSlot({self._state.value})'
