"""LocalMutex: FIFO-fair mutual exclusion for tasks on one event loop.

Release hands ownership straight to the head of the waiter queue, so the mutex
never becomes free while someone is waiting and a newcomer cannot barge in.

The mutex has no notion of an owner. Acquiring it again from the task that
already holds the guard deadlocks that task; this is not detected.
"""

from __future__ import annotations

from collections import deque
from typing import Any

import anyio

from tether_core.runtime._logging import get_logger
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['LocalMutex', 'MutexGuard']

log = get_logger(__name__)


class MutexGuard[T]:
    """Proof of ownership. Releasing it passes the mutex on.

    Use it as a context manager so the release happens on every exit path:

        ```python
        with await mutex.acquire() as guard:
            guard.value += 1
        ```
    """

    __slots__ = ('_mutex', '_released')

    def __init__(self, mutex: LocalMutex[T]) -> None:
        self._mutex = mutex
        self._released: bool = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def value(self) -> T:
        """The value protected by the mutex."""
        self._check()
        return self._mutex._value

    @value.setter
    def value(self, new_value: T) -> None:
        self._check()
        self._mutex._value = new_value

    def _check(self) -> None:
        if self._released:
            msg = 'MutexGuard used after release'
            raise RuntimeError(msg)

    def release(self) -> None:
        """Release ownership. Idempotent."""
        if self._released:
            return
        self._released = True
        self._mutex._release()

    def __enter__(self) -> MutexGuard[T]:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()


class LocalMutex[T]:
    """Mutual exclusion with FIFO hand-off, optionally guarding a value.

    Example:
        ```python
        counter = LocalMutex(0)

        async def bump():
            async with counter as guard:
                guard.value += 1
        ```
    """

    __slots__ = ('_entered', '_locked', '_value', '_waiters')

    def __init__(self, value: T = None) -> None:  # type: ignore[assignment]
        self._value: T = value
        self._locked: bool = False
        self._waiters: deque[WakeSlot] = deque()
        # guards taken by `async with`, keyed by the entering task
        self._entered: dict[int, MutexGuard[T]] = {}

    def locked(self) -> bool:
        return self._locked

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def try_acquire(self) -> MutexGuard[T] | None:
        """Take the mutex if it is free and nobody is queued."""
        if self._locked or self._waiters:
            return None
        self._locked = True
        return MutexGuard(self)

    async def acquire(self) -> MutexGuard[T]:
        """Acquire the mutex, suspending behind earlier callers.

        Returns:
            A guard; release it (or leave its `with` block) to pass the mutex on.
        """
        guard = self.try_acquire()
        if guard is not None:
            return guard

        slot = WakeSlot()
        self._waiters.append(slot)
        try:
            await slot.park()
        except BaseException:
            if slot.is_woken:
                # ownership was handed over but will never be used
                log.debug('mutex waiter cancelled after hand-off')
                self._release()
            else:
                self._waiters.remove(slot)
            raise
        return MutexGuard(self)

    def _release(self) -> None:
        if self._waiters:
            self._waiters.popleft().wake()
        else:
            self._locked = False

    async def __aenter__(self) -> MutexGuard[T]:
        guard = await self.acquire()
        self._entered[anyio.get_current_task().id] = guard
        return guard

    async def __aexit__(self, *exc_info: Any) -> None:
        self._entered.pop(anyio.get_current_task().id).release()

    def __repr__(self) -> str:
        state = 'locked' if self._locked else 'unlocked'
        return f'LocalMutex({state}, waiters={len(self._waiters)})'
