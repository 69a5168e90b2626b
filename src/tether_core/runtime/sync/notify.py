"""Notify: zero-payload signal with one or many waiters.

Waiters are served in FIFO order: `notify_one` always wakes the task that has
been waiting longest. Signals sent while nobody waits are kept as permits
according to the configured PermitPolicy.
"""

from __future__ import annotations

from collections import deque

from tether_core.runtime._config import PermitPolicy, get_config
from tether_core.runtime._logging import get_logger
from tether_core.runtime.sync.waker import WakeSlot

__all__ = ['Notify']

log = get_logger(__name__)


class _Waiter:
    __slots__ = ('single', 'slot')

    def __init__(self) -> None:
        self.slot: WakeSlot = WakeSlot()
        # True when woken by notify_one, whose signal must not be lost
        self.single: bool = False


class Notify:
    """Multi-waiter notification without payload.

    Example:
        ```python
        notify = Notify()

        async def worker():
            await notify.wait()
            print('signalled')

        # elsewhere
        notify.notify_one()
        ```
    """

    __slots__ = ('_permits', '_policy', '_waiters')

    def __init__(self, permits: PermitPolicy | None = None) -> None:
        """Create a Notify.

        Args:
            permits: Retention policy for signals nobody was waiting for.
                Defaults to the runtime config (SINGLE unless changed by init()).
        """
        self._policy: PermitPolicy = permits if permits is not None else get_config().notify_permits
        self._permits: int = 0
        self._waiters: deque[_Waiter] = deque()

    @property
    def policy(self) -> PermitPolicy:
        return self._policy

    @property
    def permits(self) -> int:
        """Number of stored signals the next waiters will consume."""
        return self._permits

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    def notify_one(self) -> None:
        """Wake the longest-waiting task, or store a permit if none waits."""
        if self._waiters:
            waiter = self._waiters.popleft()
            waiter.single = True
            waiter.slot.wake()
            return
        self._store_permit(accumulate=True)

    def notify_all(self) -> None:
        """Wake every task waiting right now.

        Tasks that start waiting afterwards are unaffected, except through a
        permit stored when there was no waiter at all.
        """
        if not self._waiters:
            self._store_permit(accumulate=False)
            return
        waiters = self._waiters
        self._waiters = deque()
        for waiter in waiters:
            waiter.slot.wake()

    def _store_permit(self, *, accumulate: bool) -> None:
        match self._policy:
            case PermitPolicy.NONE:
                return
            case PermitPolicy.SINGLE:
                self._permits = 1
            case PermitPolicy.COUNTING:
                if accumulate or self._permits == 0:
                    self._permits += 1

    async def wait(self) -> None:
        """Wait for a notification.

        Returns without suspending if a permit is stored.
        """
        if self._permits:
            self._permits -= 1
            return

        waiter = _Waiter()
        self._waiters.append(waiter)
        try:
            await waiter.slot.park()
        except BaseException:
            if waiter.slot.is_woken:
                if waiter.single:
                    log.debug('notify waiter cancelled after wake, forwarding')
                    self.notify_one()
            else:
                self._waiters.remove(waiter)
            raise
