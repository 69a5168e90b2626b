"""tether-core: synchronization primitives for single-threaded async code.

Flat imports (preferred):
    from tether_core import oneshot, channel, broadcast, Notify, LocalMutex
    from tether_core import Ok, Err, Result

Submodule imports (for organization):
    from tether_core.runtime.sync import WakeSlot, Semaphore
    from tether_core.runtime.errors import LaggedError
"""

from tether_core.result import Err, Ok, Result, collect
from tether_core.runtime import (
    LocalMutex,
    Notify,
    PermitPolicy,
    Semaphore,
    broadcast,
    channel,
    duplex_pipe,
    init,
    oneshot,
    pipe,
    signal_semaphore,
)

__all__ = [
    'Err',
    'LocalMutex',
    'Notify',
    'Ok',
    'PermitPolicy',
    'Result',
    'Semaphore',
    'broadcast',
    'channel',
    'collect',
    'duplex_pipe',
    'init',
    'oneshot',
    'pipe',
    'signal_semaphore',
]
