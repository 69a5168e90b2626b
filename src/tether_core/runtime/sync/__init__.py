"""Synchronization primitives: oneshot, notify, mpsc, broadcast, mutex, semaphores, pipes.

All primitives assume a single-threaded cooperative scheduler (any event loop
anyio supports). Between two suspension points a task runs uninterrupted, so
shared state is mutated without locks. Every primitive follows the same
discipline: mutate state, then wake; a woken task re-checks state and either
proceeds or parks again.

Non-blocking calls (`try_send`, `try_recv`) return `Result` values; blocking
calls raise the matching exception from `tether_core.runtime.errors`.

## Cancellation & Timeouts

Suspended calls can be cancelled through anyio cancel scopes or
`asyncio.Task.cancel()`. The parked task's registration is removed on the way
out, and a hand-off that was already made to it (mutex ownership, semaphore
permit, notify_one signal, free channel slot) is passed on to the next waiter.

Timeouts are composed by the caller:
    ```python
    with anyio.move_on_after(5):
        value = await rx.recv()
    ```
"""

from tether_core.runtime.sync.broadcast import BroadcastReceiver, BroadcastSender
from tether_core.runtime.sync.factory import broadcast, channel, oneshot
from tether_core.runtime.sync.mpsc import MpscReceiver, MpscSender
from tether_core.runtime.sync.mutex import LocalMutex, MutexGuard
from tether_core.runtime.sync.notify import Notify
from tether_core.runtime.sync.oneshot import OneshotReceiver, OneshotSender
from tether_core.runtime.sync.pipe import DuplexEnd, PipeReader, PipeWriter, duplex_pipe, pipe
from tether_core.runtime.sync.protocols import Receiver, Sender
from tether_core.runtime.sync.semaphore import Permit, Semaphore, SignalReceiver, SignalSender, signal_semaphore
from tether_core.runtime.sync.stats import ChannelStats
from tether_core.runtime.sync.waker import WakeSlot, WakeState

__all__ = [
    'BroadcastReceiver',
    'BroadcastSender',
    'ChannelStats',
    'DuplexEnd',
    'LocalMutex',
    'MpscReceiver',
    'MpscSender',
    'MutexGuard',
    'Notify',
    'OneshotReceiver',
    'OneshotSender',
    'Permit',
    'PipeReader',
    'PipeWriter',
    'Receiver',
    'Semaphore',
    'Sender',
    'SignalReceiver',
    'SignalSender',
    'WakeSlot',
    'WakeState',
    'broadcast',
    'channel',
    'duplex_pipe',
    'oneshot',
    'pipe',
    'signal_semaphore',
]
