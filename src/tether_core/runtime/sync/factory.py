"""Channel factory functions: oneshot, channel, broadcast."""

from __future__ import annotations

from tether_core.runtime._config import get_config
from tether_core.runtime.sync.broadcast import (
    BroadcastReceiver,
    BroadcastSender,
    create_broadcast,
)
from tether_core.runtime.sync.mpsc import MpscReceiver, MpscSender, create_mpsc
from tether_core.runtime.sync.oneshot import (
    OneshotReceiver,
    OneshotSender,
    create_oneshot,
)

__all__ = ['broadcast', 'channel', 'oneshot']

_DEFAULT = object()


def oneshot[T]() -> tuple[OneshotSender[T], OneshotReceiver[T]]:
    """Create a single-value, single-use channel.

    The sender delivers at most one value and the receiver takes it at most
    once. Neither half can be cloned.

    Example:
        ```python
        tx, rx = oneshot()
        tx.send(42)
        assert await rx.recv() == 42
        ```
    """
    return create_oneshot()


def channel[T](capacity: int | None | object = _DEFAULT) -> tuple[MpscSender[T], MpscReceiver[T]]:
    """Create a multi-producer single-consumer channel.

    Args:
        capacity: Buffer size. 0 makes every send a rendezvous with a parked
            receiver; None makes the channel unbounded. Defaults to
            `RuntimeConfig.channel_capacity`.

    Returns:
        Tuple of (MpscSender[T], MpscReceiver[T]).

    Raises:
        ValueError: If capacity is negative.

    Example:
        ```python
        tx, rx = channel(capacity=2)
        await tx.send(1)
        tx2 = tx.clone()
        await tx2.send(2)
        assert await rx.recv() == 1
        ```
    """
    if capacity is _DEFAULT:
        capacity = get_config().channel_capacity
    return create_mpsc(capacity)  # type: ignore[arg-type]


def broadcast[T](capacity: int | None = None) -> tuple[BroadcastSender[T], BroadcastReceiver[T]]:
    """Create a broadcast channel where every receiver sees every message.

    New receivers (via `subscribe()`) only see messages sent after they were
    created. A receiver that falls more than `capacity` messages behind gets
    a LaggedError saying how many it missed.

    Args:
        capacity: Number of messages retained. Used exactly, no rounding.
            Defaults to `RuntimeConfig.broadcast_capacity`.

    Raises:
        ValueError: If capacity is less than 1.

    Example:
        ```python
        tx, rx1 = broadcast(capacity=8)
        rx2 = tx.subscribe()
        tx.send('hello')
        assert await rx1.recv() == await rx2.recv() == 'hello'
        ```
    """
    if capacity is None:
        capacity = get_config().broadcast_capacity
    return create_broadcast(capacity)
