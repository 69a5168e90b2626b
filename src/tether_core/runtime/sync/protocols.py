"""Channel protocols: Sender and Receiver structural interfaces.

Uses PEP 695 type parameter syntax for automatic variance inference:
Sender[T] is contravariant and Receiver[T] covariant in T.

MpscSender satisfies Sender. MpscReceiver and BroadcastReceiver satisfy
Receiver. BroadcastSender is not a Sender because its `send` never suspends.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Protocol, Self, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from tether_core.result import Result

__all__ = ['Receiver', 'Sender']


@runtime_checkable
class Sender[T](Protocol):
    """Transmit half of a channel.

    Multiple senders can exist (via `clone()`). When all of them are closed,
    receivers see end-of-stream after draining.
    """

    @abstractmethod
    async def send(self, value: T) -> None:
        """Send a value, suspending while the channel is at capacity.

        Raises:
            ChannelClosedError: If the receiving side has been closed.
        """
        ...

    @abstractmethod
    def try_send(self, value: T) -> Result[None, Any]:
        """Send a value without suspending.

        Returns `Ok(None)` if queued, or `Err(ChannelFull | ChannelClosed)`.
        """
        ...

    @abstractmethod
    def clone(self) -> Self:
        """Return another sender for the same channel."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close this sender. Idempotent."""
        ...


@runtime_checkable
class Receiver[T](Protocol):
    """Receive half of a channel."""

    @abstractmethod
    async def recv(self) -> T:
        """Receive the next value, suspending while none is available.

        Raises:
            EndOfStreamError: If all senders are closed and nothing is left.
        """
        ...

    @abstractmethod
    def try_recv(self) -> Result[T, Any]:
        """Receive without suspending.

        Returns `Ok(value)` or an `Err` describing why nothing was received.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Close this receiver. Idempotent."""
        ...

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[T]:
        """Iterate over values until end-of-stream."""
        ...

    @abstractmethod
    async def __anext__(self) -> T:
        """Return the next value or raise StopAsyncIteration at end-of-stream."""
        ...
