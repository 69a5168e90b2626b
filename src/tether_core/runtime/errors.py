"""Runtime error types: dual struct+exception for Result and raise-based code.

Every condition a primitive can report exists twice. The frozen msgspec struct
is what non-blocking operations put inside `Err(...)`; the exception is what
the blocking API raises. Each side converts to the other.
"""

from __future__ import annotations

import msgspec

__all__ = [
    'AlreadySent',
    'AlreadySentError',
    'AlreadyTaken',
    'AlreadyTakenError',
    'ChannelClosed',
    'ChannelClosedError',
    'ChannelEmpty',
    'ChannelEmptyError',
    'ChannelFull',
    'ChannelFullError',
    'EndOfStream',
    'EndOfStreamError',
    'Lagged',
    'LaggedError',
    'SenderGone',
    'SenderGoneError',
]


# --- Closure ---


class ChannelClosed(msgspec.Struct, frozen=True, gc=False):
    """Counterpart handle has been closed - struct variant."""

    reason: str | None = None

    def to_exception(self) -> ChannelClosedError:
        """Convert to exception for raise-based code."""
        return ChannelClosedError(self.reason)


class ChannelClosedError(Exception):
    """Counterpart handle has been closed - exception variant."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(reason or 'Channel closed')

    def to_struct(self) -> ChannelClosed:
        """Convert to struct for Result-based code."""
        return ChannelClosed(self.reason)


class EndOfStream(msgspec.Struct, frozen=True, gc=False):
    """All senders are gone and the buffer is drained - struct variant."""

    def to_exception(self) -> EndOfStreamError:
        """Convert to exception for raise-based code."""
        return EndOfStreamError()


class EndOfStreamError(ChannelClosedError):
    """All senders are gone and the buffer is drained - exception variant."""

    def __init__(self) -> None:
        super().__init__('End of stream')

    def to_struct(self) -> EndOfStream:  # type: ignore[override]
        """Convert to struct for Result-based code."""
        return EndOfStream()


class SenderGone(msgspec.Struct, frozen=True, gc=False):
    """Oneshot sender closed without sending - struct variant."""

    def to_exception(self) -> SenderGoneError:
        """Convert to exception for raise-based code."""
        return SenderGoneError()


class SenderGoneError(ChannelClosedError):
    """Oneshot sender closed without sending - exception variant."""

    def __init__(self) -> None:
        super().__init__('Sender gone without sending a value')

    def to_struct(self) -> SenderGone:  # type: ignore[override]
        """Convert to struct for Result-based code."""
        return SenderGone()


# --- Capacity ---


class ChannelEmpty(msgspec.Struct, frozen=True, gc=False):
    """Channel has no messages - struct variant for Result[T, ChannelEmpty]."""

    def to_exception(self) -> ChannelEmptyError:
        """Convert to exception for raise-based code."""
        return ChannelEmptyError()


class ChannelEmptyError(Exception):
    """Channel has no messages - exception variant."""

    def __init__(self) -> None:
        super().__init__('Channel empty')

    def to_struct(self) -> ChannelEmpty:
        """Convert to struct for Result-based code."""
        return ChannelEmpty()


class ChannelFull(msgspec.Struct, frozen=True, gc=False):
    """Channel is at capacity - struct variant for Result[T, ChannelFull]."""

    capacity: int

    def to_exception(self) -> ChannelFullError:
        """Convert to exception for raise-based code."""
        return ChannelFullError(self.capacity)


class ChannelFullError(Exception):
    """Channel is at capacity - exception variant."""

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        super().__init__(f'Channel full (capacity={capacity})')

    def to_struct(self) -> ChannelFull:
        """Convert to struct for Result-based code."""
        return ChannelFull(self.capacity)


# --- Exactly-once misuse ---


class AlreadySent(msgspec.Struct, frozen=True, gc=False):
    """Oneshot value already sent - struct variant."""

    def to_exception(self) -> AlreadySentError:
        """Convert to exception for raise-based code."""
        return AlreadySentError()


class AlreadySentError(Exception):
    """Oneshot value already sent - exception variant."""

    def __init__(self) -> None:
        super().__init__('Value already sent')

    def to_struct(self) -> AlreadySent:
        """Convert to struct for Result-based code."""
        return AlreadySent()


class AlreadyTaken(msgspec.Struct, frozen=True, gc=False):
    """Oneshot value already received - struct variant."""

    def to_exception(self) -> AlreadyTakenError:
        """Convert to exception for raise-based code."""
        return AlreadyTakenError()


class AlreadyTakenError(ChannelClosedError):
    """Oneshot value already received - exception variant.

    Subclasses ChannelClosedError: once taken, the channel is terminal.
    """

    def __init__(self) -> None:
        super().__init__('Value already taken')

    def to_struct(self) -> AlreadyTaken:  # type: ignore[override]
        """Convert to struct for Result-based code."""
        return AlreadyTaken()


# --- Broadcast ---


class Lagged(msgspec.Struct, frozen=True, gc=False):
    """Broadcast receiver fell behind - struct variant.

    Attributes:
        skipped: Number of messages the receiver will never see.
    """

    skipped: int

    def to_exception(self) -> LaggedError:
        """Convert to exception for raise-based code."""
        return LaggedError(self.skipped)


class LaggedError(Exception):
    """Broadcast receiver fell behind - exception variant."""

    def __init__(self, skipped: int) -> None:
        self.skipped = skipped
        super().__init__(f'Receiver lagged by {skipped} messages')

    def to_struct(self) -> Lagged:
        """Convert to struct for Result-based code."""
        return Lagged(self.skipped)
