"""
tether_core.runtime: configuration, logging, errors and sync primitives.

Provides the single-threaded synchronization primitives together with the
runtime defaults they read at construction time and the error types they
report.
"""

from tether_core.runtime._config import PermitPolicy, RuntimeConfig, get_config, init
from tether_core.runtime.errors import (
    AlreadySent,
    AlreadySentError,
    AlreadyTaken,
    AlreadyTakenError,
    ChannelClosed,
    ChannelClosedError,
    ChannelEmpty,
    ChannelEmptyError,
    ChannelFull,
    ChannelFullError,
    EndOfStream,
    EndOfStreamError,
    Lagged,
    LaggedError,
    SenderGone,
    SenderGoneError,
)
from tether_core.runtime.sync import (
    LocalMutex,
    Notify,
    Receiver,
    Semaphore,
    Sender,
    broadcast,
    channel,
    duplex_pipe,
    oneshot,
    pipe,
    signal_semaphore,
)

__all__ = [
    # Errors - struct variants
    'AlreadySent',
    # Errors - exception variants
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
    # Primitives
    'LocalMutex',
    'Notify',
    # Config
    'PermitPolicy',
    'Receiver',
    'RuntimeConfig',
    'Semaphore',
    'Sender',
    'SenderGone',
    'SenderGoneError',
    'broadcast',
    'channel',
    'duplex_pipe',
    'get_config',
    'init',
    'oneshot',
    'pipe',
    'signal_semaphore',
]
