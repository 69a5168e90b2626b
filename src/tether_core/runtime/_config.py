"""Runtime configuration: PermitPolicy, RuntimeConfig, and initialization."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum

from tether_core.runtime._logging import configure_logging

__all__ = [
    'PermitPolicy',
    'RuntimeConfig',
    'get_config',
    'init',
]

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


class PermitPolicy(Enum):
    """How a Notify retains signals delivered while nobody is waiting."""

    NONE = 'none'
    SINGLE = 'single'
    COUNTING = 'counting'


@dataclass(frozen=True)
class RuntimeConfig:
    """Defaults applied when primitives are constructed.

    Attributes:
        log_level: Logging level (e.g., "DEBUG", "INFO"). None = leave logging alone.
        channel_capacity: Default buffer size for `channel()`.
        broadcast_capacity: Default ring size for `broadcast()`.
        notify_permits: Default permit retention for `Notify`.
    """

    log_level: str | None = None
    channel_capacity: int = 32
    broadcast_capacity: int = 16
    notify_permits: PermitPolicy = PermitPolicy.SINGLE


# Set by init(); get_config() falls back to the defaults until then
_config: RuntimeConfig | None = None


def _detect_log_level() -> str | None:
    """Read the log level from the TETHER_LOG_LEVEL environment variable."""
    env_level = os.environ.get('TETHER_LOG_LEVEL', '').upper()
    if not env_level:
        return None
    if env_level not in _LOG_LEVELS:
        logging.warning("Unknown TETHER_LOG_LEVEL value '%s', ignoring", env_level)
        return None
    return env_level


def init(
    log_level: str | None = None,
    channel_capacity: int | None = None,
    broadcast_capacity: int | None = None,
    notify_permits: PermitPolicy | str | None = None,
) -> RuntimeConfig:
    """Initialize the tether runtime defaults.

    Only primitives created after this call observe the new values.

    Args:
        log_level: Logging level. Read from TETHER_LOG_LEVEL if None.
        channel_capacity: Default `channel()` capacity (>= 0).
        broadcast_capacity: Default `broadcast()` capacity (>= 1).
        notify_permits: Default Notify permit policy, enum or string.

    Returns:
        The RuntimeConfig that was set.

    Raises:
        ValueError: If a capacity is out of range or the policy is unknown.

    Example:
        ```python
        from tether_core.runtime import init, PermitPolicy

        init(log_level='DEBUG', notify_permits=PermitPolicy.NONE)
        ```
    """
    global _config  # noqa: PLW0603

    defaults = RuntimeConfig()

    if log_level is None:
        log_level = _detect_log_level()

    if channel_capacity is None:
        channel_capacity = defaults.channel_capacity
    elif channel_capacity < 0:
        msg = f'channel_capacity must be >= 0, got {channel_capacity}'
        raise ValueError(msg)

    if broadcast_capacity is None:
        broadcast_capacity = defaults.broadcast_capacity
    elif broadcast_capacity < 1:
        msg = f'broadcast_capacity must be >= 1, got {broadcast_capacity}'
        raise ValueError(msg)

    if notify_permits is None:
        resolved_permits = defaults.notify_permits
    elif isinstance(notify_permits, str):
        resolved_permits = PermitPolicy(notify_permits.lower())
    else:
        resolved_permits = notify_permits

    _config = RuntimeConfig(
        log_level=log_level,
        channel_capacity=channel_capacity,
        broadcast_capacity=broadcast_capacity,
        notify_permits=resolved_permits,
    )

    if log_level is not None:
        configure_logging(log_level)

    return _config


def get_config() -> RuntimeConfig:
    """Get the current runtime configuration.

    Returns:
        The RuntimeConfig set by `init()`, or the defaults if it was never called.
    """
    if _config is None:
        return RuntimeConfig()
    return _config
