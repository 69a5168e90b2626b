"""Structured logging for tether primitives.

Primitives log through `get_logger(__name__)`: a structlog logger wrapping the
stdlib logger of the same name, so stdlib levels decide what gets through.
Everything the primitives emit is at debug level and stays silent until the
host application (or `configure_logging`) lowers the level.

Hooks see a copy of every structlog event that passes the level filter.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    'add_log_hook',
    'clear_log_hooks',
    'configure_logging',
    'get_logger',
    'remove_log_hook',
]

type LogHook = Callable[[dict[str, Any]], None]

_hooks: list[LogHook] = []


def add_log_hook(hook: LogHook) -> None:
    """Call `hook` with a copy of each event dict."""
    _hooks.append(hook)


def remove_log_hook(hook: LogHook) -> None:
    if hook in _hooks:
        _hooks.remove(hook)


def clear_log_hooks() -> None:
    _hooks.clear()


def _run_hooks(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for hook in tuple(_hooks):
        # a broken hook never stops the event from being logged
        with contextlib.suppress(Exception):
            hook(dict(event_dict))
    return event_dict


def _annotate() -> list[Any]:
    return [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
    ]


def get_logger(name: str | None = None) -> Any:
    """Return a structlog BoundLogger over `logging.getLogger(name)`."""
    return structlog.wrap_logger(
        logging.getLogger(name),
        processors=[
            structlog.stdlib.filter_by_level,
            *_annotate(),
            _run_hooks,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def configure_logging(level: str = 'INFO', *, json_output: bool = True) -> None:
    """Send all logging to stderr through a single structlog-aware handler.

    Args:
        level: Root logger level name; unknown names fall back to INFO.
        json_output: Render JSON lines, or a console format when False.
    """
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_annotate(),
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))
