"""Pytest configuration for runtime tests."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from tether_core.runtime import _config

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Generator


@pytest.fixture(autouse=True)
def reset_runtime(monkeypatch: pytest.MonkeyPatch) -> Generator[None]:
    """Run every test against default runtime config."""
    monkeypatch.delenv('TETHER_LOG_LEVEL', raising=False)
    monkeypatch.setattr(_config, '_config', None)
    yield


async def _settle(rounds: int = 10) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle() -> Callable[..., Awaitable[None]]:
    """Yield to the event loop until spawned tasks reach their next suspension."""
    return _settle
