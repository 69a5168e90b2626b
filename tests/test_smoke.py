"""Smoke tests to verify package structure and imports work."""


def test_import_result_types():
    """Result types can be imported from the top-level package."""
    from tether_core import Err, Ok, Result, collect

    assert Ok is not None
    assert Err is not None
    assert Result is not None
    assert collect is not None


def test_import_primitives():
    """Primitive constructors are re-exported flat."""
    from tether_core import LocalMutex, Notify, Semaphore, broadcast, channel, oneshot

    assert callable(oneshot)
    assert callable(channel)
    assert callable(broadcast)
    assert Notify is not None
    assert LocalMutex is not None
    assert Semaphore is not None


def test_import_sync_submodule():
    """Low-level pieces live under tether_core.runtime.sync."""
    from tether_core.runtime.sync import ChannelStats, WakeSlot, WakeState

    assert WakeSlot is not None
    assert WakeState.EMPTY.value == 'empty'
    assert ChannelStats is not None


def test_import_errors():
    """Errors come in struct/exception pairs."""
    from tether_core.runtime import errors

    for name in errors.__all__:
        assert hasattr(errors, name)
