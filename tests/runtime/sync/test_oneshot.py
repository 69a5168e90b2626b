"""Tests for oneshot channels."""

from __future__ import annotations

import asyncio

import anyio
import pytest
from hypothesis import given
from hypothesis import strategies as st

from tether_core import Err, Ok, oneshot
from tether_core.runtime import (
    AlreadySent,
    AlreadySentError,
    AlreadyTaken,
    AlreadyTakenError,
    ChannelClosed,
    ChannelClosedError,
    ChannelEmpty,
    SenderGone,
    SenderGoneError,
)


class TestOneshotBasic:
    async def test_send_then_recv(self) -> None:
        tx, rx = oneshot()
        tx.send(42)
        assert await rx.recv() == 42

    async def test_recv_waits_for_send(self, settle) -> None:
        tx, rx = oneshot()
        task = asyncio.create_task(rx.recv())
        await settle()
        assert not task.done()

        tx.send('hello')
        assert await task == 'hello'

    async def test_none_is_a_valid_value(self) -> None:
        tx, rx = oneshot()
        tx.send(None)
        assert rx.try_recv() == Ok(None)


class TestOneshotSender:
    def test_second_send_fails(self) -> None:
        tx, _rx = oneshot()
        tx.send(1)
        with pytest.raises(AlreadySentError):
            tx.send(2)

    def test_try_send_reports_already_sent(self) -> None:
        tx, _rx = oneshot()
        assert tx.try_send(1) == Ok(None)
        assert tx.try_send(2) == Err(AlreadySent())

    def test_send_after_close_fails(self) -> None:
        tx, _rx = oneshot()
        tx.close()
        assert tx.try_send(1) == Err(AlreadySent())

    def test_send_to_closed_receiver(self) -> None:
        tx, rx = oneshot()
        rx.close()
        assert tx.is_closed()
        assert tx.try_send(1) == Err(AlreadySent())
        with pytest.raises(AlreadySentError):
            tx.send(1)

    def test_close_is_idempotent(self) -> None:
        tx, rx = oneshot()
        tx.close()
        tx.close()
        assert rx.try_recv() == Err(SenderGone())

    def test_clone_not_supported(self) -> None:
        tx, rx = oneshot()
        with pytest.raises(NotImplementedError):
            tx.clone()
        with pytest.raises(NotImplementedError):
            rx.clone()

    def test_context_manager_closes(self) -> None:
        tx, rx = oneshot()
        with tx:
            pass
        assert rx.try_recv() == Err(SenderGone())


class TestOneshotReceiver:
    def test_try_recv_empty(self) -> None:
        _tx, rx = oneshot()
        assert rx.try_recv() == Err(ChannelEmpty())

    async def test_value_taken_once(self) -> None:
        tx, rx = oneshot()
        tx.send(7)
        assert await rx.recv() == 7
        assert rx.try_recv() == Err(AlreadyTaken())
        with pytest.raises(AlreadyTakenError):
            await rx.recv()

    async def test_sender_closed_without_value(self) -> None:
        tx, rx = oneshot()
        tx.close()
        with pytest.raises(SenderGoneError):
            await rx.recv()

    async def test_parked_receiver_sees_sender_close(self, settle) -> None:
        tx, rx = oneshot()
        task = asyncio.create_task(rx.recv())
        await settle()

        tx.close()
        with pytest.raises(SenderGoneError):
            await task

    async def test_value_survives_sender_close(self) -> None:
        tx, rx = oneshot()
        tx.send('kept')
        tx.close()
        assert await rx.recv() == 'kept'

    def test_close_discards_value(self) -> None:
        tx, rx = oneshot()
        tx.send(object())
        rx.close()
        assert rx._state.value is None

    async def test_close_wakes_parked_receiver(self, settle) -> None:
        _tx, rx = oneshot()
        task = asyncio.create_task(rx.recv())
        await settle()

        rx.close()
        with anyio.fail_after(1), pytest.raises(ChannelClosedError):
            await task

    def test_try_recv_after_close(self) -> None:
        tx, rx = oneshot()
        tx.send(1)
        rx.close()
        assert rx.try_recv() == Err(ChannelClosed('receiver closed'))

    async def test_cancelled_recv_can_retry(self, settle) -> None:
        tx, rx = oneshot()
        task = asyncio.create_task(rx.recv())
        await settle()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        tx.send(5)
        assert await rx.recv() == 5

    async def test_iteration_yields_single_value(self) -> None:
        tx, rx = oneshot()
        tx.send('only')
        tx.close()
        assert [v async for v in rx] == ['only']

    async def test_iteration_empty_when_sender_gone(self) -> None:
        tx, rx = oneshot()
        tx.close()
        assert [v async for v in rx] == []


@pytest.mark.hypothesis_property
@given(value=st.one_of(st.integers(), st.text(), st.none(), st.lists(st.integers())))
async def test_property_value_delivered_unchanged(value: object) -> None:
    """Property: the received value is the sent object."""
    tx, rx = oneshot()
    tx.send(value)
    assert await rx.recv() is value
