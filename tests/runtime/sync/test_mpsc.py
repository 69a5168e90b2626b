"""Tests for multi-producer single-consumer channels."""

from __future__ import annotations

import asyncio

import anyio
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from tether_core import Err, Ok, channel
from tether_core.runtime import (
    ChannelClosed,
    ChannelClosedError,
    ChannelEmpty,
    ChannelFull,
    EndOfStream,
    EndOfStreamError,
)
from tether_core.runtime.sync import ChannelStats


class TestMpscBounded:
    async def test_capacity_two_backpressure(self, settle) -> None:
        tx, rx = channel(capacity=2)
        await tx.send(1)
        await tx.send(2)

        blocked = asyncio.create_task(tx.send(3))
        await settle()
        assert not blocked.done()

        assert await rx.recv() == 1
        await settle()
        assert blocked.done()

        assert await rx.recv() == 2
        assert await rx.recv() == 3

    def test_try_send_full(self) -> None:
        tx, _rx = channel(capacity=1)
        assert tx.try_send('a') == Ok(None)
        assert tx.try_send('b') == Err(ChannelFull(1))

    def test_try_recv_empty(self) -> None:
        _tx, rx = channel(capacity=1)
        assert rx.try_recv() == Err(ChannelEmpty())

    async def test_blocked_senders_resume_in_order(self, settle) -> None:
        tx, rx = channel(capacity=1)
        await tx.send(0)
        senders = [asyncio.create_task(tx.clone().send(i)) for i in range(1, 4)]
        await settle()
        assert tx.stats().blocked_senders == 3

        received = [await rx.recv() for _ in range(4)]
        await asyncio.gather(*senders)
        assert received == [0, 1, 2, 3]

    async def test_newcomer_cannot_overtake_woken_sender(self, settle) -> None:
        tx, rx = channel(capacity=1)
        await tx.send('first')
        parked = asyncio.create_task(tx.send('second'))
        await settle()

        assert rx.try_recv() == Ok('first')
        assert tx.try_send('third') == Err(ChannelFull(1))

        await parked
        assert rx.try_recv() == Ok('second')

    def test_negative_capacity_rejected(self) -> None:
        with pytest.raises(ValueError):
            channel(capacity=-1)


class TestMpscUnbounded:
    async def test_send_never_suspends(self) -> None:
        tx, rx = channel(capacity=None)
        for i in range(1000):
            assert tx.try_send(i) == Ok(None)
        assert len(rx) == 1000
        assert tx.stats().capacity is None
        assert await rx.recv() == 0


class TestMpscRendezvous:
    def test_try_send_without_receiver_fails(self) -> None:
        tx, _rx = channel(capacity=0)
        assert tx.try_send(1) == Err(ChannelFull(0))

    async def test_send_completes_with_parked_receiver(self, settle) -> None:
        tx, rx = channel(capacity=0)
        receiver = asyncio.create_task(rx.recv())
        await settle()

        assert tx.try_send('hi') == Ok(None)
        assert await receiver == 'hi'

    async def test_send_waits_for_receiver(self, settle) -> None:
        tx, rx = channel(capacity=0)
        sender = asyncio.create_task(tx.send('x'))
        await settle()
        assert not sender.done()
        assert len(rx) == 0

        assert await rx.recv() == 'x'
        await sender

    async def test_ping_pong(self) -> None:
        tx, rx = channel(capacity=0)
        received: list[int] = []

        async def consume() -> None:
            async for value in rx:
                received.append(value)

        async with anyio.create_task_group() as tg:
            tg.start_soon(consume)
            for i in range(5):
                await tx.send(i)
            tx.close()

        assert received == [0, 1, 2, 3, 4]


class TestMpscClose:
    async def test_receiver_drains_then_end_of_stream(self) -> None:
        tx, rx = channel(capacity=4)
        await tx.send(1)
        await tx.send(2)
        tx.close()

        assert rx.is_closed()
        assert await rx.recv() == 1
        assert await rx.recv() == 2
        assert rx.try_recv() == Err(EndOfStream())
        with pytest.raises(EndOfStreamError):
            await rx.recv()

    async def test_parked_receiver_sees_last_sender_close(self, settle) -> None:
        tx, rx = channel(capacity=1)
        tx2 = tx.clone()
        task = asyncio.create_task(rx.recv())
        await settle()

        tx.close()
        await settle()
        assert not task.done()

        tx2.close()
        with pytest.raises(EndOfStreamError):
            await task

    async def test_clone_keeps_channel_open(self) -> None:
        tx, rx = channel(capacity=1)
        tx2 = tx.clone()
        tx.close()
        await tx2.send('still open')
        assert await rx.recv() == 'still open'

    async def test_closed_sender_cannot_send_or_clone(self) -> None:
        tx, _rx = channel(capacity=1)
        tx.close()
        tx.close()
        assert tx.try_send(1) == Err(ChannelClosed('sender closed'))
        with pytest.raises(ChannelClosedError):
            await tx.send(1)
        with pytest.raises(ChannelClosedError):
            tx.clone()

    async def test_send_after_receiver_close(self) -> None:
        tx, rx = channel(capacity=1)
        rx.close()
        assert tx.is_closed()
        assert tx.try_send(1) == Err(ChannelClosed('receiver closed'))
        with pytest.raises(ChannelClosedError):
            await tx.send(1)

    async def test_parked_sender_fails_on_receiver_close(self, settle) -> None:
        tx, rx = channel(capacity=1)
        await tx.send(1)
        task = asyncio.create_task(tx.send(2))
        await settle()

        rx.close()
        with pytest.raises(ChannelClosedError):
            await task
        assert tx.stats().blocked_senders == 0

    async def test_closed_waits_for_receiver(self, settle) -> None:
        tx, rx = channel(capacity=1)
        task = asyncio.create_task(tx.closed())
        await settle()
        assert not task.done()

        rx.close()
        with anyio.fail_after(1):
            await task

    async def test_context_managers_close(self) -> None:
        tx, rx = channel(capacity=1)
        with tx:
            await tx.send('v')
        assert [v async for v in rx] == ['v']


    async def test_receiver_close_wakes_parked_recv(self, settle) -> None:
        _tx, rx = channel(capacity=1)
        task = asyncio.create_task(rx.recv())
        await settle()

        rx.close()
        with anyio.fail_after(1), pytest.raises(EndOfStreamError):
            await task

    async def test_receiver_close_keeps_buffered_values(self) -> None:
        tx, rx = channel(capacity=2)
        await tx.send(1)
        rx.close()
        assert rx.try_recv() == Ok(1)
        assert rx.try_recv() == Err(EndOfStream())


class TestMpscCancellation:
    async def test_cancelled_sender_leaves_queue(self, settle) -> None:
        tx, rx = channel(capacity=1)
        await tx.send(1)
        task = asyncio.create_task(tx.send(2))
        await settle()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert tx.stats().blocked_senders == 0
        assert await rx.recv() == 1
        assert rx.try_recv() == Err(ChannelEmpty())

    async def test_woken_sender_cancel_passes_slot_on(self, settle) -> None:
        tx, rx = channel(capacity=1)
        await tx.send(0)
        first = asyncio.create_task(tx.send(1))
        await settle()
        second = asyncio.create_task(tx.send(2))
        await settle()

        assert rx.try_recv() == Ok(0)
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first

        with anyio.fail_after(1):
            await second
        assert rx.try_recv() == Ok(2)

    async def test_receive_timeout(self) -> None:
        tx, rx = channel(capacity=1)
        with anyio.move_on_after(0.01) as scope:
            await rx.recv()
        assert scope.cancelled_caught

        await tx.send('late')
        assert await rx.recv() == 'late'

    async def test_cancelled_rendezvous_receiver(self, settle) -> None:
        tx, rx = channel(capacity=0)
        task = asyncio.create_task(rx.recv())
        await settle()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert tx.try_send(1) == Err(ChannelFull(0))


class TestMpscStats:
    async def test_stats_track_traffic(self) -> None:
        tx, rx = channel(capacity=4)
        tx2 = tx.clone()
        await tx.send(1)
        await tx2.send(2)
        await rx.recv()

        stats = rx.stats()
        assert isinstance(stats, ChannelStats)
        assert stats.sender_count == 2
        assert stats.receiver_count == 1
        assert stats.queue_size == 1
        assert stats.capacity == 4
        assert stats.high_watermark == 2
        assert stats.total_sent == 2
        assert stats.total_received == 1
        assert not stats.senders_closed
        assert not stats.receivers_closed


@pytest.mark.hypothesis_property
@settings(deadline=None)
@given(
    capacity=st.integers(min_value=0, max_value=4),
    batches=st.lists(st.lists(st.integers(), max_size=10), min_size=1, max_size=4),
)
async def test_property_per_producer_order(capacity: int, batches: list[list[int]]) -> None:
    """Property: each producer's values arrive in the order it sent them."""
    tx, rx = channel(capacity=capacity)
    received: list[tuple[int, int]] = []

    async def produce(sender, ident: int, values: list[int]) -> None:
        with sender:
            for value in values:
                await sender.send((ident, value))

    async def consume() -> None:
        async for item in rx:
            received.append(item)

    senders = [tx.clone() for _ in batches]
    tx.close()
    async with anyio.create_task_group() as tg:
        tg.start_soon(consume)
        for ident, (sender, values) in enumerate(zip(senders, batches, strict=True)):
            tg.start_soon(produce, sender, ident, values)

    for ident, values in enumerate(batches):
        assert [v for i, v in received if i == ident] == values
