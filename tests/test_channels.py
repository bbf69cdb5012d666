"""
Tests for bounded channels and host-key decisions
"""
import asyncio

import pytest

from termlink.core.channels import HostKeyDecision, channel
from termlink.core.exceptions import ChannelClosed, ChannelEmpty, ChannelFull


def test_channel_rejects_zero_capacity():
    with pytest.raises(ValueError):
        channel(0)


def test_try_send_respects_capacity():
    async def main():
        tx, rx = channel(2)
        tx.try_send(1)
        tx.try_send(2)
        with pytest.raises(ChannelFull):
            tx.try_send(3)
        assert len(rx) == 2
        assert rx.try_recv() == 1
        tx.try_send(3)
        assert [rx.try_recv(), rx.try_recv()] == [2, 3]
        with pytest.raises(ChannelEmpty):
            rx.try_recv()

    asyncio.run(main())


def test_receiver_drains_buffer_after_sender_closes():
    async def main():
        tx, rx = channel(4)
        tx.try_send("a")
        tx.try_send("b")
        tx.close()

        assert len(rx) == 2
        with pytest.raises(ChannelClosed):
            tx.try_send("c")
        assert [item async for item in rx] == ["a", "b"]
        with pytest.raises(ChannelClosed):
            await rx.recv()
        with pytest.raises(ChannelClosed):
            rx.try_recv()

    asyncio.run(main())


def test_close_wakes_blocked_receiver():
    async def main():
        tx, rx = channel(1)
        waiter = asyncio.ensure_future(rx.recv())
        await asyncio.sleep(0)
        tx.close()
        with pytest.raises(ChannelClosed):
            await asyncio.wait_for(waiter, 1)

    asyncio.run(main())


def test_full_channel_closed_by_sender_still_drains():
    async def main():
        tx, rx = channel(1)
        tx.try_send("only")
        tx.close()
        assert await rx.recv() == "only"
        with pytest.raises(ChannelClosed):
            await rx.recv()

    asyncio.run(main())


def test_send_times_out_when_full():
    async def main():
        tx, rx = channel(1)
        await tx.send("first", timeout=0.1)
        with pytest.raises(ChannelFull):
            await tx.send("second", timeout=0.02)
        assert rx.try_recv() == "first"

    asyncio.run(main())


def test_receiver_close_fails_blocked_sender():
    async def main():
        tx, rx = channel(1)
        tx.try_send("queued")
        blocked = asyncio.ensure_future(tx.send("waiting"))
        await asyncio.sleep(0)
        rx.close()
        with pytest.raises(ChannelClosed):
            await asyncio.wait_for(blocked, 1)
        assert tx.is_closed()
        assert len(rx) == 0

    asyncio.run(main())


def test_host_key_decision_first_answer_wins():
    async def main():
        decision = HostKeyDecision()
        assert not decision.resolved
        assert decision.accept()
        assert not decision.reject()
        assert decision.resolved
        assert await decision.wait(1) is True
        assert repr(decision) == "HostKeyDecision(accepted)"

    asyncio.run(main())


def test_host_key_decision_wait_is_answered_from_another_task():
    async def main():
        decision = HostKeyDecision()

        async def answer():
            await asyncio.sleep(0.01)
            decision.reject()

        asyncio.ensure_future(answer())
        assert await decision.wait(1) is False

    asyncio.run(main())


def test_unanswered_host_key_decision_is_rejected():
    async def main():
        decision = HostKeyDecision()
        assert await decision.wait(0.01) is False
        assert decision.resolved
        # A late answer changes nothing
        assert decision.accept() is False
        assert await decision.wait(0.01) is False

    asyncio.run(main())
