import asyncio
import logging

import pytest

from lorawan_gateway.sync import ChannelClosed, message_channel, response_channel


@pytest.mark.asyncio
async def test_messages_arrive_in_order():
    tx, rx = message_channel(3)
    for item in ("a", "b", "c"):
        await tx.send(item)
    assert [await rx.recv(), await rx.recv(), await rx.recv()] == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_close_drains_then_returns_none():
    tx, rx = message_channel(2)
    await tx.send("x")
    tx.close()
    assert await rx.recv() == "x"
    assert await rx.recv() is None


@pytest.mark.asyncio
async def test_send_after_close_raises():
    tx, _rx = message_channel(2)
    tx.close()
    with pytest.raises(ChannelClosed):
        await tx.send("x")


@pytest.mark.asyncio
async def test_close_wakes_waiting_receiver():
    tx, rx = message_channel(1)
    task = asyncio.create_task(rx.recv())
    await asyncio.sleep(0)
    tx.close()
    assert await task is None


@pytest.mark.asyncio
async def test_waiting_receiver_gets_message():
    tx, rx = message_channel(1)
    task = asyncio.create_task(rx.recv())
    await asyncio.sleep(0)
    await tx.send("hello")
    assert await task == "hello"


@pytest.mark.asyncio
async def test_full_channel_blocks_sender():
    tx, rx = message_channel(1)
    await tx.send(1)
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(tx.send(2), 0.05)
    assert await rx.recv() == 1


def test_zero_size_rejected():
    with pytest.raises(ValueError):
        message_channel(0)


@pytest.mark.asyncio
async def test_response_round_trip():
    tx, rx = response_channel()
    tx.send({"height": 5})
    assert await rx.recv() == {"height": 5}


@pytest.mark.asyncio
async def test_response_sender_dropped():
    tx, rx = response_channel()
    del tx
    with pytest.raises(ChannelClosed):
        await rx.recv()


def test_response_receiver_dropped_is_logged(caplog):
    tx, rx = response_channel()
    del rx
    with caplog.at_level(logging.WARNING, logger="lorawan_gateway.sync"):
        tx.send(1)
    assert "ignoring channel error" in caplog.text


def test_response_sent_twice_raises():
    tx, _rx = response_channel()
    tx.send(1)
    with pytest.raises(ChannelClosed):
        tx.send(2)