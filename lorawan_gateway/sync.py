"""Async message and one-shot response channels."""

from __future__ import annotations

import asyncio
import logging
import weakref
from typing import Any, Generic, TypeVar

T = TypeVar("T")

_log = logging.getLogger(__name__)


class ChannelClosed(Exception):
    """Raised when a channel's other side is gone."""


class _MessageChannel:
    def __init__(self, size: int) -> None:
        self.queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=size)
        self.closed = asyncio.Event()


class MessageSender(Generic[T]):
    """The sending half of a bounded message channel. Copies share the channel."""

    def __init__(self, channel: _MessageChannel) -> None:
        self._channel = channel

    async def send(self, message: T) -> None:
        """Queue a message, waiting while the channel is full."""
        if self._channel.closed.is_set():
            raise ChannelClosed("message channel closed")
        await self._channel.queue.put(message)

    def close(self) -> None:
        """Close the channel; receivers drain what is queued and then get None."""
        self._channel.closed.set()


class MessageReceiver(Generic[T]):
    """The receiving half of a bounded message channel."""

    def __init__(self, channel: _MessageChannel) -> None:
        self._channel = channel

    async def recv(self) -> T | None:
        """Return the next message, or None once the channel is closed and empty."""
        channel = self._channel
        while True:
            try:
                return channel.queue.get_nowait()
            except asyncio.QueueEmpty:
                pass
            if channel.closed.is_set():
                return None
            getter = asyncio.ensure_future(channel.queue.get())
            closer = asyncio.ensure_future(channel.closed.wait())
            try:
                done, _ = await asyncio.wait(
                    {getter, closer}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                for task in (getter, closer):
                    if not task.done():
                        task.cancel()
            if getter in done and not getter.cancelled():
                return getter.result()


def message_channel(size: int) -> tuple[MessageSender[Any], MessageReceiver[Any]]:
    """Create a channel holding at most ``size`` queued messages."""
    if size <= 0:
        raise ValueError("channel size must be positive")
    channel = _MessageChannel(size)
    return MessageSender(channel), MessageReceiver(channel)


class _ResponseSlot:
    def __init__(self) -> None:
        self.value: Any = None
        self.has_value = False
        self.sender_gone = False
        self.receiver_gone = False
        self.ready = asyncio.Event()


def _drop_sender(slot: _ResponseSlot) -> None:
    if not slot.has_value:
        slot.sender_gone = True
        slot.ready.set()


def _drop_receiver(slot: _ResponseSlot) -> None:
    slot.receiver_gone = True


class ResponseSender(Generic[T]):
    """Sends exactly one response. Dropping it unsent closes the channel."""

    def __init__(self, slot: _ResponseSlot) -> None:
        self._slot = slot
        weakref.finalize(self, _drop_sender, slot)

    def send(self, msg: T) -> None:
        """Deliver the response; a missing receiver is logged and ignored."""
        slot = self._slot
        if slot.has_value or slot.sender_gone:
            raise ChannelClosed("response already sent")
        if slot.receiver_gone:
            _log.warning("ignoring channel error: %r", msg)
            return
        slot.value = msg
        slot.has_value = True
        slot.ready.set()


class ResponseReceiver(Generic[T]):
    """Receives the single response of a response channel."""

    def __init__(self, slot: _ResponseSlot) -> None:
        self._slot = slot
        weakref.finalize(self, _drop_receiver, slot)

    async def recv(self) -> T:
        """Wait for the response; raise ChannelClosed if the sender went away."""
        slot = self._slot
        await slot.ready.wait()
        if not slot.has_value:
            raise ChannelClosed("response sender dropped")
        return slot.value


def response_channel() -> tuple[ResponseSender[Any], ResponseReceiver[Any]]:
    """Create a one-shot response channel."""
    slot = _ResponseSlot()
    return ResponseSender(slot), ResponseReceiver(slot)