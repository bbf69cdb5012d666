"""
Bounded async channels and one-shot replies

The actor and its consumer only ever talk through these objects. Both halves
of a channel must be used from the thread running the event loop.
"""
import asyncio
from typing import Any, Generic, Optional, Tuple, TypeVar

from .exceptions import ChannelClosed, ChannelEmpty, ChannelFull

T = TypeVar("T")

_CLOSED = object()


class _Channel:
    """Shared state behind a sender/receiver pair"""

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Channel capacity must be positive, got {capacity}")
        self.capacity = capacity
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=capacity)
        self.closed = False
        self.sentinel_queued = False

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        # Wake a receiver blocked on an empty queue
        if not self.queue.full():
            self.queue.put_nowait(_CLOSED)
            self.sentinel_queued = True


class Sender(Generic[T]):
    """Sending half of a bounded channel"""

    def __init__(self, channel: _Channel):
        self._channel = channel

    @property
    def capacity(self) -> int:
        return self._channel.capacity

    def is_closed(self) -> bool:
        return self._channel.closed

    def try_send(self, item: T) -> None:
        """
        Enqueue without waiting.

        Raises:
            ChannelClosed: If either side closed the channel
            ChannelFull: If the channel is at capacity
        """
        if self._channel.closed:
            raise ChannelClosed("channel is closed")
        try:
            self._channel.queue.put_nowait(item)
        except asyncio.QueueFull:
            raise ChannelFull(f"channel is full ({self._channel.capacity} items)") from None

    async def send(self, item: T, timeout: Optional[float] = None) -> None:
        """
        Enqueue, waiting for space.

        Args:
            item: Item to send
            timeout: Seconds to wait for space (None waits forever)

        Raises:
            ChannelClosed: If either side closed the channel
            ChannelFull: If no space became available within timeout
        """
        if self._channel.closed:
            raise ChannelClosed("channel is closed")
        try:
            await asyncio.wait_for(self._channel.queue.put(item), timeout)
        except asyncio.TimeoutError:
            raise ChannelFull(
                f"channel still full after {timeout}s ({self._channel.capacity} items)"
            ) from None
        if self._channel.closed:
            raise ChannelClosed("channel closed while sending")

    def close(self) -> None:
        """Stop sending; the receiver drains what is buffered"""
        self._channel.close()


class Receiver(Generic[T]):
    """Receiving half of a bounded channel"""

    def __init__(self, channel: _Channel):
        self._channel = channel

    def is_closed(self) -> bool:
        return self._channel.closed

    def __len__(self) -> int:
        size = self._channel.queue.qsize()
        return size - 1 if self._channel.sentinel_queued else size

    async def recv(self) -> T:
        """
        Wait for the next item.

        Raises:
            ChannelClosed: Once the channel is closed and drained
        """
        if self._channel.closed and self._channel.queue.empty():
            raise ChannelClosed("channel is closed")
        item = await self._channel.queue.get()
        if item is _CLOSED:
            self._channel.sentinel_queued = False
            raise ChannelClosed("channel is closed")
        return item

    def try_recv(self) -> T:
        """
        Take the next item without waiting.

        Raises:
            ChannelEmpty: If nothing is buffered
            ChannelClosed: Once the channel is closed and drained
        """
        try:
            item = self._channel.queue.get_nowait()
        except asyncio.QueueEmpty:
            if self._channel.closed:
                raise ChannelClosed("channel is closed") from None
            raise ChannelEmpty("channel is empty") from None
        if item is _CLOSED:
            self._channel.sentinel_queued = False
            raise ChannelClosed("channel is closed")
        return item

    def close(self) -> None:
        """Stop receiving; buffered items are dropped and blocked senders fail"""
        self._channel.closed = True
        queue = self._channel.queue
        while not queue.empty():
            queue.get_nowait()
        self._channel.sentinel_queued = False

    def __aiter__(self) -> "Receiver[T]":
        return self

    async def __anext__(self) -> T:
        try:
            return await self.recv()
        except ChannelClosed:
            raise StopAsyncIteration from None


def channel(capacity: int) -> Tuple[Sender[Any], Receiver[Any]]:
    """
    Create a bounded FIFO channel.

    Args:
        capacity: Maximum number of buffered items

    Returns:
        (sender, receiver)
    """
    shared = _Channel(capacity)
    return Sender(shared), Receiver(shared)


class HostKeyDecision:
    """
    Single-use reply slot for a host-key question.

    The first call to resolve() wins; later calls, including replies that
    arrive after wait() gave up, are ignored.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future = asyncio.get_running_loop().create_future()

    @property
    def resolved(self) -> bool:
        return self._future.done()

    def resolve(self, accepted: bool) -> bool:
        """Record the decision; returns False if one was already recorded"""
        if self._future.done():
            return False
        self._future.set_result(bool(accepted))
        return True

    def accept(self) -> bool:
        return self.resolve(True)

    def reject(self) -> bool:
        return self.resolve(False)

    async def wait(self, timeout: Optional[float]) -> bool:
        """Wait for the decision; an unanswered question counts as rejected"""
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError:
            self.reject()
            return self._future.result()

    def __repr__(self) -> str:
        if not self._future.done():
            return "HostKeyDecision(pending)"
        return f"HostKeyDecision({'accepted' if self._future.result() else 'rejected'})"
