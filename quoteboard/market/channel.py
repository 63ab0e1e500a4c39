"""Push channel bridging upstream events into the event loop."""

from __future__ import annotations

import asyncio
from typing import Generic, TypeVar

T = TypeVar("T")

_CLOSED = object()


class PushChannel(Generic[T]):
    """Unbounded FIFO of push events with a terminal close.

    Producers may live on the event loop (put) or on a foreign thread
    (put_threadsafe). Events queued before close() are still delivered;
    after the close marker is consumed, get() returns None forever.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        self._loop = loop
        self._closing = False
        self._closed = False

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Set the loop that put_threadsafe() hands events to."""
        self._loop = loop

    def put(self, item: T) -> None:
        if self._closing:
            return
        self._queue.put_nowait(item)

    def put_threadsafe(self, item: T) -> None:
        """Enqueue from a thread that does not run the event loop."""
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.put, item)

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        self._queue.put_nowait(_CLOSED)

    @property
    def closed(self) -> bool:
        """True once the close marker has been consumed."""
        return self._closed

    async def get(self) -> T | None:
        if self._closed:
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            self._closed = True
            return None
        return item
