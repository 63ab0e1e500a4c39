"""Fixtures for market data tests.

FakeSource is a FeedSource driven by the test: push() queues a record,
push_non_quote() queues a push event that is not a quote, finish() closes
the channel for good. It also records how many recv() calls are in flight
at once.
"""

import asyncio

import pytest

from quoteboard.errors import SubscribeError
from quoteboard.market.interface import FeedSource

_CLOSE = object()
_NON_QUOTE = object()


class FakeSource(FeedSource):
    def __init__(self) -> None:
        self.queue: asyncio.Queue = asyncio.Queue()
        self.in_flight = 0
        self.max_in_flight = 0
        self.recv_calls = 0
        self.close_calls = 0
        self.subscribed: list[str] = []
        self.reject: set[str] = set()
        self._closed = False

    @classmethod
    async def create(cls, setting) -> "FakeSource":
        return cls()

    async def subscribe(self, symbol: str) -> None:
        if symbol in self.reject:
            raise SubscribeError(f"rejected {symbol}")
        self.subscribed.append(symbol)

    async def unsubscribe(self, symbol: str) -> None:
        self.subscribed.remove(symbol)

    async def recv(self):
        if self._closed:
            return None
        self.recv_calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            item = await self.queue.get()
        finally:
            self.in_flight -= 1
        if item is _CLOSE:
            self._closed = True
            return None
        if item is _NON_QUOTE:
            return None
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    def get_symbols(self) -> list[str]:
        return list(self.subscribed)

    # --- test controls ---

    def push(self, record) -> None:
        self.queue.put_nowait(record)

    def push_non_quote(self) -> None:
        self.queue.put_nowait(_NON_QUOTE)

    def fail(self, exc: Exception) -> None:
        self.queue.put_nowait(exc)

    def finish(self) -> None:
        self.queue.put_nowait(_CLOSE)


@pytest.fixture
def fake_source():
    """Factory for FakeSource instances."""
    return FakeSource
