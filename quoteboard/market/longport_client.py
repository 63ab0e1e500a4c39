"""LongPort OpenAPI push-quote feed."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from ..errors import InitError, SubscribeError
from .channel import PushChannel
from .interface import FeedSource
from .models import QuoteRecord

logger = logging.getLogger(__name__)


class LongPortSource(FeedSource):
    """FeedSource backed by LongPort's quote push channel.

    The SDK calls the quote callback on its own thread. The callback only
    hands the raw event to the event loop; translation into a QuoteRecord
    happens in recv(), on the loop.
    """

    def __init__(self, quote_ctx: Any, loop: asyncio.AbstractEventLoop) -> None:
        self._ctx = quote_ctx
        self._symbols: list[str] = []
        self._channel: PushChannel[tuple[str, Any]] = PushChannel(loop)
        self._ctx.set_on_quote(self._on_quote)

    @classmethod
    async def create(cls, setting) -> LongPortSource:
        token = setting.long_port
        setting.long_port = None
        if token is None:
            raise InitError("LongPort token is not configured")

        try:
            from longport.openapi import Config, QuoteContext
        except ImportError as exc:
            raise InitError(f"longport package is not installed: {exc}") from exc

        config = Config(
            app_key=token.app_key,
            app_secret=token.app_secret,
            access_token=token.access_token,
            enable_overnight=token.enable_overnight,
        )
        try:
            # QuoteContext connects and authenticates synchronously
            ctx = await asyncio.to_thread(QuoteContext, config)
        except Exception as exc:
            raise InitError(f"LongPort handshake failed: {exc}") from exc

        logger.info("LongPort quote context connected")
        return cls(ctx, asyncio.get_running_loop())

    async def subscribe(self, symbol: str) -> None:
        if self._ctx is None:
            raise SubscribeError(f"LongPort context is closed, cannot subscribe {symbol}")
        from longport.openapi import SubType

        try:
            await asyncio.to_thread(self._ctx.subscribe, [symbol], [SubType.Quote], is_first_push=True)
        except Exception as exc:
            raise SubscribeError(f"LongPort rejected subscribe {symbol}: {exc}") from exc
        if symbol not in self._symbols:
            self._symbols.append(symbol)
        logger.info("LongPort: subscribed %s", symbol)

    async def unsubscribe(self, symbol: str) -> None:
        if self._ctx is None:
            raise SubscribeError(f"LongPort context is closed, cannot unsubscribe {symbol}")
        from longport.openapi import SubType

        try:
            await asyncio.to_thread(self._ctx.unsubscribe, [symbol], [SubType.Quote])
        except Exception as exc:
            raise SubscribeError(f"LongPort rejected unsubscribe {symbol}: {exc}") from exc
        self._symbols = [s for s in self._symbols if s != symbol]
        logger.info("LongPort: unsubscribed %s", symbol)

    async def recv(self) -> QuoteRecord | None:
        item = await self._channel.get()
        if item is None:
            return None
        symbol, event = item
        return translate_quote(symbol, event)

    async def close(self) -> None:
        if self._ctx is not None:
            self._ctx = None
            logger.info("LongPort quote context released")
        self._channel.close()

    @property
    def closed(self) -> bool:
        return self._channel.closed

    def get_symbols(self) -> list[str]:
        return list(self._symbols)

    def _on_quote(self, symbol: str, event: Any) -> None:
        """SDK thread callback."""
        self._channel.put_threadsafe((symbol, event))


def translate_quote(symbol: str, event: Any) -> QuoteRecord | None:
    """Turn a LongPort PushQuote into a QuoteRecord.

    Push events that carry no last-done price are not quotes and yield None.
    """
    last_done = getattr(event, "last_done", None)
    if last_done is None:
        return None

    timestamp = getattr(event, "timestamp", None)
    if not isinstance(timestamp, datetime):
        timestamp = datetime.now(timezone.utc)

    return QuoteRecord(
        symbol=symbol,
        timestamp=timestamp,
        last_done=Decimal(str(last_done)),
        open=Decimal(str(event.open)),
        high=Decimal(str(event.high)),
        low=Decimal(str(event.low)),
    )
