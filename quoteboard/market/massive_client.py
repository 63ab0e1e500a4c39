"""Massive (Polygon.io) API client as a polled quote feed."""

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


class MassiveSource(FeedSource):
    """FeedSource backed by the Massive (Polygon.io) REST API.

    Polls GET /v2/snapshot/locale/us/markets/stocks/tickers for all
    subscribed symbols in a single API call and pushes a QuoteRecord for
    every symbol whose last trade moved since the previous poll.

    Rate limits:
      - Free tier: 5 req/min → poll every 15s (default)
      - Paid tiers: higher limits → poll every 2-5s
    """

    def __init__(self, api_key: str, poll_interval: float = 15.0) -> None:
        self._api_key = api_key
        self._interval = poll_interval
        self._symbols: list[str] = []
        self._last_seen: dict[str, int] = {}  # symbol -> last trade timestamp (ms)
        self._channel: PushChannel[QuoteRecord] = PushChannel()
        self._task: asyncio.Task | None = None
        self._has_symbols = asyncio.Event()
        self._client: Any = None  # Lazy import to avoid hard dependency

    @classmethod
    async def create(cls, setting) -> MassiveSource:
        token = setting.massive
        setting.massive = None
        if token is None or not token.api_key.strip():
            raise InitError("Massive API key is not configured")

        source = cls(api_key=token.api_key, poll_interval=token.poll_interval)
        await source.connect()
        return source

    async def connect(self) -> None:
        """Build the REST client and start polling."""
        try:
            # Only import massive when this provider is configured
            from massive import RESTClient
        except ImportError as exc:
            raise InitError(f"massive package is not installed: {exc}") from exc

        self._client = RESTClient(api_key=self._api_key)
        self.start_polling()

    def start_polling(self) -> None:
        """Start the poll task. The first poll runs as soon as a symbol is subscribed."""
        if self._task is None:
            self._task = asyncio.create_task(self._poll_loop(), name="massive-poller")
            logger.info("Massive poller started: %.1fs interval", self._interval)

    async def subscribe(self, symbol: str) -> None:
        if self._client is None or self._channel.closed:
            raise SubscribeError(f"Massive client is not connected, cannot subscribe {symbol}")
        symbol = symbol.upper().strip()
        if symbol not in self._symbols:
            self._symbols.append(symbol)
            self._has_symbols.set()
            logger.info("Massive: subscribed %s (will appear on next poll)", symbol)

    async def unsubscribe(self, symbol: str) -> None:
        if self._client is None or self._channel.closed:
            raise SubscribeError(f"Massive client is not connected, cannot unsubscribe {symbol}")
        symbol = symbol.upper().strip()
        self._symbols = [s for s in self._symbols if s != symbol]
        self._last_seen.pop(symbol, None)
        if not self._symbols:
            self._has_symbols.clear()
        logger.info("Massive: unsubscribed %s", symbol)

    async def recv(self) -> QuoteRecord | None:
        return await self._channel.get()

    async def close(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        self._client = None
        self._channel.close()
        logger.info("Massive poller stopped")

    @property
    def closed(self) -> bool:
        return self._channel.closed

    def get_symbols(self) -> list[str]:
        return list(self._symbols)

    # --- Internal ---

    async def _poll_loop(self) -> None:
        """Poll once symbols are subscribed, then on every interval."""
        while True:
            await self._has_symbols.wait()
            await self._poll_once()
            await asyncio.sleep(self._interval)

    async def _poll_once(self) -> None:
        """Execute one poll cycle: fetch snapshots, push changed quotes."""
        if not self._symbols or not self._client:
            return

        try:
            # The Massive RESTClient is synchronous, run it in a thread
            snapshots = await asyncio.to_thread(self._fetch_snapshots)
        except Exception as e:
            # Retried on the next interval. Typical: 401, 429, network errors.
            logger.error("Massive poll failed: %s", e)
            return

        pushed = 0
        for snap in snapshots:
            try:
                record, trade_ms = translate_snapshot(snap)
            except (AttributeError, TypeError, ArithmeticError) as e:
                logger.warning(
                    "Skipping snapshot for %s: %s",
                    getattr(snap, "ticker", "???"),
                    e,
                )
                continue
            if self._last_seen.get(record.symbol) == trade_ms:
                continue
            self._last_seen[record.symbol] = trade_ms
            self._channel.put(record)
            pushed += 1
        logger.debug("Massive poll: pushed %d/%d symbols", pushed, len(self._symbols))

    def _fetch_snapshots(self) -> list:
        """Synchronous call to the Massive REST API. Runs in a thread."""
        from massive.rest.models import SnapshotMarketType

        return self._client.get_snapshot_all(
            market_type=SnapshotMarketType.STOCKS,
            tickers=self._symbols,
        )


def translate_snapshot(snap: Any) -> tuple[QuoteRecord, int]:
    """Turn a Massive ticker snapshot into a QuoteRecord.

    Returns the record and the last-trade timestamp in Unix milliseconds.
    """
    trade_ms = int(snap.last_trade.timestamp)
    record = QuoteRecord(
        symbol=snap.ticker,
        timestamp=datetime.fromtimestamp(trade_ms / 1000.0, tz=timezone.utc),
        last_done=Decimal(str(snap.last_trade.price)),
        open=Decimal(str(snap.day.open)),
        high=Decimal(str(snap.day.high)),
        low=Decimal(str(snap.day.low)),
    )
    return record, trade_ms
