"""Pytest configuration and fixtures."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from quoteboard.market.models import QuoteRecord


@pytest.fixture
def event_loop_policy():
    """Use the default event loop policy for all async tests."""
    import asyncio

    return asyncio.DefaultEventLoopPolicy()


@pytest.fixture
def make_record():
    """Build a QuoteRecord from plain strings."""

    def _make(
        symbol: str = "AAPL.US",
        last_done: str = "101.230",
        open: str = "100.000",
        high: str = "102.000",
        low: str = "99.500",
    ) -> QuoteRecord:
        return QuoteRecord(
            symbol=symbol,
            timestamp=datetime(2024, 2, 10, 14, 30, tzinfo=timezone.utc),
            last_done=Decimal(last_done),
            open=Decimal(open),
            high=Decimal(high),
            low=Decimal(low),
        )

    return _make
