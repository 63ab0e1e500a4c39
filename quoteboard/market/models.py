"""Data models for market data."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True, slots=True)
class QuoteRecord:
    """Immutable snapshot of a single security's price state at a point in time.

    Prices are exact decimals so percentage display never drifts.
    """

    symbol: str
    timestamp: datetime  # time of the last-done price
    last_done: Decimal
    open: Decimal
    high: Decimal
    low: Decimal

    @property
    def change_percent(self) -> Decimal | None:
        """Percentage change of last_done against the open. None when open is zero."""
        if self.open == 0:
            return None
        return (self.last_done - self.open) * 100 / self.open

    def to_dict(self) -> dict:
        """Serialize for logging / JSON."""
        return {
            "symbol": self.symbol,
            "timestamp": self.timestamp.isoformat(),
            "last_done": str(self.last_done),
            "open": str(self.open),
            "high": str(self.high),
            "low": str(self.low),
        }
