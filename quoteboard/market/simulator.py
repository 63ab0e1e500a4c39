"""GBM-based quote simulator."""

from __future__ import annotations

import asyncio
import logging
import math
import random
from datetime import datetime, timezone
from decimal import Decimal

import numpy as np

from ..errors import InitError, SubscribeError
from .channel import PushChannel
from .interface import FeedSource
from .models import QuoteRecord
from .seed_prices import (
    CORRELATION_GROUPS,
    CROSS_GROUP_CORR,
    DEFAULT_PARAMS,
    INTRA_FINANCE_CORR,
    INTRA_HK_INTERNET_CORR,
    INTRA_TECH_CORR,
    SEED_PRICES,
    SYMBOL_PARAMS,
    TSLA_CORR,
    base_symbol,
)

logger = logging.getLogger(__name__)


class GBMSimulator:
    """Geometric Brownian Motion simulator for correlated stock prices.

    Math:
        S(t+dt) = S(t) * exp((mu - sigma^2/2) * dt + sigma * sqrt(dt) * Z)

    Where:
        S(t)   = current price
        mu     = annualized drift (expected return)
        sigma  = annualized volatility
        dt     = time step as fraction of a trading year
        Z      = correlated standard normal random variable

    Besides the last price, the simulator keeps the session open (the seed
    price) and the session high/low, so every step can be turned into a
    full quote.
    """

    TRADING_SECONDS_PER_YEAR = 252 * 6.5 * 3600  # 5,896,800

    def __init__(self, update_interval: float = 0.5, event_probability: float = 0.001) -> None:
        # One step covers update_interval seconds of a trading year
        self._dt = update_interval / self.TRADING_SECONDS_PER_YEAR
        self._event_prob = event_probability

        # Per-symbol state
        self._symbols: list[str] = []
        self._prices: dict[str, float] = {}
        self._opens: dict[str, float] = {}
        self._highs: dict[str, float] = {}
        self._lows: dict[str, float] = {}
        self._params: dict[str, dict[str, float]] = {}

        self._cholesky: np.ndarray | None = None

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    def step(self) -> dict[str, float]:
        """Advance all symbols by one time step. Returns {symbol: new_price}."""
        n = len(self._symbols)
        if n == 0:
            return {}

        z_independent = np.random.standard_normal(n)
        if self._cholesky is not None:
            z_correlated = self._cholesky @ z_independent
        else:
            z_correlated = z_independent

        result: dict[str, float] = {}
        for i, symbol in enumerate(self._symbols):
            params = self._params[symbol]
            mu = params["mu"]
            sigma = params["sigma"]

            drift = (mu - 0.5 * sigma**2) * self._dt
            diffusion = sigma * math.sqrt(self._dt) * z_correlated[i]
            self._prices[symbol] *= math.exp(drift + diffusion)

            # Rare jump: 2-5% in either direction
            if random.random() < self._event_prob:
                shock_magnitude = random.uniform(0.02, 0.05)
                shock_sign = random.choice([-1, 1])
                self._prices[symbol] *= 1 + shock_magnitude * shock_sign
                logger.debug(
                    "Random event on %s: %.1f%% %s",
                    symbol,
                    shock_magnitude * 100,
                    "up" if shock_sign > 0 else "down",
                )

            price = round(self._prices[symbol], 3)
            self._highs[symbol] = max(self._highs[symbol], price)
            self._lows[symbol] = min(self._lows[symbol], price)
            result[symbol] = price

        return result

    def add_symbol(self, symbol: str) -> None:
        """Add a symbol, seeded at its known price. Rebuilds the correlation matrix."""
        if symbol in self._prices:
            return
        key = base_symbol(symbol)
        seed = round(SEED_PRICES.get(key, random.uniform(50.0, 300.0)), 3)
        self._symbols.append(symbol)
        self._prices[symbol] = seed
        self._opens[symbol] = seed
        self._highs[symbol] = seed
        self._lows[symbol] = seed
        self._params[symbol] = SYMBOL_PARAMS.get(key, dict(DEFAULT_PARAMS))
        self._rebuild_cholesky()

    def remove_symbol(self, symbol: str) -> None:
        """Remove a symbol from the simulation. Rebuilds the correlation matrix."""
        if symbol not in self._prices:
            return
        self._symbols.remove(symbol)
        for state in (self._prices, self._opens, self._highs, self._lows, self._params):
            del state[symbol]
        self._rebuild_cholesky()

    def quote(self, symbol: str, timestamp: datetime | None = None) -> QuoteRecord:
        """Snapshot a tracked symbol as a QuoteRecord."""
        return QuoteRecord(
            symbol=symbol,
            timestamp=timestamp or datetime.now(timezone.utc),
            last_done=_to_decimal(self._prices[symbol]),
            open=_to_decimal(self._opens[symbol]),
            high=_to_decimal(self._highs[symbol]),
            low=_to_decimal(self._lows[symbol]),
        )

    def _rebuild_cholesky(self) -> None:
        """Rebuild the Cholesky decomposition of the symbol correlation matrix."""
        n = len(self._symbols)
        if n <= 1:
            self._cholesky = None
            return

        corr = np.eye(n)
        for i in range(n):
            for j in range(i + 1, n):
                rho = self._pairwise_correlation(self._symbols[i], self._symbols[j])
                corr[i, j] = rho
                corr[j, i] = rho

        self._cholesky = np.linalg.cholesky(corr)

    @staticmethod
    def _pairwise_correlation(s1: str, s2: str) -> float:
        """Correlation between two symbols based on sector grouping."""
        tech = CORRELATION_GROUPS["tech"]
        finance = CORRELATION_GROUPS["finance"]
        hk_internet = CORRELATION_GROUPS["hk_internet"]
        s1, s2 = base_symbol(s1), base_symbol(s2)

        if s1 == "TSLA" or s2 == "TSLA":
            return TSLA_CORR

        if s1 in tech and s2 in tech:
            return INTRA_TECH_CORR
        if s1 in finance and s2 in finance:
            return INTRA_FINANCE_CORR
        if s1 in hk_internet and s2 in hk_internet:
            return INTRA_HK_INTERNET_CORR

        return CROSS_GROUP_CORR


def _to_decimal(price: float) -> Decimal:
    return Decimal(f"{price:.3f}")


class SimulatorSource(FeedSource):
    """FeedSource backed by the GBM simulator.

    A background task steps the simulation every `update_interval` seconds
    and pushes one QuoteRecord per subscribed symbol into the channel.
    Needs no credentials, only a `simulator` block in the setting.
    """

    def __init__(
        self,
        update_interval: float = 0.5,
        event_probability: float = 0.001,
    ) -> None:
        self._interval = update_interval
        self._sim = GBMSimulator(update_interval, event_probability)
        self._channel: PushChannel[QuoteRecord] = PushChannel()
        self._task: asyncio.Task | None = None

    @classmethod
    async def create(cls, setting) -> SimulatorSource:
        options = setting.simulator
        setting.simulator = None
        if options is None:
            raise InitError("simulator is not configured")

        source = cls(
            update_interval=options.update_interval,
            event_probability=options.event_probability,
        )
        source.start()
        return source

    def start(self) -> None:
        """Start the stepping task. Must be called from a running loop."""
        if self._task is None:
            self._task = asyncio.create_task(self._run_loop(), name="simulator-loop")
            logger.info("Simulator started: %.2fs interval", self._interval)

    async def subscribe(self, symbol: str) -> None:
        if self._channel.closed or self._task is None:
            raise SubscribeError(f"simulator is not running, cannot subscribe {symbol}")
        self._sim.add_symbol(symbol)
        # First push: the seed quote, so the row shows up right away
        self._channel.put(self._sim.quote(symbol))
        logger.info("Simulator: subscribed %s", symbol)

    async def unsubscribe(self, symbol: str) -> None:
        if self._channel.closed or self._task is None:
            raise SubscribeError(f"simulator is not running, cannot unsubscribe {symbol}")
        self._sim.remove_symbol(symbol)
        logger.info("Simulator: unsubscribed %s", symbol)

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
        self._channel.close()
        logger.info("Simulator stopped")

    @property
    def closed(self) -> bool:
        return self._channel.closed

    def get_symbols(self) -> list[str]:
        return self._sim.symbols

    async def _run_loop(self) -> None:
        """Core loop: step the simulation, push quotes, sleep."""
        while True:
            try:
                now = datetime.now(timezone.utc)
                for symbol in self._sim.step():
                    self._channel.put(self._sim.quote(symbol, now))
            except Exception:
                logger.exception("Simulator step failed")
            await asyncio.sleep(self._interval)
