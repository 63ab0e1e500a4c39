"""Fan-in of many feed sources into one ordered quote stream."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter, deque
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from ..errors import InitError, SubscribeError
from .factory import SourceKind, configured_kinds, create_feed_source
from .interface import FeedSource
from .models import QuoteRecord

if TYPE_CHECKING:
    from ..config import Setting

logger = logging.getLogger(__name__)


class SourceMultiplexer:
    """Merge push updates from N feed sources into a single stream.

    Exactly one recv() is outstanding per active source. When a receive
    completes, that source is re-armed before the result is handed out, so
    a slow source never holds up a fast one and no source ever has two
    receives in flight.

    Completed receives are consumed in completion order, one per next()
    call. Within a source, records come out in the order the source
    produced them.

    Usage:
        async with await SourceMultiplexer.create(setting) as mux:
            async for record in mux:
                renderer.refresh_stock(record)
    """

    def __init__(
        self,
        sources: dict[str, FeedSource],
        failures: dict[str, str] | None = None,
    ) -> None:
        self._sources = dict(sources)
        self.failures: dict[str, str] = dict(failures or {})  # source name -> InitError text
        self._pending: dict[asyncio.Task, str] = {}
        self._completed: deque[asyncio.Task] = deque()
        self._retired: set[str] = set()
        self._started = False
        self._closing = False

    @classmethod
    async def create(cls, setting: Setting) -> SourceMultiplexer:
        """Build every configured source and subscribe the watch-list.

        A source that fails to build is left out and recorded in `failures`.
        A rejected subscription aborts construction (SubscribeError).
        """
        sources: dict[str, FeedSource] = {}
        failures: dict[str, str] = {}
        for kind in configured_kinds(setting):
            try:
                sources[kind.value] = await create_feed_source(kind, setting)
            except InitError as exc:
                failures[kind.value] = str(exc)
                logger.warning("Feed source %s unavailable: %s", kind.value, exc)

        known = {kind.value for kind in SourceKind}
        try:
            for entry in setting.stock:
                source = sources.get(entry.source)
                if source is None:
                    reason = "unknown source" if entry.source not in known else "source not active"
                    logger.warning("%s will not update: %s %r", entry.symbol, reason, entry.source)
                    continue
                await source.subscribe(entry.symbol)
        except SubscribeError:
            for name, source in sources.items():
                await _close_quietly(name, source)
            raise

        logger.info(
            "Multiplexer ready: %d active source(s), %d failed",
            len(sources),
            len(failures),
        )
        return cls(sources, failures)

    # --- Steady state ---

    async def next(self) -> QuoteRecord | None:
        """Return the next record from whichever source finishes first.

        Returns None when the completed receive carried no record (a
        filtered push event or a retired source), and None immediately once
        the multiplexer is closed.
        """
        self._start()
        while True:
            while not self._completed:
                if not self._pending:
                    return None
                await asyncio.wait(set(self._pending), return_when=asyncio.FIRST_COMPLETED)

            task = self._completed.popleft()
            name = self._pending.pop(task, None)
            if name is None or task.cancelled():
                continue
            return self._consume(name, task)

    def __aiter__(self) -> AsyncIterator[QuoteRecord]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[QuoteRecord]:
        while True:
            record = await self.next()
            if record is not None:
                yield record
            elif self.closed:
                return

    @property
    def closed(self) -> bool:
        """True when no receive is outstanding and none ever will be again."""
        return (self._started or self._closing) and not self._pending

    @property
    def active_sources(self) -> list[str]:
        """Names of sources that are still armed."""
        return [name for name in self._sources if name not in self._retired]

    def pending_counts(self) -> dict[str, int]:
        """Outstanding receives per source name."""
        counts = Counter(self._pending.values())
        return {name: counts.get(name, 0) for name in self._sources}

    # --- Shutdown ---

    async def aclose(self) -> None:
        """Stop re-arming, cancel outstanding receives, close every source.

        Receives that already completed can still be drained with next().
        Safe to call more than once.
        """
        if self._closing:
            return
        self._closing = True

        waiting = [task for task in self._pending if not task.done()]
        for task in waiting:
            task.cancel()
        await asyncio.gather(*waiting, return_exceptions=True)
        for task in waiting:
            self._pending.pop(task, None)
        self._completed = deque(task for task in self._completed if task in self._pending)

        for name, source in self._sources.items():
            await _close_quietly(name, source)
        logger.info("Multiplexer closed")

    async def __aenter__(self) -> SourceMultiplexer:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    # --- Internal ---

    def _start(self) -> None:
        if self._started or self._closing:
            return
        self._started = True
        for name in self._sources:
            self._arm(name)

    def _arm(self, name: str) -> None:
        if name in self._pending.values():
            raise RuntimeError(f"source {name} already has a receive outstanding")
        task = asyncio.create_task(self._sources[name].recv(), name=f"recv-{name}")
        self._pending[task] = name
        task.add_done_callback(self._completed.append)

    def _consume(self, name: str, task: asyncio.Task) -> QuoteRecord | None:
        source = self._sources[name]
        exc = task.exception()
        if exc is not None:
            logger.error("Feed source %s failed, retiring it", name, exc_info=exc)
            self._retired.add(name)
            return None

        record = task.result()
        if record is None and source.closed:
            logger.info("Feed source %s closed its channel, retiring it", name)
            self._retired.add(name)
            return None

        if not self._closing:
            self._arm(name)
        return record


async def _close_quietly(name: str, source: FeedSource) -> None:
    try:
        await source.close()
    except Exception:
        logger.exception("Error while closing feed source %s", name)
