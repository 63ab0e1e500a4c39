"""Abstract interface for upstream quote feeds."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from .models import QuoteRecord

if TYPE_CHECKING:
    from ..config import Setting


class FeedSource(ABC):
    """Contract for upstream market-data providers.

    A source delivers push updates for its subscribed symbols one at a time
    through recv(). It is owned by a single SourceMultiplexer, which never
    has more than one recv() in flight against it.

    Lifecycle:
        source = await SomeSource.create(setting)   # consumes its credentials
        await source.subscribe("700.HK")
        while (record := await source.recv()) is not None or not source.closed:
            ...
        await source.close()
    """

    @classmethod
    @abstractmethod
    async def create(cls, setting: Setting) -> FeedSource:
        """Build a connected source from its block of the setting.

        Takes the block out of the setting (sets it to None) so the same
        credentials cannot be used by a second construction attempt.
        Raises InitError when the block is missing or the handshake fails.
        """

    @abstractmethod
    async def subscribe(self, symbol: str) -> None:
        """Start receiving push updates for a symbol. Raises SubscribeError."""

    @abstractmethod
    async def unsubscribe(self, symbol: str) -> None:
        """Stop receiving push updates for a symbol. Raises SubscribeError."""

    @abstractmethod
    async def recv(self) -> QuoteRecord | None:
        """Wait for the next push update.

        Returns None for a push event that is not a quote, and None forever
        once the channel is permanently closed (see `closed`).
        """

    @abstractmethod
    async def close(self) -> None:
        """Release upstream resources and close the channel. Safe to call twice."""

    @property
    @abstractmethod
    def closed(self) -> bool:
        """True once the source will never produce again."""

    @abstractmethod
    def get_symbols(self) -> list[str]:
        """Return the currently subscribed symbols."""
