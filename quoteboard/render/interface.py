"""Abstract interface for display surfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..market.models import QuoteRecord


class Renderer(ABC):
    """Contract for a surface that shows the live quote table.

    Construction is the init step: it receives the terminal size and must
    not change the terminal mode.
    """

    @abstractmethod
    def render(self, width: int, height: int, stocks: list[QuoteRecord], command: str) -> None:
        """Full redraw: on startup and whenever the terminal is resized.

        Raises LayoutError without touching the screen when the size is unusable.
        """

    @abstractmethod
    def refresh_stock(self, record: QuoteRecord) -> None:
        """Apply one update, redrawing only the affected row."""

    @abstractmethod
    def refresh_command(self, command: str) -> None:
        """Rewrite the status/command line."""
