"""Paginated quote table that redraws only the rows that change."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType

from ..errors import LayoutError
from ..market.models import QuoteRecord
from .interface import Renderer
from .layout import Column, format_row, plan_columns

logger = logging.getLogger(__name__)

# Header line plus status line
RESERVED_LINES = 2
MIN_HEIGHT = RESERVED_LINES + 1
PLACEHOLDER = "-"


class PagedTableRenderer(Renderer):
    """Cursor-addressed quote table.

    Screen layout: line 0 is the column header, lines 1..page_size hold the
    rows of the current page, and the line after them is the status line.
    Row i of `stocks` is visible when i // page_size + 1 == page_no.

    The renderer owns its console exclusively. Every update moves the
    cursor to one line, clears it and rewrites it; nothing else is touched.
    """

    def __init__(self, width: int, height: int, console: Console | None = None) -> None:
        if height < MIN_HEIGHT:
            raise LayoutError(f"Height is too small: {height} < {MIN_HEIGHT}")
        self._console = console or Console(highlight=False)
        self._page_no = 1
        self._page_size = height - RESERVED_LINES
        self._stocks: list[QuoteRecord] = []
        self._index_by_symbol: dict[str, int] = {}
        self._column_plan: list[Column] = []

    @property
    def page_no(self) -> int:
        return self._page_no

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def column_plan(self) -> list[Column]:
        return list(self._column_plan)

    @property
    def stocks(self) -> list[QuoteRecord]:
        return list(self._stocks)

    def index_of(self, symbol: str) -> int | None:
        return self._index_by_symbol.get(symbol)

    def render(self, width: int, height: int, stocks: list[QuoteRecord], command: str) -> None:
        plan = plan_columns(width)
        if height < MIN_HEIGHT:
            raise LayoutError(f"Height is too small: {height} < {MIN_HEIGHT}")

        self._page_size = height - RESERVED_LINES
        self._column_plan = plan
        self._stocks = []
        self._index_by_symbol = {}
        for record in stocks:
            self._store(record)

        self._console.control(Control.clear())
        self._write_line(0, format_row(plan, None))
        first = (self._page_no - 1) * self._page_size
        for slot in range(self._page_size):
            index = first + slot
            if index < len(self._stocks):
                self._write_line(slot + 1, format_row(plan, self._stocks[index]))
            else:
                self._write_line(slot + 1, self._placeholder_row())
        self.refresh_command(command)
        logger.debug(
            "Full render %dx%d: %d stocks, %d columns, page %d",
            width,
            height,
            len(self._stocks),
            len(plan),
            self._page_no,
        )

    def refresh_stock(self, record: QuoteRecord) -> None:
        self._refresh_index(self._store(record))

    def refresh_command(self, command: str) -> None:
        self._write_line(self._page_size + 1, command)

    # --- Internal ---

    def _store(self, record: QuoteRecord) -> int:
        """Replace the symbol's slot, or append a new one. Returns the index."""
        index = self._index_by_symbol.get(record.symbol)
        if index is None:
            self._stocks.append(record)
            index = len(self._stocks) - 1
            self._index_by_symbol[record.symbol] = index
        else:
            self._stocks[index] = record
        return index

    def _refresh_index(self, index: int) -> None:
        if not self._column_plan:
            return  # nothing laid out yet
        page = index // self._page_size
        if page + 1 != self._page_no:
            return
        if index >= len(self._stocks):
            return
        line = index - page * self._page_size + 1
        self._write_line(line, format_row(self._column_plan, self._stocks[index]))

    def _placeholder_row(self) -> str:
        return "".join(PLACEHOLDER.rjust(column.width) for column in self._column_plan)

    def _write_line(self, line: int, text: str) -> None:
        self._console.control(
            Control.move_to(0, line),
            Control((ControlType.ERASE_IN_LINE, 2)),
        )
        self._console.out(text, end="", highlight=False)
        self._console.file.flush()
