"""Column layout policy and cell formatting for the quote table."""

from __future__ import annotations

from enum import Enum
from typing import NamedTuple

from ..errors import LayoutError
from ..market.models import QuoteRecord

MIN_WIDTH = 24
FULL_LAYOUT_WIDTH = 51


class ColumnKind(Enum):
    """A table column. The value is its header label."""

    NAME = "symbol"
    OPEN = "open"
    LAST = "current"
    LOW = "low"
    HIGH = "high"


class Column(NamedTuple):
    width: int
    kind: ColumnKind


def plan_columns(width: int) -> list[Column]:
    """Lay out the columns for a terminal `width` characters wide.

    - below 24: unusable, LayoutError
    - 24 to 50: symbol and current price, split 7:16 per 23 columns
    - 51 and up: all five columns, 7:8:16:8:8 per 51 columns
    """
    if width < MIN_WIDTH:
        raise LayoutError(f"Width is too small: {width} < {MIN_WIDTH}")

    if width < FULL_LAYOUT_WIDTH:
        name_width = width // 23 * 7
        return [
            Column(name_width, ColumnKind.NAME),
            Column(width - name_width, ColumnKind.LAST),
        ]

    unit = width // FULL_LAYOUT_WIDTH
    return [
        Column(unit * 7, ColumnKind.NAME),
        Column(unit * 8, ColumnKind.OPEN),
        Column(unit * 16, ColumnKind.LAST),
        Column(unit * 8, ColumnKind.LOW),
        Column(unit * 8, ColumnKind.HIGH),
    ]


def format_last(record: QuoteRecord) -> str:
    """Last price with its change against the open, e.g. ``101.230(1.23%)``."""
    percent = record.change_percent
    if percent is None:
        return f"{record.last_done:.3f}(N/A)"
    return f"{record.last_done:.3f}({percent:.2f}%)"


def cell_text(kind: ColumnKind, record: QuoteRecord | None) -> str:
    """Unpadded text of a cell; the header label when there is no record."""
    if record is None:
        return kind.value
    if kind is ColumnKind.NAME:
        return record.symbol
    if kind is ColumnKind.OPEN:
        return str(record.open)
    if kind is ColumnKind.LAST:
        return format_last(record)
    if kind is ColumnKind.LOW:
        return str(record.low)
    if kind is ColumnKind.HIGH:
        return str(record.high)
    raise ValueError(f"unknown column kind: {kind!r}")


def format_cell(kind: ColumnKind, record: QuoteRecord | None, width: int) -> str:
    """Right-align a cell to exactly `width` characters."""
    return cell_text(kind, record)[:width].rjust(width)


def format_row(plan: list[Column], record: QuoteRecord | None) -> str:
    """One table line: the header row when `record` is None."""
    return "".join(format_cell(column.kind, record, column.width) for column in plan)
