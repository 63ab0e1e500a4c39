"""Terminal rendering for the quote table.

Public API:
    Renderer            - Abstract interface for display surfaces
    PagedTableRenderer  - Incremental, paginated ANSI table
    ColumnKind, Column  - Column layout vocabulary
    plan_columns        - Width-driven layout policy
"""

from .interface import Renderer
from .layout import Column, ColumnKind, format_cell, format_row, plan_columns
from .paged_table import PagedTableRenderer

__all__ = [
    "Renderer",
    "PagedTableRenderer",
    "Column",
    "ColumnKind",
    "format_cell",
    "format_row",
    "plan_columns",
]
