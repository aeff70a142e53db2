"""Cursors and result formatting."""

from esmongo.execution.cursor import (
    DEFAULT_PAGE_SIZE,
    Cursor,
    CursorState,
    FilterCursor,
    ResultList,
)
from esmongo.execution.result_formatter import ResultFormatter

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Cursor",
    "CursorState",
    "FilterCursor",
    "ResultList",
    "ResultFormatter",
]
