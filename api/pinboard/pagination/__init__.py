"""Pagination module for cursor-based pagination."""

from .cursor import (
    Comparator,
    Cursor,
    CursorKind,
    CursorPagination,
    Cursors,
    OrderBy,
    PageResult,
    PaginationParams,
    PaginationStateError,
    Predicate,
    SortDirection,
    Where,
    make_cursor_pagination,
    plan
)
from .links import create_link_header
from .tokens import CursorToken, decode_cursor, encode_cursor

__all__ = [
    "Comparator",
    "Cursor",
    "CursorKind",
    "CursorPagination",
    "Cursors",
    "OrderBy",
    "PageResult",
    "PaginationParams",
    "PaginationStateError",
    "Predicate",
    "SortDirection",
    "Where",
    "make_cursor_pagination",
    "plan",
    "create_link_header",
    "CursorToken",
    "decode_cursor",
    "encode_cursor"
]
