"""Keyset (cursor) pagination engine for Pinboard API.

A request is paginated in two steps around the query executor:

1. ``plan`` turns :class:`PaginationParams` into a :class:`Predicate`
   (ordering, over-fetching limit and filter) for the executor to run.
2. :meth:`CursorPagination.reduce` turns the rows the executor returned into a
   :class:`PageResult`: the visible page plus a start/end/next cursor bundle.

Both steps are pure. Preconditions (a positive ``limit`` and a sortable
``field``) are the caller's responsibility and are not checked here.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import total_ordering
from typing import Any, Generic, List, Mapping, NamedTuple, Optional, Sequence, TypeVar, Union


FieldT = TypeVar("FieldT")
RowT = TypeVar("RowT", bound=Mapping[str, Any])

CursorValue = Union[int, float, str, datetime]


class SortDirection(str, Enum):
    """Sort direction of the single pagination column."""

    ASC = "asc"
    DESC = "desc"


class Comparator(str, Enum):
    """Inclusive comparison used to resume from a cursor."""

    GTE = ">="
    LTE = "<="


class CursorKind(str, Enum):
    """Scalar kinds a cursor can carry."""

    INTEGER = "integer"
    FLOAT = "float"
    TEXT = "text"
    TIMESTAMP = "timestamp"


_KIND_TYPES = {
    CursorKind.INTEGER: int,
    CursorKind.FLOAT: float,
    CursorKind.TEXT: str,
    CursorKind.TIMESTAMP: datetime,
}


@total_ordering
@dataclass(frozen=True)
class Cursor:
    """
    Resumption point: the sort-field value of some row, tagged with its kind.

    Cursors only compare with cursors of the same kind; comparing an integer
    cursor with a text cursor raises ``TypeError``.
    """
    kind: CursorKind
    value: CursorValue

    def __post_init__(self):
        """Check that the value matches its kind."""
        kind = CursorKind(self.kind)
        object.__setattr__(self, "kind", kind)

        value = self.value
        if isinstance(value, bool):
            raise TypeError("Boolean values cannot be used as cursors")
        if kind is CursorKind.FLOAT and isinstance(value, int):
            value = float(value)
            object.__setattr__(self, "value", value)
        if not isinstance(value, _KIND_TYPES[kind]):
            raise TypeError(
                f"Cursor of kind '{kind.value}' cannot hold {type(value).__name__} value"
            )

    @classmethod
    def from_value(cls, value: Any) -> "Cursor":
        """
        Build a cursor from a raw column value, inferring its kind.

        Args:
            value: Column value taken from a row

        Returns:
            Cursor wrapping the value

        Raises:
            TypeError: If the value is not one of the supported scalar kinds
        """
        if isinstance(value, bool):
            raise TypeError("Boolean values cannot be used as cursors")
        if isinstance(value, int):
            return cls(CursorKind.INTEGER, value)
        if isinstance(value, float):
            return cls(CursorKind.FLOAT, value)
        if isinstance(value, str):
            return cls(CursorKind.TEXT, value)
        if isinstance(value, datetime):
            return cls(CursorKind.TIMESTAMP, value)
        raise TypeError(f"Unsupported cursor value type: {type(value).__name__}")

    def _check_comparable(self, other: "Cursor") -> None:
        if self.kind is not other.kind:
            raise TypeError(
                f"Cannot compare {self.kind.value} cursor with {other.kind.value} cursor"
            )

    def __lt__(self, other):
        if not isinstance(other, Cursor):
            return NotImplemented
        self._check_comparable(other)
        return self.value < other.value


class OrderBy(NamedTuple):
    """Single-column ordering."""
    field: Any
    direction: SortDirection


@dataclass(frozen=True)
class Where(Generic[FieldT]):
    """
    Filter of a planned query.

    With no cursor the filter matches every row; otherwise it reads
    ``field <comparator> cursor``.
    """
    field: Optional[FieldT] = None
    comparator: Optional[Comparator] = None
    cursor: Optional[Cursor] = None

    @property
    def is_tautology(self) -> bool:
        return self.cursor is None


@dataclass(frozen=True)
class PaginationParams(Generic[FieldT]):
    """Caller-supplied pagination parameters for one request."""
    field: FieldT
    sort_direction: SortDirection
    limit: int  # specified limit, must be positive
    cursor: Optional[Cursor] = None


@dataclass(frozen=True)
class Predicate(Generic[FieldT]):
    """Ordering, limit and filter handed to the query executor."""
    order_by: OrderBy
    limit: int  # queried limit
    where: "Where[FieldT]"


@dataclass(frozen=True)
class Cursors:
    """Cursor bundle returned alongside a page."""
    start: Optional[Cursor] = None
    end: Optional[Cursor] = None
    next: Optional[Cursor] = None


@dataclass
class PageResult(Generic[RowT]):
    """Visible page of rows plus its cursor bundle."""
    items: List[RowT] = field(default_factory=list)
    cursors: Cursors = field(default_factory=Cursors)

    @property
    def has_more(self) -> bool:
        return self.cursors.next is not None


class PaginationStateError(RuntimeError):
    """
    Raised when the executor returned a row count the plan cannot produce.

    This is a broken contract with the query executor (for example it ignored
    the limit), not an empty result, and must not be handled as one.
    """

    def __init__(self, row_count: int, specified_limit: int, queried_limit: int):
        self.row_count = row_count
        self.specified_limit = specified_limit
        self.queried_limit = queried_limit
        super().__init__(
            f"Invalid cursor pagination state: received {row_count} rows for "
            f"specified limit {specified_limit} (queried limit {queried_limit})"
        )


def plan(params: PaginationParams[FieldT]) -> Predicate[FieldT]:
    """Derive the query predicate for a pagination request.

    The limit is over-fetched by one so the reducer can tell whether another
    page exists. The cursor comparison is inclusive, so the row a cursor was
    taken from is part of the next page.

    Args:
        params: Pagination parameters of the request

    Returns:
        Predicate to run against the query executor
    """
    order_by = OrderBy(params.field, SortDirection(params.sort_direction))

    if params.cursor is None:
        where = Where()
    else:
        comparator = Comparator.GTE if order_by.direction is SortDirection.ASC else Comparator.LTE
        where = Where(field=params.field, comparator=comparator, cursor=params.cursor)

    return Predicate(order_by=order_by, limit=params.limit + 1, where=where)


class CursorPagination(Generic[FieldT]):
    """
    Pagination state for a single request.

    Holds the planned predicate and reduces the rows produced by running it.
    Instances are not shared between requests.
    """

    def __init__(self, params: PaginationParams[FieldT]):
        self.params = params
        self.predicate = plan(params)

    @property
    def specified_limit(self) -> int:
        return self.params.limit

    @property
    def queried_limit(self) -> int:
        return self.predicate.limit

    def _cursor_at(self, rows: Sequence[RowT], index: int) -> Cursor:
        return Cursor.from_value(rows[index][self.params.field])

    def reduce(self, rows: Sequence[RowT]) -> PageResult[RowT]:
        """
        Reduce executor rows to the visible page and its cursors.

        Args:
            rows: Rows returned for ``self.predicate``, already sorted

        Returns:
            Page trimmed to the specified limit with start/end/next cursors

        Raises:
            PaginationStateError: If more rows than the queried limit came back
        """
        row_count = len(rows)
        start = self.params.cursor

        if row_count == 0:
            return PageResult(items=[], cursors=Cursors(start=start, end=start))

        if row_count <= self.specified_limit:
            return PageResult(
                items=list(rows),
                cursors=Cursors(start=start, end=self._cursor_at(rows, row_count - 1)),
            )

        if row_count == self.queried_limit:
            # The extra row only supplies the next cursor.
            return PageResult(
                items=list(rows[:self.specified_limit]),
                cursors=Cursors(
                    start=start,
                    end=self._cursor_at(rows, self.specified_limit - 1),
                    next=self._cursor_at(rows, self.specified_limit),
                ),
            )

        raise PaginationStateError(row_count, self.specified_limit, self.queried_limit)


def make_cursor_pagination(params: PaginationParams[FieldT]) -> CursorPagination[FieldT]:
    """Plan a request and return the state needed to reduce its rows."""
    return CursorPagination(params)
