"""
In-memory sorting and pagination for dashboard tables.

Tables are composed client-side (after joins and per-row metrics), so the
sort and the page slice happen here rather than in the store.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Generic, List, Sequence, TypeVar

T = TypeVar("T")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


@dataclass
class Page(Generic[T]):
    """One page of a sorted collection plus the pre-pagination count."""
    items: List[T]
    total_count: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return (self.total_count + self.limit - 1) // self.limit


def paginate(items: Sequence[T], page: int, limit: int) -> Page[T]:
    """Slice [(page-1)*limit, page*limit) out of items."""
    start = (page - 1) * limit
    return Page(
        items=list(items[start:start + limit]),
        total_count=len(items),
        page=page,
        limit=limit,
    )


def to_snake_case(name: str) -> str:
    """Column name as the tables key it: totalSales -> total_sales."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _sort_value(value: Any, kind: str) -> Any:
    if kind == "string":
        return str(value).lower()
    if kind == "date":
        return value.timestamp() if isinstance(value, datetime) else float(value)
    return float(value)


def sort_rows(
    rows: Sequence[T],
    get: Callable[[T], Any],
    kind: str,
    direction: str = "asc",
    tiebreak: Callable[[T], Any] = None,
) -> List[T]:
    """
    Sort rows by one column, nulls last in either direction.

    kind is "string" (case-insensitive), "number" or "date" (epoch compare).
    Empty strings count as null for string columns. The optional tiebreak
    key fixes the order of equal rows, so repeated calls are stable.
    """
    def is_null(row: T) -> bool:
        value = get(row)
        return value is None or (kind == "string" and value == "")

    present = [row for row in rows if not is_null(row)]
    missing = [row for row in rows if is_null(row)]

    if tiebreak is not None:
        present.sort(key=tiebreak)
        missing.sort(key=tiebreak)

    # list.sort is stable under reverse=True too, so ties keep tiebreak order
    present.sort(key=lambda row: _sort_value(get(row), kind), reverse=(direction == "desc"))
    return present + missing
