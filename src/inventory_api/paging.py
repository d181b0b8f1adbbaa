"""Paging and sorting helpers shared by the inventory list endpoints."""

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple

from fastapi import Query

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse a leading integer the lenient way query strings are usually read.

    ``"12abc"`` reads as 12; blank or non-numeric input reads as None.
    """
    if value is None:
        return None
    match = _LEADING_INT_RE.match(value)
    if match is None:
        return None
    return int(match.group(1))


@dataclass(frozen=True)
class PageRequest:
    page_number: int = 0
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        return self.page_number * self.page_size

    @classmethod
    def from_query(cls, page_number: Optional[str], page_size: Optional[str]) -> "PageRequest":
        """Build a page request; zero or unparseable values fall back to the defaults."""
        number = parse_int(page_number) or 0
        size = parse_int(page_size) or DEFAULT_PAGE_SIZE
        return cls(page_number=max(0, number), page_size=min(MAX_PAGE_SIZE, max(1, size)))

    def slice(self, items: List[Any]) -> List[Any]:
        return items[self.offset : self.offset + self.page_size]

    def summary(self, total_count: int) -> Dict[str, int]:
        return {
            "totalCount": total_count,
            "pageNumber": self.page_number,
            "pageSize": self.page_size,
            "totalPages": math.ceil(total_count / self.page_size),
        }


def parse_sort(
    sort_columns: Optional[str], sort_orders: Optional[str]
) -> List[Tuple[str, bool]]:
    """Pair each requested sort field with a descending flag.

    Orders are matched to columns by position; anything other than ``DESC``
    (including a missing entry) sorts ascending.
    """
    if not sort_columns:
        return []
    columns = [column.strip() for column in sort_columns.split(",")]
    orders = [order.strip().upper() for order in (sort_orders or "").split(",")]
    return [
        (column, index < len(orders) and orders[index] == "DESC")
        for index, column in enumerate(columns)
    ]


def build_order_by(
    sort: List[Tuple[str, bool]], columns: Mapping[str, Optional[str]], default: str
) -> str:
    """Render an ORDER BY list from whitelisted sort fields only."""
    parts = []
    for field, descending in sort:
        column = columns.get(field)
        if column:
            parts.append(f"{column} {'DESC' if descending else 'ASC'}")
    return ", ".join(parts) if parts else default


def page_request(
    page_number: Optional[str] = Query(
        None, alias="pageNumber", description="Page number (0-indexed)"
    ),
    page_size: Optional[str] = Query(
        None, alias="pageSize", description=f"Results per page (max {MAX_PAGE_SIZE})"
    ),
) -> PageRequest:
    return PageRequest.from_query(page_number, page_size)


def sort_request(
    sort_columns: Optional[str] = Query(
        None, alias="sortColumns", description="Comma-separated sort fields"
    ),
    sort_orders: Optional[str] = Query(
        None, alias="sortOrders", description="Comma-separated ASC/DESC per sort field"
    ),
) -> List[Tuple[str, bool]]:
    return parse_sort(sort_columns, sort_orders)
