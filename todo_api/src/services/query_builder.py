"""
List query construction shared by every list endpoint.

Turns raw request input (query-string pagination and sort, JSON-body
filters) into a ``ListQuery`` that repositories execute. Only fields named
in the per-resource whitelists ever reach the store.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any, Collection, Dict, List, Mapping, Optional, Sequence, Union

from todo_api.src.models.common import Pagination

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
SORT_ORDERS = ("asc", "desc")

# Largest value a PostgreSQL bigint (LIMIT / OFFSET) accepts
MAX_BIGINT = 2 ** 63 - 1

_LEADING_INT_RE = re.compile(r"^\s*([+-]?)0*(\d+)")


@dataclass
class ListQuery:
    """Normalized list request."""

    filters: Dict[str, Any] = field(default_factory=dict)
    skip: int = 0
    take: int = DEFAULT_LIMIT
    order_by: List[Dict[str, str]] = field(default_factory=list)
    page: int = DEFAULT_PAGE

    def with_filter(self, name: str, value: Any) -> "ListQuery":
        """Return a copy with one more equality filter (used for owner scoping)."""
        filters = dict(self.filters)
        filters[name] = value
        return ListQuery(
            filters=filters,
            skip=self.skip,
            take=self.take,
            order_by=list(self.order_by),
            page=self.page,
        )


def parse_int(value: Any) -> Optional[int]:
    """
    Parse an integer the lenient way query strings are usually read.

    Accepts ints and strings with a leading integer (``"3"``, ``" 12px"``).
    Returns None for anything without one, and for values outside the
    bigint range.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = int(value) if math.isfinite(value) else None
    elif not isinstance(value, int):
        match = _LEADING_INT_RE.match(str(value))
        if not match or len(match.group(2)) > len(str(MAX_BIGINT)):
            return None
        value = int(match.group(1) + match.group(2))

    if value is None or abs(value) > MAX_BIGINT:
        return None
    return value


def parse_sort(
    sort: Union[None, str, Sequence[str]],
    sort_whitelist: Collection[str]
) -> List[Dict[str, str]]:
    """
    Parse ``field:order`` sort expressions.

    Unknown fields are dropped; a missing or unrecognised order becomes
    ``asc``. Input order is preserved.
    """
    if not sort:
        return []

    expressions = [sort] if isinstance(sort, str) else list(sort)
    order_by: List[Dict[str, str]] = []

    for expression in expressions:
        parts = str(expression).split(":")
        sort_field = parts[0]
        sort_order = parts[1] if len(parts) > 1 else None

        if sort_field not in sort_whitelist:
            continue

        order_by.append({sort_field: sort_order if sort_order in SORT_ORDERS else "asc"})

    return order_by


def build_query(
    filter_whitelist: Collection[str],
    sort_whitelist: Collection[str],
    body: Optional[Mapping[str, Any]],
    query: Optional[Mapping[str, Any]],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> ListQuery:
    """
    Build a ListQuery from request input.

    Args:
        filter_whitelist: Body fields usable as equality filters
        sort_whitelist: Fields usable in ``sort``
        body: JSON body (filters)
        query: Query parameters with optional ``page``, ``limit``, ``sort``
        default_limit: Page size when ``limit`` is missing or unusable
        max_limit: Optional upper bound for the page size

    Returns:
        Normalized ListQuery
    """
    body = body or {}
    query = query or {}

    page = max(1, parse_int(query.get("page")) or DEFAULT_PAGE)
    limit = max(1, parse_int(query.get("limit")) or default_limit)
    if max_limit is not None:
        limit = min(limit, max_limit)

    filters = {
        name: body[name]
        for name in filter_whitelist
        if name in body and body[name] is not None
    }

    return ListQuery(
        filters=filters,
        skip=min((page - 1) * limit, MAX_BIGINT),
        take=limit,
        order_by=parse_sort(query.get("sort"), sort_whitelist),
        page=page,
    )


def paginate(total_items: int, query: ListQuery) -> Pagination:
    """Compute the pagination block for a page of results."""
    return Pagination(
        total_items=total_items,
        total_pages=math.ceil(total_items / query.take) if query.take else 0,
        current_page=query.page,
    )
