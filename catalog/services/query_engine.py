"""Filtering, sorting, pagination and statistics over an in-memory catalog.

Every function here is pure: it returns a new list and never mutates the
collection it was given.
"""

import math
from functools import cmp_to_key
from typing import Any, Callable, Iterable, List, Optional

from ..models.product import (
    Product,
    ProductFilters,
    ProductQuery,
    ProductStats,
    QueryResult,
    SORT_FIELDS,
)
from ..utils.exceptions import InvalidQueryError
from ..utils.identifiers import parse_timestamp


def matches_search(product: Product, query: str) -> bool:
    """Case-insensitive substring match on name, description, brand and tags."""
    searchable = " ".join(
        [product.name, product.description, product.brand or "", *product.tags]
    ).lower()
    return query.lower() in searchable


def filter_products(products: Iterable[Product], filters: ProductFilters) -> List[Product]:
    """Keep products that pass every supplied predicate."""

    def keep(product: Product) -> bool:
        if filters.category and product.category != filters.category:
            return False
        if filters.min_price is not None and product.price < filters.min_price:
            return False
        if filters.max_price is not None and product.price > filters.max_price:
            return False
        if filters.in_stock is not None and product.in_stock != filters.in_stock:
            return False
        if filters.search_query and not matches_search(product, filters.search_query):
            return False
        return True

    return [product for product in products if keep(product)]


_SORT_KEYS: dict = {
    "name": lambda p: p.name.lower(),
    "price": lambda p: float(p.price),
    "createdAt": lambda p: parse_timestamp(p.created_at),
}


def _ascending(sort_by: str) -> Callable[[Product, Product], int]:
    key = _SORT_KEYS[sort_by]

    def compare(a: Product, b: Product) -> int:
        left: Any = key(a)
        right: Any = key(b)
        return (left > right) - (left < right)

    return compare


def sort_products(
    products: Iterable[Product],
    sort_by: str = "createdAt",
    sort_order: str = "desc"
) -> List[Product]:
    """
    Stable sort by ``name``, ``price`` or ``createdAt``.

    Descending order negates the ascending comparator, so equal keys keep
    their relative order in both directions.
    """
    if sort_by not in SORT_FIELDS:
        raise InvalidQueryError(f"Unsupported sort key: {sort_by}")

    ascending = _ascending(sort_by)
    compare = ascending if sort_order == "asc" else (lambda a, b: -ascending(a, b))
    return sorted(products, key=cmp_to_key(compare))


def paginate(products: List[Product], page: int, limit: int) -> List[Product]:
    """Return the 1-based *page* of size *limit*."""
    if page < 1 or limit < 1:
        raise InvalidQueryError(
            "Page and limit must be at least 1", details={"page": page, "limit": limit}
        )
    start = (page - 1) * limit
    return list(products[start:start + limit])


def calculate_total_pages(total: int, limit: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / limit)


def compute_stats(products: Iterable[Product]) -> ProductStats:
    """Counts over the whole collection, one entry per category."""
    stats = ProductStats()
    for product in products:
        stats.total += 1
        if product.in_stock:
            stats.in_stock += 1
        if product.category in stats.categories:
            stats.categories[product.category] += 1
    stats.out_of_stock = stats.total - stats.in_stock
    return stats


def run_query(
    products: List[Product],
    query: ProductQuery,
    max_limit: Optional[int] = None
) -> QueryResult:
    """
    Derive one page of the filtered view.

    Statistics are always computed over *products*, not the filtered view.
    """
    limit = min(query.limit, max_limit) if max_limit else query.limit

    filtered = filter_products(products, query.filters)
    if query.filters.sort_by:
        filtered = sort_products(filtered, query.filters.sort_by, query.filters.sort_order)

    return QueryResult(
        items=paginate(filtered, query.page, limit),
        total=len(filtered),
        total_pages=calculate_total_pages(len(filtered), limit),
        page=query.page,
        limit=limit,
        stats=compute_stats(products),
    )

