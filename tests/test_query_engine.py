"""Tests for filtering, sorting, pagination and statistics."""

import pytest

from catalog.models.product import ProductFilters, ProductQuery
from catalog.services.query_engine import (
    calculate_total_pages,
    compute_stats,
    filter_products,
    paginate,
    run_query,
    sort_products,
)
from catalog.utils.exceptions import InvalidQueryError


def ids(products):
    return [product.id for product in products]


class TestFilterProducts:
    """Tests for filter_products."""

    def test_price_bounds_are_inclusive(self, sample_products):
        """Test that items priced exactly at either bound are kept."""
        result = filter_products(sample_products, ProductFilters(min_price=25, max_price=50))

        assert ids(result) == ["p1", "p3", "p5"]
        assert all(25 <= p.price <= 50 for p in result)

    def test_filters_are_conjunctive(self, sample_products):
        """Test that every supplied predicate must hold."""
        result = filter_products(sample_products, ProductFilters(category="home", in_stock=True))

        assert ids(result) == ["p1"]

    def test_in_stock_false_is_a_filter(self, sample_products):
        """Test that in_stock=False selects only unavailable items."""
        assert ids(filter_products(sample_products, ProductFilters(in_stock=False))) == ["p2"]

    @pytest.mark.parametrize("query,expected", [
        ("LAMP", ["p1"]),
        ("ceramic", ["p2"]),
        ("acme", ["p3"]),
        ("ordinary", ["p1", "p2", "p3", "p4", "p5"]),
        ("nothing-matches", []),
    ])
    def test_search_matches_name_description_brand_and_tags(self, sample_products, query, expected):
        """Test case-insensitive search across the searchable fields."""
        assert ids(filter_products(sample_products, ProductFilters(search_query=query))) == expected

    def test_filtering_is_idempotent(self, sample_products):
        """Test that filtering a filtered result changes nothing."""
        filters = ProductFilters(min_price=20, search_query="a")
        once = filter_products(sample_products, filters)

        assert filter_products(once, filters) == once

    def test_input_is_not_mutated(self, sample_products):
        """Test that the source collection is left untouched."""
        before = list(sample_products)

        filter_products(sample_products, ProductFilters(category="books"))

        assert sample_products == before


class TestSortProducts:
    """Tests for sort_products."""

    def test_sort_by_name_ignores_case(self, sample_products):
        """Test that names compare case-insensitively."""
        result = sort_products(sample_products, "name", "asc")

        assert [p.name for p in result] == [
            "Alpha Lamp", "beta Mug", "Delta Novel", "Epsilon Ball", "Gamma Phone"
        ]

    def test_sort_by_price_desc(self, sample_products):
        """Test numeric descending sort."""
        assert ids(sort_products(sample_products, "price", "desc")) == ["p4", "p3", "p5", "p1", "p2"]

    def test_sort_by_created_at_defaults_to_newest_first(self, sample_products):
        """Test the default createdAt descending order."""
        assert ids(sort_products(sample_products)) == ["p5", "p4", "p3", "p2", "p1"]

    @pytest.mark.parametrize("order", ["asc", "desc"])
    def test_sort_is_stable(self, product_factory, order):
        """Test that equal keys keep their prior relative order in both directions."""
        products = [
            product_factory("a", price=10.0),
            product_factory("b", price=5.0),
            product_factory("c", price=10.0),
            product_factory("d", price=5.0),
        ]

        result = ids(sort_products(products, "price", order))

        assert result.index("a") < result.index("c")
        assert result.index("b") < result.index("d")

    def test_unknown_sort_key(self, sample_products):
        """Test that an unsupported sort key is rejected."""
        with pytest.raises(InvalidQueryError):
            sort_products(sample_products, "rating")


class TestPagination:
    """Tests for paginate and calculate_total_pages."""

    @pytest.mark.parametrize("total,limit,pages", [(0, 12, 0), (1, 12, 1), (12, 12, 1), (13, 12, 2), (5, 2, 3)])
    def test_total_pages(self, total, limit, pages):
        """Test ceil(total / limit) with zero for an empty collection."""
        assert calculate_total_pages(total, limit) == pages

    def test_pages_concatenate_to_the_whole(self, sample_products):
        """Test that consecutive pages cover the collection exactly once, in order."""
        limit = 2
        pages = calculate_total_pages(len(sample_products), limit)

        joined = []
        for page in range(1, pages + 1):
            joined.extend(paginate(sample_products, page, limit))

        assert joined == sample_products

    def test_page_past_the_end_is_empty(self, sample_products):
        """Test that an out-of-range page yields no items."""
        assert paginate(sample_products, 10, 2) == []

    @pytest.mark.parametrize("page,limit", [(0, 2), (1, 0)])
    def test_invalid_window(self, sample_products, page, limit):
        """Test that page or limit below 1 is rejected."""
        with pytest.raises(InvalidQueryError):
            paginate(sample_products, page, limit)


class TestComputeStats:
    """Tests for compute_stats."""

    def test_counts(self, sample_products):
        """Test totals and per-category counts."""
        stats = compute_stats(sample_products)

        assert stats.total == 5
        assert stats.in_stock == 4
        assert stats.out_of_stock == 1
        assert stats.categories["home"] == 2
        assert stats.categories["toys"] == 0


class TestRunQuery:
    """Tests for run_query."""

    def test_filter_sort_paginate(self, sample_products):
        """Test the full derivation pipeline."""
        query = ProductQuery(
            filters=ProductFilters(min_price=20, sort_by="price", sort_order="asc"), page=1, limit=2
        )

        result = run_query(sample_products, query)

        assert ids(result.items) == ["p1", "p5"]
        assert result.total == 4
        assert result.total_pages == 2
        assert result.has_next_page is True

    def test_stats_ignore_filters(self, sample_products):
        """Test that statistics describe the whole collection."""
        result = run_query(sample_products, ProductQuery(filters=ProductFilters(category="books")))

        assert result.total == 1
        assert result.stats.total == 5

    def test_limit_is_clamped(self, sample_products):
        """Test that an oversize limit is clamped to the maximum."""
        result = run_query(sample_products, ProductQuery(limit=500), max_limit=3)

        assert result.limit == 3
        assert len(result.items) == 3
        assert result.total_pages == 2
