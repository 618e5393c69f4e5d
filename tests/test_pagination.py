"""
tests/test_pagination.py -- Unit tests for mall/pagination.py.

Covers:
  - offset(): 1-based pages, page < 1 clamps to the first page
  - page_count(): ceiling division, empty result, zero limit
  - parse_sort(): every accepted shape, whitelist fallback, default direction
"""

from __future__ import annotations

import pytest

from mall.pagination import DEFAULT_SORT, Page, offset, page_count, parse_sort

ALLOWED = ("created_at", "updated_at", "price")


class TestOffset:
    def test_first_page_skips_nothing(self) -> None:
        assert offset(1, 10) == 0

    def test_third_page(self) -> None:
        assert offset(3, 20) == 40

    def test_page_below_one_is_treated_as_first(self) -> None:
        assert offset(0, 10) == 0
        assert offset(-5, 10) == 0


class TestPageCount:
    @pytest.mark.parametrize(
        "records,limit,expected",
        [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (101, 100, 2)],
    )
    def test_ceiling_division(self, records: int, limit: int, expected: int) -> None:
        assert page_count(records, limit) == expected

    def test_zero_limit_means_no_pages(self) -> None:
        assert page_count(50, 0) == 0

    def test_page_dataclass_exposes_pages(self) -> None:
        page = Page(items=[1, 2, 3], records=23, current=2, limit=10)
        assert page.pages == 3


class TestParseSort:
    def test_empty_sort_uses_default(self) -> None:
        assert parse_sort(None, ALLOWED) == DEFAULT_SORT
        assert parse_sort("   ", ALLOWED) == DEFAULT_SORT

    def test_bare_field_keeps_default_direction(self) -> None:
        assert parse_sort("price", ALLOWED) == ("price", "desc")

    def test_space_separated(self) -> None:
        assert parse_sort("price asc", ALLOWED) == ("price", "asc")

    def test_colon_separated(self) -> None:
        assert parse_sort("updated_at:ASC", ALLOWED) == ("updated_at", "asc")

    def test_leading_minus_is_descending(self) -> None:
        assert parse_sort("-price", ALLOWED) == ("price", "desc")

    def test_leading_plus_is_ascending(self) -> None:
        assert parse_sort("+price", ALLOWED) == ("price", "asc")

    def test_unknown_direction_is_ignored(self) -> None:
        assert parse_sort("price sideways", ALLOWED) == ("price", "desc")

    def test_field_outside_whitelist_falls_back(self) -> None:
        """Sort strings never reach SQL unless they name a whitelisted column."""
        assert parse_sort("password_hash asc", ALLOWED) == DEFAULT_SORT
        assert parse_sort("price; DROP TABLE sales", ALLOWED) == DEFAULT_SORT

    @pytest.mark.parametrize("sort", ["-", "+", "- ", " + ", "-:asc"])
    def test_bare_sign_falls_back(self, sort: str) -> None:
        assert parse_sort(sort, ALLOWED) == DEFAULT_SORT
