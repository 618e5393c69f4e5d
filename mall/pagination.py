"""
mall/pagination.py -- Page arithmetic and sort parsing shared by every search endpoint.

Search endpoints take {page, limit, sort} and answer with
{pagination: {current, limit, records, pages}, data: [...]}. The math is
deliberately tiny: skip = (page - 1) * limit, pages = ceil(records / limit).

Sort strings are accepted in the shapes clients actually send:
  "created_at"            -> created_at, default direction
  "created_at asc"        -> space separated
  "created_at:desc"       -> colon separated
  "-created_at"           -> leading minus means descending
Anything naming a column outside the whitelist falls back to the default
(created_at desc) rather than erroring.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

DEFAULT_SORT: tuple[str, str] = ("created_at", "desc")


@dataclass
class Page(Generic[T]):
    """One page of records plus the counters the API echoes back."""

    items: list[T] = field(default_factory=list)
    records: int = 0
    current: int = 1
    limit: int = 10

    @property
    def pages(self) -> int:
        return page_count(self.records, self.limit)


def offset(page: int, limit: int) -> int:
    """Rows to skip before the requested page. Pages are 1-based."""
    return (max(page, 1) - 1) * limit


def page_count(records: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(records / limit)


def parse_sort(
    sort: Optional[str],
    allowed: tuple[str, ...] | set[str] | frozenset[str],
    default: tuple[str, str] = DEFAULT_SORT,
) -> tuple[str, str]:
    """Return a whitelisted (column, direction) pair for an ORDER BY clause."""
    if not sort or not sort.strip():
        return default

    raw = sort.strip()
    direction = default[1]
    if raw.startswith("-"):
        raw, direction = raw[1:], "desc"
    elif raw.startswith("+"):
        raw, direction = raw[1:], "asc"
    raw = raw.strip()
    if not raw:
        return default

    if ":" in raw:
        name, _, dir_part = raw.partition(":")
    else:
        parts = raw.split()
        name, dir_part = parts[0], (parts[1] if len(parts) > 1 else "")

    name = name.strip()
    dir_part = dir_part.strip().lower()
    if dir_part in ("asc", "desc"):
        direction = dir_part

    if name not in allowed:
        return default
    return name, direction
