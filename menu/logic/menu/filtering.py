"""Derived menu views: free-text search, category filter and sorting.

Recomputed on every read; nothing here is persisted.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterable, List

from menu.domain.MenuItem import MenuItem
from menu.domain.errors import MenuValidationError
from menu.utilities.constants import ALL_CATEGORIES, SORT_DIRECTIONS, SORT_KEYS

__all__ = ["MenuQuery", "filter_items", "matches_search"]


@dataclass(frozen=True)
class MenuQuery:
    search: str = ""
    category: str = ALL_CATEGORIES
    sort_by: str = "name"
    direction: str = "asc"

    def __post_init__(self):
        if self.sort_by not in SORT_KEYS:
            raise MenuValidationError(f"Unknown sort key: {self.sort_by!r}")
        if self.direction not in SORT_DIRECTIONS:
            raise MenuValidationError(f"Unknown sort direction: {self.direction!r}")


def matches_search(item: MenuItem, text: str) -> bool:
    q = text.lower()
    return (q in (item.name or "").lower()
            or q in (item.description or "").lower()
            or q in (item.category or "").lower())


def _sort_key(sort_by: str):
    if sort_by == "name":
        return lambda item: item.name or ""
    if sort_by == "price":
        return lambda item: item.price or 0
    if sort_by == "category":
        return lambda item: item.category or ""
    if sort_by == "popularity":
        return lambda item: item.popularity or 0
    return lambda item: item.created_at.timestamp() if item.created_at else 0


def filter_items(items: Iterable[MenuItem], query: MenuQuery) -> List[MenuItem]:
    result = list(items)
    if query.search:
        result = [item for item in result if matches_search(item, query.search)]
    if query.category != ALL_CATEGORIES:
        result = [item for item in result if item.category == query.category]
    # sorted() is stable, so equal keys keep insertion order in both directions
    return sorted(result, key=_sort_key(query.sort_by), reverse=query.direction == "desc")
