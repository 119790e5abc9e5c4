"""Presentation-facing views derived from controller state.

Renderers pick a placeholder (loading, error, empty) from ``ViewState`` and
may group the visible items into sections with ``group_items``.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from functools import cmp_to_key
from typing import Generic, TypeVar

T = TypeVar("T")


class ViewState(str, Enum):
    LOADING = "loading"
    ERROR = "error"
    EMPTY = "empty"
    EMPTY_SEARCH = "empty_search"
    RESULTS = "results"


def resolve_view_state(
    items: Sequence[object],
    is_loading: bool,
    error: object | None,
    has_searched: bool,
    search_query: str,
) -> ViewState:
    """Classify what a list renderer should show.

    Loading only wins while nothing is visible; stale items stay on screen
    during a reload. An error wins over both empty states.
    """
    if is_loading and not items:
        return ViewState.LOADING
    if error is not None:
        return ViewState.ERROR
    if not items:
        if has_searched and search_query:
            return ViewState.EMPTY_SEARCH
        return ViewState.EMPTY
    return ViewState.RESULTS


@dataclass(frozen=True)
class IndexedItem(Generic[T]):
    index: int  # position in the flat visible list
    item: T


@dataclass
class ItemGroup(Generic[T]):
    key: Hashable
    entries: list[IndexedItem[T]] = field(default_factory=list)

    @property
    def items(self) -> list[T]:
        return [entry.item for entry in self.entries]


def group_items(
    items: Sequence[T],
    group_by: Callable[[T], Hashable],
    group_comparator: Callable[[Hashable, Hashable], int] | None = None,
) -> list[ItemGroup[T]]:
    """Group visible items into sections.

    Groups appear in first-appearance order unless ``group_comparator``
    orders their keys. Items keep visible-list order within a group.
    """
    groups: dict[Hashable, ItemGroup[T]] = {}
    for index, item in enumerate(items):
        key = group_by(item)
        group = groups.get(key)
        if group is None:
            group = ItemGroup(key)
            groups[key] = group
        group.entries.append(IndexedItem(index, item))

    ordered = list(groups.values())
    if group_comparator is not None:
        ordered.sort(key=cmp_to_key(lambda a, b: group_comparator(a.key, b.key)))
    return ordered
