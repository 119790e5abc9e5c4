"""Bounded FIFO cache for remote search result pages.

Entries are keyed by query, page, active filter keys, and the filter
generation counter. Eviction drops the oldest inserted entry regardless of
how recently it was read.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Sequence
from typing import Generic, NamedTuple, TypeVar

T = TypeVar("T")

DEFAULT_MAX_CACHE_SIZE = 100


class CacheKey(NamedTuple):
    """Structured key, so separator characters in queries cannot collide."""

    query: str
    page: int
    filter_keys: tuple[str, ...]
    filter_generation: int

    @classmethod
    def build(cls, query: str, page: int, filter_keys: Iterable[str], filter_generation: int) -> CacheKey:
        return cls(query, page, tuple(sorted(filter_keys)), filter_generation)


class ResultCache(Generic[T]):
    def __init__(self, max_entries: int = DEFAULT_MAX_CACHE_SIZE) -> None:
        if max_entries < 0:
            raise ValueError("max_entries must be non-negative")
        self._max_entries = max_entries
        self._entries: OrderedDict[CacheKey, list[T]] = OrderedDict()

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: CacheKey) -> list[T] | None:
        """Return a copy of the cached sequence, or ``None`` on a miss.

        Reads do not refresh an entry's position; eviction order is insertion
        order only.
        """
        cached = self._entries.get(key)
        if cached is None:
            return None
        return list(cached)

    def put(self, key: CacheKey, items: Sequence[T]) -> None:
        if self._max_entries <= 0:
            return
        if key in self._entries:
            self._entries[key] = list(items)
            return
        while len(self._entries) >= self._max_entries:
            self._entries.popitem(last=False)
        self._entries[key] = list(items)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> list[CacheKey]:
        return list(self._entries)
