"""LRU cache with hit/miss accounting.

A thin, typed wrapper over :class:`cachetools.LRUCache`. It backs the
per-chart render memoization and the parsed-expression cache; the counters
are surfaced by the renderer for diagnostics.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Generic, Optional, TypeVar

from cachetools import LRUCache  # type: ignore[import-untyped]

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class Cache(Generic[K, V]):
    """LRU cache counting lookups.

    Parameters
    ----------
    maxsize: int
        Maximum number of entries; the least-recently-used one is evicted.
    """

    def __init__(self, maxsize: int = 1024) -> None:
        self._cache: LRUCache[K, V] = LRUCache(maxsize=maxsize)
        self.hits = 0
        self.misses = 0

    def get(self, key: K) -> Optional[V]:
        """Return the value for `key`, or None on a miss."""
        value = self._cache.get(key)
        if value is None:
            self.misses += 1
        else:
            self.hits += 1
        return value

    def set(self, key: K, value: V) -> None:
        self._cache[key] = value

    def clear(self) -> None:
        """Drop every entry; counters are kept."""
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
