"""
In-memory search result cache with TTL and a hard entry cap.
Avoids repeat requests for the same query/page while a dropdown is open.
"""

import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from ..models.search import SearchResult


@dataclass
class CacheEntry:
    """Cached page with the clock reading taken when it was stored."""
    key: str
    value: SearchResult
    timestamp: float


@dataclass
class SearchCache:
    """
    Per-controller cache for search pages.

    Eviction is by insertion order: once more than max_entries keys are
    stored, the oldest-inserted one goes first regardless of how recently it
    was read. Storing an existing key again replaces its page and timestamp
    but keeps its position. Methods never await, so each call is atomic on
    the event loop.
    """

    ttl_seconds: float = 300
    max_entries: int = 50
    clock: Callable[[], float] = time.monotonic
    _cache: "OrderedDict[str, CacheEntry]" = field(default_factory=OrderedDict)

    @staticmethod
    def make_key(query: str, page: int) -> str:
        """Composite key: trimmed query plus page index."""
        return f"{query}_{page}"

    def get(self, query: str, page: int) -> Optional[SearchResult]:
        """
        Get a cached page if available and not expired.

        Args:
            query: Trimmed search query
            page: Zero-based page index

        Returns:
            Cached result or None if not found/expired
        """
        key = self.make_key(query, page)
        entry = self._cache.get(key)

        if entry is None:
            return None

        if self.clock() - entry.timestamp >= self.ttl_seconds:
            # Expired, remove and return None
            del self._cache[key]
            return None

        return entry.value

    def set(self, query: str, page: int, result: SearchResult) -> None:
        """
        Cache a page, evicting the oldest-inserted entries beyond capacity.

        Args:
            query: Trimmed search query
            page: Zero-based page index
            result: Page to cache
        """
        key = self.make_key(query, page)
        # Refreshing an existing key keeps its insertion position
        self._cache[key] = CacheEntry(key=key, value=result, timestamp=self.clock())

        while len(self._cache) > self.max_entries:
            self._cache.popitem(last=False)

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def keys(self) -> list:
        """Stored keys, oldest-inserted first."""
        return list(self._cache.keys())

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    @property
    def size(self) -> int:
        """Number of cached entries."""
        return len(self._cache)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        now = self.clock()
        valid_count = sum(
            1 for entry in self._cache.values()
            if now - entry.timestamp < self.ttl_seconds
        )
        return {
            "total_entries": len(self._cache),
            "valid_entries": valid_count,
            "expired_entries": len(self._cache) - valid_count,
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
        }
