"""
Query Cache

Client-side cache of search responses keyed by request URL.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Features:
- Time-based staleness only (default 5 minutes); no write-driven invalidation
- LRU eviction when max size reached
- Async-safe get-or-fetch with a lock
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_STALE_TIME = 300.0


class QueryCache:
    """
    In-memory cache for search responses.

    Keys are used verbatim: they are already canonical request URLs.

    Example:
        cache = QueryCache(ttl=300)

        response = await cache.get_or_fetch(
            "/api/recipes/search?q=pasta&pageSize=24&offset=0&source=all",
            lambda: fetch(...),
        )
    """

    def __init__(
        self,
        max_size: int = 256,
        ttl: float = DEFAULT_STALE_TIME,
        timer: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            ttl: Staleness window in seconds
            timer: Clock used for expiry (tests inject a fake one)
        """
        self._cache: TTLCache[str, Any] = TTLCache(maxsize=max_size, ttl=ttl, timer=timer)
        self._lock = asyncio.Lock()
        self._stats = CacheStats()

    @property
    def stats(self) -> "CacheStats":
        return self._stats

    def get(self, key: str) -> Any | None:
        try:
            value = self._cache[key]
            self._stats.hits += 1
            return value
        except KeyError:
            self._stats.misses += 1
            return None

    def set(self, key: str, value: Any) -> None:
        self._cache[key] = value

    async def get_or_fetch(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[T]],
    ) -> T | None:
        """
        Get from cache or fetch and cache result.

        Unlike a lookup cache, fetch errors propagate: the caller must be able
        to tell "failed" from "no results".
        """
        value = self.get(key)
        if value is not None:
            logger.debug(f"Cache hit: {key}")
            return value

        async with self._lock:
            value = self.get(key)
            if value is not None:
                return value

            value = await fetch_func()
            if value is not None:
                self.set(key, value)
            return value

    def invalidate(self, key: str) -> bool:
        try:
            del self._cache[key]
            return True
        except KeyError:
            return False

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        count = len(self._cache)
        self._cache.clear()
        return count

    def cleanup_expired(self) -> int:
        """Drop expired entries now instead of lazily on access."""
        removed = len(self._cache.expire())
        self._stats.expirations += removed
        return removed

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        return key in self._cache


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        self.hits = 0
        self.misses = 0
        self.expirations = 0
