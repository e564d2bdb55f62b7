"""Caching utilities."""

from .query_cache import DEFAULT_STALE_TIME, CacheStats, QueryCache

__all__ = ["DEFAULT_STALE_TIME", "CacheStats", "QueryCache"]
