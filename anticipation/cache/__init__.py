"""
In-memory cache layer for the anticipation engine.

Provides:
- CacheManager: TTL-based cache with LRU eviction, pattern invalidation
  and an injectable clock
"""

from .cache_manager import CacheManager, CacheStats

__all__ = [
    "CacheManager",
    "CacheStats",
]
