"""
In-memory cache manager with TTL support, invalidation patterns, and LRU eviction.

Features:
- TTL-based entry expiration with lazy cleanup
- Glob pattern-based key invalidation
- Thread-safe operations with RLock
- LRU eviction when max size reached
- Injectable clock so callers (and tests) control time
- Hit/miss statistics tracking

There is no module-level instance: owners construct one and pass it in.
"""

import fnmatch
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    size: int = 0
    hit_rate: float = 0.0
    oldest_entry_age: float | None = None

    def to_dict(self) -> dict:
        """Convert to dict."""
        return {
            "hits": self.hits,
            "misses": self.misses,
            "size": self.size,
            "hit_rate": self.hit_rate,
            "oldest_entry_age": self.oldest_entry_age,
        }


class CacheManager:
    """Thread-safe in-memory cache with TTL, LRU eviction, and pattern invalidation."""

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 300,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize cache manager.

        Args:
            max_size: Maximum number of entries before LRU eviction. Defaults to 1000.
            default_ttl: Default TTL in seconds. Defaults to 300 (5 minutes).
            clock: Callable returning the current time in seconds. Defaults to time.time.
        """
        if default_ttl <= 0:
            raise ValueError("default_ttl must be positive")

        self._cache: dict[
            str, tuple[Any, float, float]
        ] = {}  # key -> (value, expiry_time, access_time)
        self._lock = threading.RLock()
        self._max_size = max_size
        self._default_ttl = default_ttl
        self._clock = clock or time.time
        self._hits = 0
        self._misses = 0

    @property
    def default_ttl(self) -> int:
        return self._default_ttl

    def get(self, key: str) -> Any | None:
        """
        Get value from cache.

        Returns None if the key is missing or its entry has expired
        (expired entries are dropped on access).
        """
        with self._lock:
            if key not in self._cache:
                self._misses += 1
                return None

            value, expiry_time, _access_time = self._cache[key]
            now = self._clock()

            if now >= expiry_time:
                del self._cache[key]
                self._misses += 1
                return None

            self._cache[key] = (value, expiry_time, now)
            self._hits += 1
            return value

    def contains(self, key: str) -> bool:
        """True if the key holds a live entry. Does not touch hit/miss stats."""
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and self._clock() < entry[1]

    def set(self, key: str, value: Any, ttl_seconds: int | None = None) -> None:
        """
        Set value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: TTL in seconds. If None, uses default_ttl.
        """
        if ttl_seconds is None:
            ttl_seconds = self._default_ttl

        with self._lock:
            now = self._clock()
            self._cache[key] = (value, now + ttl_seconds, now)

            if len(self._cache) > self._max_size:
                self._evict_lru()

    def delete(self, key: str) -> None:
        """Delete a specific key. Missing keys are ignored."""
        with self._lock:
            self._cache.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> int:
        """
        Invalidate all keys matching a glob pattern.

        Examples:
            - "context:*" matches "context:tasks", "context:emails"
            - "*:alpaca" matches "context:alpaca"

        Returns:
            Number of keys invalidated
        """
        with self._lock:
            keys_to_delete = [key for key in self._cache if fnmatch.fnmatch(key, pattern)]
            for key in keys_to_delete:
                del self._cache[key]
            return len(keys_to_delete)

    def clear(self) -> None:
        """Clear entire cache."""
        with self._lock:
            self._cache.clear()

    def stats(self) -> CacheStats:
        """Get cache statistics."""
        with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0.0

            oldest_entry_age = None
            if self._cache:
                oldest_access_time = min(
                    access_time for _value, _expiry, access_time in self._cache.values()
                )
                oldest_entry_age = self._clock() - oldest_access_time

            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                size=len(self._cache),
                hit_rate=hit_rate,
                oldest_entry_age=oldest_entry_age,
            )

    def _evict_lru(self) -> None:
        """
        Evict least-recently-used entry.

        Should only be called while holding the lock.
        """
        if not self._cache:
            return

        lru_key = min(self._cache, key=lambda k: self._cache[k][2])
        del self._cache[lru_key]
        logger.debug(f"Evicted LRU key: {lru_key}")
