"""
Context Builder: assembles an AnticipationContext from collaborator sources.

Sources are zero-argument callables that do the actual I/O (database reads,
provider snapshots). Each source's result is cached under ``context:<name>``
for ttl_seconds, so back-to-back cycles do not refetch.

Source names that match a context collection (tasks, projects, categories,
emails, calendar_events, deals, historical_patterns) fill that collection;
any other name is an external snapshot placed in mcp_data (alpaca,
family_calendars, zillow, recent_docs, notion_updates).

A failing source is logged and contributes nothing. Failures are not cached.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any

from .. import config
from ..cache import CacheManager
from .models import AnticipationContext, Signal, SignalWeight
from .temporal import utc_now

logger = logging.getLogger(__name__)

CACHE_PREFIX = "context:"

RECORD_SOURCES = frozenset(
    (
        "tasks",
        "projects",
        "categories",
        "emails",
        "calendar_events",
        "deals",
        "historical_patterns",
    )
)

Source = Callable[[], Any]


class ContextBuilder:
    def __init__(
        self,
        sources: Mapping[str, Source],
        cache: CacheManager | None = None,
        ttl_seconds: int | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.sources = dict(sources)
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else config.CONTEXT_CACHE_TTL_SECONDS
        )
        self.cache = cache if cache is not None else CacheManager(default_ttl=self.ttl_seconds)
        self.clock = clock or utc_now

    def _fetch(self, name: str) -> Any | None:
        key = f"{CACHE_PREFIX}{name}"
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            value = self.sources[name]()
        except Exception as e:
            logger.error(f"Context source {name} failed: {e}", exc_info=True)
            return None

        if value is None:
            return None
        if name in RECORD_SOURCES:
            value = list(value)
        self.cache.set(key, value, self.ttl_seconds)
        return value

    def invalidate(self, name: str | None = None) -> int:
        """Drop one source's cached snapshot, or all of them. Returns entries dropped."""
        if name is None:
            return self.cache.invalidate_pattern(f"{CACHE_PREFIX}*")
        key = f"{CACHE_PREFIX}{name}"
        present = self.cache.contains(key)
        self.cache.delete(key)
        return 1 if present else 0

    def build(
        self,
        now: datetime | None = None,
        signals: Iterable[Signal] = (),
        signal_weights: Iterable[SignalWeight] | None = None,
    ) -> AnticipationContext:
        collections: dict[str, Any] = {}
        mcp_data: dict[str, Any] = {}

        for name in self.sources:
            value = self._fetch(name)
            if name in RECORD_SOURCES:
                collections[name] = value or []
            elif value is not None:
                mcp_data[name] = value

        return AnticipationContext.build(
            now or self.clock(),
            signals=signals,
            mcp_data=mcp_data,
            signal_weights=signal_weights,
            **collections,
        )
