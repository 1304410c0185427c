"""
Data retention for the anticipation collections.

- purge_expired_signals() - signals past expires_at AND dismissed
- purge_old_analytics()   - analytics events older than analytics_days (90)
- purge_stale_weights()   - weight rows not updated for weight_stale_days (30)
- run_retention_cycle()   - all three, each isolated from the others' failures

Every purge is idempotent: a second run over the same data removes nothing.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime, timedelta
from typing import Any

from . import config
from .intelligence.temporal import parse_datetime, utc_now
from .storage import ANALYTICS_EVENTS, SIGNAL_WEIGHTS, SIGNALS, Collection, RecordNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetentionConfig:
    analytics_days: int = 90
    weight_stale_days: int = 30

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) <= 0:
                raise ValueError(f"RetentionConfig.{f.name} must be positive")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RetentionConfig":
        valid_fields = {f.name for f in fields(cls)}
        unknown = set(data) - valid_fields
        if unknown:
            raise ValueError(f"Unknown retention settings: {sorted(unknown)}")
        return cls(**{k: int(v) for k, v in data.items()})


def load_retention_config(thresholds: dict | None = None) -> RetentionConfig:
    """Retention windows from the `retention` section of thresholds.yaml."""
    section = config.get_section("retention", thresholds)
    return RetentionConfig.from_mapping(section) if section else RetentionConfig()


@dataclass
class RetentionReport:
    expired_signals: int = 0
    old_analytics: int = 0
    stale_weights: int = 0
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.expired_signals + self.old_analytics + self.stale_weights

    def to_dict(self) -> dict:
        return {
            "expired_signals": self.expired_signals,
            "old_analytics": self.old_analytics,
            "stale_weights": self.stale_weights,
            "errors": dict(self.errors),
        }


def _remove_all(collection: Collection, records: list[dict]) -> int:
    removed = 0
    for record in records:
        try:
            collection.remove(record["id"])
            removed += 1
        except RecordNotFoundError:
            # Removed concurrently; still gone
            continue
    return removed


def _older_than(record: Mapping[str, Any], field_name: str, cutoff: datetime) -> bool:
    # Timestamps are compared parsed, not as strings, so "Z" and "+00:00" mix safely
    value = parse_datetime(record.get(field_name))
    return value is not None and value < cutoff


def purge_expired_signals(collection: Collection, now: datetime | None = None) -> int:
    """Remove signals that are both expired and dismissed."""
    now = now or utc_now()
    candidates = collection.find({"is_dismissed": True})
    expired = [r for r in candidates if _older_than(r, "expires_at", now)]
    return _remove_all(collection, expired)


def purge_old_analytics(
    collection: Collection, now: datetime | None = None, days: int = 90
) -> int:
    cutoff = (now or utc_now()) - timedelta(days=days)
    old = [r for r in collection.find() if _older_than(r, "timestamp", cutoff)]
    return _remove_all(collection, old)


def purge_stale_weights(
    collection: Collection, now: datetime | None = None, days: int = 30
) -> int:
    cutoff = (now or utc_now()) - timedelta(days=days)
    stale = [r for r in collection.find() if _older_than(r, "last_updated", cutoff)]
    return _remove_all(collection, stale)


def run_retention_cycle(
    collections: Mapping[str, Collection],
    now: datetime | None = None,
    retention: RetentionConfig | None = None,
) -> RetentionReport:
    """
    Run all retention tasks against the named collections.

    A task that fails (or whose collection is missing) reports 0 and its
    error message; the other tasks still run.
    """
    now = now or utc_now()
    retention = retention or RetentionConfig()
    report = RetentionReport()

    tasks = (
        ("expired_signals", SIGNALS, lambda c: purge_expired_signals(c, now)),
        (
            "old_analytics",
            ANALYTICS_EVENTS,
            lambda c: purge_old_analytics(c, now, retention.analytics_days),
        ),
        (
            "stale_weights",
            SIGNAL_WEIGHTS,
            lambda c: purge_stale_weights(c, now, retention.weight_stale_days),
        ),
    )

    for task_name, collection_name, purge in tasks:
        try:
            collection = collections[collection_name]
            setattr(report, task_name, purge(collection))
        except Exception as e:
            logger.error(f"Retention task {task_name} failed: {e}", exc_info=True)
            report.errors[task_name] = str(e)

    if report.total > 0:
        logger.info(
            f"Retention cleaned: {report.expired_signals} expired signals, "
            f"{report.old_analytics} old analytics, {report.stale_weights} stale weights"
        )
    return report
