"""
Deterministic builders for tests: a fixed evaluation instant, timestamp
offsets relative to it, a settable clock, and a Signal factory.
"""

from datetime import UTC, datetime, timedelta

from anticipation.intelligence.models import LifeDomain, Signal, SignalSeverity, SignalType
from anticipation.intelligence.temporal import to_iso

# Saturday 2026-03-14, 09:00 UTC
FIXED_NOW = datetime(2026, 3, 14, 9, 0, tzinfo=UTC)


def iso_ago(now: datetime = FIXED_NOW, **delta) -> str:
    """ISO timestamp `delta` before now."""
    return to_iso(now - timedelta(**delta))


def iso_in(now: datetime = FIXED_NOW, **delta) -> str:
    """ISO timestamp `delta` after now."""
    return to_iso(now + timedelta(**delta))


def date_offset(days: int, now: datetime = FIXED_NOW) -> str:
    """YYYY-MM-DD `days` from today (negative for the past)."""
    return (now.date() + timedelta(days=days)).isoformat()


def build_signal(
    id: str = "sig-1",
    type: SignalType = SignalType.AGING_EMAIL,
    severity: SignalSeverity = SignalSeverity.ATTENTION,
    domain: LifeDomain = LifeDomain.BUSINESS_TECH,
    related: tuple[str, ...] = (),
    **overrides,
) -> Signal:
    """Signal with sensible defaults; override any field by keyword."""
    fields = {
        "id": id,
        "type": type,
        "severity": severity,
        "domain": domain,
        "source": "test",
        "title": f"{type} {id}",
        "context": "test signal",
        "related_entity_ids": related,
        "created_at": to_iso(FIXED_NOW),
    }
    fields.update(overrides)
    return Signal(**fields)


class FakeClock:
    """Settable clock returning aware datetimes."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current = self.current + timedelta(**delta)
