"""
Anticipation engine: shared data model.

Signal, AnticipationContext, SignalWeight and the MorningBrief read model,
plus the closed enums they are built from.

Signals are frozen: severity and identity never change after creation.
Lifecycle transitions (dismiss, act-on) produce a new record through
Signal.with_lifecycle(), which only touches the two flags and updated_at.
"""

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime
from enum import StrEnum
from types import MappingProxyType
from typing import Any

from .temporal import format_hhmm, parse_date, parse_datetime, to_iso, utc_now, weekday_name

# =============================================================================
# ID GENERATION
# =============================================================================


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID with optional prefix."""
    uid = uuid.uuid4().hex
    if prefix:
        return f"{prefix}_{uid}"
    return uid


# =============================================================================
# ENUMS
# =============================================================================


class SignalSeverity(StrEnum):
    """Urgency tier, ordered info < attention < urgent < critical."""

    INFO = "info"
    ATTENTION = "attention"
    URGENT = "urgent"
    CRITICAL = "critical"


class SignalType(StrEnum):
    """Closed set of signal kinds emitted by detectors."""

    AGING_EMAIL = "aging_email"
    DEADLINE_APPROACHING = "deadline_approaching"
    STREAK_AT_RISK = "streak_at_risk"
    CALENDAR_CONFLICT = "calendar_conflict"
    DEAL_UPDATE = "deal_update"
    PORTFOLIO_ALERT = "portfolio_alert"
    PATTERN_INSIGHT = "pattern_insight"
    FAMILY_AWARENESS = "family_awareness"
    HEALTH_REMINDER = "health_reminder"
    WEEKLY_REVIEW = "weekly_review"
    FINANCIAL_UPDATE = "financial_update"
    DOCUMENT_ACTION = "document_action"
    FOLLOW_UP_DUE = "follow_up_due"
    CONTEXT_SWITCH_PREP = "context_switch_prep"


class LifeDomain(StrEnum):
    """Life areas signals are grouped and filtered by."""

    BUSINESS_RE = "business_re"
    BUSINESS_TRADING = "business_trading"
    BUSINESS_TECH = "business_tech"
    PERSONAL_GROWTH = "personal_growth"
    HEALTH_FITNESS = "health_fitness"
    FAMILY = "family"
    FINANCE = "finance"
    SOCIAL = "social"
    CREATIVE = "creative"
    SPIRITUAL = "spiritual"


BUSINESS_DOMAINS = (LifeDomain.BUSINESS_RE, LifeDomain.BUSINESS_TRADING, LifeDomain.BUSINESS_TECH)


# =============================================================================
# SIGNAL
# =============================================================================


@dataclass(frozen=True)
class Signal:
    """A typed, severity-ranked alert about a condition in the user's data."""

    id: str
    type: SignalType
    severity: SignalSeverity
    domain: LifeDomain
    source: str  # detector name
    title: str
    context: str
    suggested_action: str | None = None
    auto_actionable: bool = False
    is_dismissed: bool = False
    is_acted_on: bool = False
    related_entity_ids: tuple[str, ...] = ()
    created_at: str = field(default_factory=lambda: to_iso(utc_now()))
    expires_at: str | None = None
    updated_at: str | None = None

    def __post_init__(self):
        if not self.id:
            raise ValueError("Signal id must be non-empty")
        # Accept raw strings/lists from storage and coerce to the closed types
        object.__setattr__(self, "type", SignalType(self.type))
        object.__setattr__(self, "severity", SignalSeverity(self.severity))
        object.__setattr__(self, "domain", LifeDomain(self.domain))
        object.__setattr__(
            self, "related_entity_ids", tuple(str(e) for e in self.related_entity_ids)
        )

    @property
    def primary_entity_id(self) -> str | None:
        """First related entity id, or None for entity-less signals."""
        return self.related_entity_ids[0] if self.related_entity_ids else None

    def is_expired(self, now: datetime) -> bool:
        """True once expires_at has passed. Signals without expiry never expire."""
        expires = parse_datetime(self.expires_at)
        return expires is not None and expires <= now

    def is_active(self, now: datetime) -> bool:
        """Not dismissed and not past expiry."""
        return not self.is_dismissed and not self.is_expired(now)

    def with_lifecycle(
        self,
        *,
        dismissed: bool | None = None,
        acted_on: bool | None = None,
        at: datetime | None = None,
    ) -> "Signal":
        """Return a copy with lifecycle flags set. Everything else is preserved."""
        changes: dict[str, Any] = {"updated_at": to_iso(at or utc_now())}
        if dismissed is not None:
            changes["is_dismissed"] = dismissed
        if acted_on is not None:
            changes["is_acted_on"] = acted_on
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["severity"] = self.severity.value
        data["domain"] = self.domain.value
        data["related_entity_ids"] = list(self.related_entity_ids)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Signal":
        """Create a signal from a dict, ignoring unknown keys."""
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


def make_signal(
    *,
    type: SignalType,
    severity: SignalSeverity,
    domain: LifeDomain,
    source: str,
    title: str,
    context: str,
    now: datetime,
    related_entity_ids: Iterable[str] = (),
    suggested_action: str | None = None,
    auto_actionable: bool = False,
    expires_at: datetime | None = None,
) -> Signal:
    """Build a fresh, active signal stamped at the evaluation instant."""
    return Signal(
        id=generate_id("sig"),
        type=type,
        severity=severity,
        domain=domain,
        source=source,
        title=title,
        context=context,
        suggested_action=suggested_action,
        auto_actionable=auto_actionable,
        related_entity_ids=tuple(related_entity_ids),
        created_at=to_iso(now),
        expires_at=to_iso(expires_at) if expires_at else None,
    )


# =============================================================================
# SIGNAL WEIGHT
# =============================================================================


@dataclass
class SignalWeight:
    """Effectiveness statistics for one (signal type, domain) pair."""

    signal_type: SignalType
    domain: LifeDomain
    id: str = field(default_factory=lambda: generate_id("wgt"))
    total_generated: int = 0
    total_dismissed: int = 0
    total_acted_on: int = 0
    effectiveness_score: float = 0.0
    weight_modifier: float = 1.0
    last_updated: str = field(default_factory=lambda: to_iso(utc_now()))
    created_at: str = field(default_factory=lambda: to_iso(utc_now()))

    def __post_init__(self):
        self.signal_type = SignalType(self.signal_type)
        self.domain = LifeDomain(self.domain)

    @property
    def key(self) -> tuple[SignalType, LifeDomain]:
        return (self.signal_type, self.domain)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["signal_type"] = self.signal_type.value
        data["domain"] = self.domain.value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "SignalWeight":
        valid_fields = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in valid_fields})


# =============================================================================
# CONTEXT
# =============================================================================

# Wire names (as produced by the context-assembly collaborator) -> field names
_CONTEXT_ALIASES = {
    "calendarEvents": "calendar_events",
    "mcpData": "mcp_data",
    "currentTime": "current_time",
    "dayOfWeek": "day_of_week",
    "historicalPatterns": "historical_patterns",
    "signalWeights": "signal_weights",
}

_MCP_ALIASES = {
    "familyCalendars": "family_calendars",
    "recentDocs": "recent_docs",
    "notionUpdates": "notion_updates",
}

_ALPACA_ALIASES = {"dayPnl": "day_pnl"}

_RECORD_FIELDS = (
    "tasks",
    "projects",
    "categories",
    "emails",
    "calendar_events",
    "deals",
    "historical_patterns",
)


def _freeze_records(records: Iterable[Mapping[str, Any]] | None) -> tuple[Mapping[str, Any], ...]:
    return tuple(MappingProxyType(dict(r)) for r in (records or ()))


def _normalize_mcp_data(mcp_data: Mapping[str, Any] | None) -> Mapping[str, Any]:
    normalized: dict[str, Any] = {}
    for key, value in (mcp_data or {}).items():
        key = _MCP_ALIASES.get(key, key)
        if key == "alpaca" and isinstance(value, Mapping):
            value = {_ALPACA_ALIASES.get(k, k): v for k, v in value.items()}
        if key == "family_calendars" and value is not None:
            value = _freeze_records(value)
        normalized[key] = value
    return MappingProxyType(normalized)


@dataclass(frozen=True)
class AnticipationContext:
    """
    Read-only snapshot handed to every detector in a cycle.

    Record collections are tuples of read-only mappings. `now` is the
    evaluation instant; `today`, `current_time` and `day_of_week` are its
    calendar projections.
    """

    now: datetime
    today: str
    current_time: str
    day_of_week: str
    tasks: tuple[Mapping[str, Any], ...] = ()
    projects: tuple[Mapping[str, Any], ...] = ()
    categories: tuple[Mapping[str, Any], ...] = ()
    emails: tuple[Mapping[str, Any], ...] = ()
    calendar_events: tuple[Mapping[str, Any], ...] = ()
    deals: tuple[Mapping[str, Any], ...] = ()
    signals: tuple[Signal, ...] = ()
    mcp_data: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    historical_patterns: tuple[Mapping[str, Any], ...] = ()
    signal_weights: tuple[SignalWeight, ...] | None = None

    @property
    def today_date(self):
        return parse_date(self.today)

    @classmethod
    def build(
        cls,
        now: datetime | None = None,
        *,
        today: str | None = None,
        current_time: str | None = None,
        day_of_week: str | None = None,
        signals: Iterable[Signal | Mapping[str, Any]] = (),
        mcp_data: Mapping[str, Any] | None = None,
        signal_weights: Iterable[SignalWeight | Mapping[str, Any]] | None = None,
        **collections: Iterable[Mapping[str, Any]] | None,
    ) -> "AnticipationContext":
        """
        Assemble a context, deriving calendar fields from `now`.

        When `now` is omitted but `today` (and optionally `current_time`) is
        given, the evaluation instant is that UTC date/time. With neither,
        the wall clock is used.
        """
        unknown = set(collections) - set(_RECORD_FIELDS)
        if unknown:
            raise TypeError(f"Unknown context collections: {sorted(unknown)}")

        if now is None:
            if today:
                now = parse_datetime(f"{today}T{current_time or '00:00'}")
                if now is None:
                    raise ValueError(f"Invalid today/current_time: {today!r} {current_time!r}")
            else:
                now = utc_now()
        now = parse_datetime(now)

        weights = None
        if signal_weights is not None:
            weights = tuple(
                w if isinstance(w, SignalWeight) else SignalWeight.from_dict(w)
                for w in signal_weights
            )

        return cls(
            now=now,
            today=today or now.date().isoformat(),
            current_time=current_time or format_hhmm(now),
            day_of_week=day_of_week or weekday_name(now.date()),
            signals=tuple(s if isinstance(s, Signal) else Signal.from_dict(s) for s in signals),
            mcp_data=_normalize_mcp_data(mcp_data),
            signal_weights=weights,
            **{name: _freeze_records(collections.get(name)) for name in _RECORD_FIELDS},
        )

    @classmethod
    def empty(cls, now: datetime | None = None) -> "AnticipationContext":
        return cls.build(now)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], now: datetime | None = None) -> "AnticipationContext":
        """Build from a snapshot dict using either wire (camelCase) or field names."""
        kwargs = {_CONTEXT_ALIASES.get(k, k): v for k, v in data.items()}
        if now is None and kwargs.get("now"):
            now = parse_datetime(kwargs["now"])
        kwargs.pop("now", None)
        return cls.build(now, **kwargs)


# =============================================================================
# CONFIG / READ MODELS
# =============================================================================


@dataclass(frozen=True)
class AgingConfig:
    """Aging detector thresholds."""

    email_attention_hours: float = 24
    email_urgent_hours: float = 48
    email_critical_hours: float = 72
    task_stale_days: float = 3
    lead_response_hours: float = 4

    def __post_init__(self):
        for f in fields(self):
            if getattr(self, f.name) <= 0:
                raise ValueError(f"AgingConfig.{f.name} must be positive")
        if not (
            self.email_attention_hours < self.email_urgent_hours < self.email_critical_hours
        ):
            raise ValueError("Email aging thresholds must increase: attention < urgent < critical")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "AgingConfig":
        valid_fields = {f.name for f in fields(cls)}
        unknown = set(data) - valid_fields
        if unknown:
            raise ValueError(f"Unknown aging settings: {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in data.items()})


@dataclass
class PortfolioPulse:
    equity: float
    day_pnl: float
    day_pnl_pct: float
    positions_count: int
    active_deals_count: int
    total_deal_value: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MorningBrief:
    """Daily projection of the prioritized signal set. Owns nothing."""

    date: str
    urgent_signals: list[Signal]
    attention_signals: list[Signal]
    calendar_summary: list[str]
    family_summary: list[str]
    ai_insight: str
    portfolio_pulse: PortfolioPulse | None = None
    learned_suggestions: list[str] | None = None
    id: str = field(default_factory=lambda: generate_id("brief"))
    generated_at: str = field(default_factory=lambda: to_iso(utc_now()))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "urgent_signals": [s.to_dict() for s in self.urgent_signals],
            "attention_signals": [s.to_dict() for s in self.attention_signals],
            "portfolio_pulse": self.portfolio_pulse.to_dict() if self.portfolio_pulse else None,
            "calendar_summary": list(self.calendar_summary),
            "family_summary": list(self.family_summary),
            "ai_insight": self.ai_insight,
            "learned_suggestions": self.learned_suggestions,
            "generated_at": self.generated_at,
        }
