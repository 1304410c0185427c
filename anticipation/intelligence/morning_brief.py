"""
Morning Brief: daily read model over the prioritized signal set.

Sections:
    urgent_signals     critical + urgent, in the given (priority) order
    attention_signals  attention, in the given order
    portfolio_pulse    only when an alpaca snapshot is present
    calendar_summary   first 5 of today's events, "HH:MM - summary"
    family_summary     today's family events, "member: summary at HH:MM"
    ai_insight         rule-based one-line narrative

The brief owns nothing; it is rebuilt from the store whenever needed.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from .models import (
    AnticipationContext,
    MorningBrief,
    PortfolioPulse,
    Signal,
    SignalSeverity,
)
from .temporal import day_bounds, format_hhmm, parse_datetime, to_iso

CALENDAR_SUMMARY_LIMIT = 5

ACTIVE_DEAL_STATUSES = {"prospect", "analyzing", "offer", "under_contract"}


def _as_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def build_portfolio_pulse(context: AnticipationContext) -> PortfolioPulse | None:
    alpaca = context.mcp_data.get("alpaca")
    if not isinstance(alpaca, Mapping):
        return None

    equity = _as_float(alpaca.get("equity"))
    day_pnl = _as_float(alpaca.get("day_pnl"))
    active_deals = [d for d in context.deals if d.get("status") in ACTIVE_DEAL_STATUSES]

    return PortfolioPulse(
        equity=equity,
        day_pnl=day_pnl,
        day_pnl_pct=(day_pnl / equity) * 100 if equity > 0 else 0.0,
        positions_count=len(alpaca.get("positions") or []),
        active_deals_count=len(active_deals),
        total_deal_value=sum(_as_float(d.get("purchase_price")) for d in active_deals),
    )


def _todays_events(context: AnticipationContext, events: Iterable[Mapping[str, Any]]):
    day_start, day_end = day_bounds(context.today_date)
    todays = []
    for event in events:
        start = parse_datetime(event.get("start_time"))
        if start is not None and day_start <= start < day_end:
            todays.append((start, event))
    todays.sort(key=lambda item: item[0])
    return todays


def build_calendar_summary(context: AnticipationContext) -> list[str]:
    todays = _todays_events(context, context.calendar_events)[:CALENDAR_SUMMARY_LIMIT]
    return [f"{format_hhmm(start)} - {event.get('summary', '')}" for start, event in todays]


def build_family_summary(context: AnticipationContext) -> list[str]:
    family_events = context.mcp_data.get("family_calendars") or ()
    return [
        f"{event.get('member', 'Family')}: {event.get('summary', '')} at {format_hhmm(start)}"
        for start, event in _todays_events(context, family_events)
    ]


def generate_insight(
    urgent: list[Signal], attention: list[Signal], context: AnticipationContext
) -> str:
    urgent_count = len(urgent)
    attention_count = len(attention)
    total = urgent_count + attention_count

    if urgent_count >= 5:
        return (
            f"High-priority day ahead: {urgent_count} urgent items requiring immediate "
            f"attention. Prioritize ruthlessly and delegate where possible."
        )
    if urgent_count >= 2:
        return (
            f"{urgent_count} urgent items need your attention today. Focus on these first, "
            f"then address {attention_count} attention-level items."
        )
    if urgent_count == 1:
        urgent_type = urgent[0].type.value.replace("_", " ")
        rest = f"{attention_count} items to be aware of" if attention_count else "clear day ahead"
        return f"One urgent item ({urgent_type}) needs your attention. Otherwise, {rest}."
    if attention_count >= 3:
        return (
            f"{attention_count} items on your radar today. No urgent fires, so this is a "
            f"good opportunity to make progress on strategic work."
        )
    if total <= 2:
        if context.calendar_events:
            return "Clear day ahead. Focus on deep work between scheduled commitments."
        return "Ideal conditions for deep work: minimal distractions, clear calendar. Make it count."
    return f"{total} items to track today. Balance attention between signals and proactive work."


def generate_morning_brief(
    context: AnticipationContext,
    signals: Iterable[Signal],
    learned_suggestions: list[str] | None = None,
) -> MorningBrief:
    signals = list(signals)
    urgent = [s for s in signals if s.severity in (SignalSeverity.CRITICAL, SignalSeverity.URGENT)]
    attention = [s for s in signals if s.severity == SignalSeverity.ATTENTION]

    return MorningBrief(
        date=context.today,
        urgent_signals=urgent,
        attention_signals=attention,
        portfolio_pulse=build_portfolio_pulse(context),
        calendar_summary=build_calendar_summary(context),
        family_summary=build_family_summary(context),
        ai_insight=generate_insight(urgent, attention, context),
        learned_suggestions=learned_suggestions,
        generated_at=to_iso(context.now),
    )
