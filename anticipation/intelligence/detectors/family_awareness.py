"""
Family Awareness: family calendar events against the user's own day.

For each family event that has not ended yet:

    overlaps a personal calendar event     critical (relates both ids)
    starts within the next 2 hours         urgent
    starts later today                     attention

A conflicting event yields only the critical signal.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from ..models import AnticipationContext, LifeDomain, Signal, SignalSeverity, SignalType, make_signal
from ..temporal import day_bounds, format_hhmm, minutes_until, parse_datetime

NAME = "family-awareness"

SOON_WINDOW = timedelta(hours=2)


def describe_time_until(minutes: int) -> str:
    if minutes < 60:
        return f"in {minutes} minutes"
    hours, rem = divmod(minutes, 60)
    if rem == 0:
        return f"in {hours} hour{'s' if hours > 1 else ''}"
    return f"in {hours}h {rem}m"


def _event_span(event: Mapping[str, Any]) -> tuple[datetime, datetime] | None:
    start = parse_datetime(event.get("start_time"))
    end = parse_datetime(event.get("end_time"))
    if start is None or end is None:
        return None
    return start, end


def find_conflicting_event(
    family_event: Mapping[str, Any], calendar_events: Iterable[Mapping[str, Any]]
) -> Mapping[str, Any] | None:
    """First timed personal event whose interval overlaps the family event."""
    span = _event_span(family_event)
    if span is None:
        return None
    family_start, family_end = span

    for event in calendar_events:
        if event.get("all_day"):
            continue
        other = _event_span(event)
        if other is None:
            continue
        start, end = other
        if start < family_end and end > family_start:
            return event
    return None


def detect_family_signals(context: AnticipationContext) -> list[Signal]:
    family_events = context.mcp_data.get("family_calendars") or ()
    if not family_events:
        return []

    now = context.now
    soon = now + SOON_WINDOW
    _day_start, day_end = day_bounds(context.today_date)
    signals: list[Signal] = []

    for family_event in family_events:
        span = _event_span(family_event)
        if span is None:
            continue
        start, end = span
        if end < now:
            continue

        member = family_event.get("member", "Family member")
        summary = family_event.get("summary", "")

        conflict = find_conflicting_event(family_event, context.calendar_events)
        if conflict is not None:
            signals.append(
                make_signal(
                    type=SignalType.FAMILY_AWARENESS,
                    severity=SignalSeverity.CRITICAL,
                    domain=LifeDomain.FAMILY,
                    source=NAME,
                    title="Family event conflicts with your schedule",
                    context=(
                        f'{member}\'s event "{summary}" at {format_hhmm(start)} '
                        f'overlaps with your "{conflict.get("summary", "")}"'
                    ),
                    suggested_action=f'Reschedule "{conflict.get("summary", "")}" or notify {member}',
                    related_entity_ids=[family_event["id"], conflict["id"]],
                    now=now,
                )
            )
            continue

        if now < start <= soon:
            signals.append(
                make_signal(
                    type=SignalType.FAMILY_AWARENESS,
                    severity=SignalSeverity.URGENT,
                    domain=LifeDomain.FAMILY,
                    source=NAME,
                    title=f"{member}'s event starting soon",
                    context=(
                        f'"{summary}" starts at {format_hhmm(start)} '
                        f"({describe_time_until(minutes_until(now, start))})"
                    ),
                    suggested_action="Be aware and prepare to wrap up current work",
                    related_entity_ids=[family_event["id"]],
                    now=now,
                )
            )
        elif soon < start < day_end:
            signals.append(
                make_signal(
                    type=SignalType.FAMILY_AWARENESS,
                    severity=SignalSeverity.ATTENTION,
                    domain=LifeDomain.FAMILY,
                    source=NAME,
                    title=f"{member} has event today",
                    context=f'"{summary}" at {format_hhmm(start)}',
                    suggested_action="Plan your day accordingly",
                    related_entity_ids=[family_event["id"]],
                    now=now,
                )
            )

    return signals
