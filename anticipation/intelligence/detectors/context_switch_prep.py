"""
Context Switch Prep: heads-up before the next calendar event.

Only events starting strictly after now and at most 30 minutes away:

    <= 5 min   urgent
    <= 15 min  attention
    <= 30 min  info
"""

from ..models import AnticipationContext, LifeDomain, Signal, SignalSeverity, SignalType, make_signal
from ..temporal import format_hhmm, minutes_until, parse_datetime
from .domains import infer_domain_from_event

NAME = "context-switch-prep"

LOOKAHEAD_MINUTES = 30

_SUGGESTIONS = {
    SignalSeverity.URGENT: "Wrap up current task and prepare to transition",
    SignalSeverity.ATTENTION: "Begin wrapping up current work and gather materials for upcoming event",
    SignalSeverity.INFO: "Be aware of upcoming transition and plan accordingly",
}


def severity_by_proximity(minutes: int) -> SignalSeverity:
    if minutes <= 5:
        return SignalSeverity.URGENT
    if minutes <= 15:
        return SignalSeverity.ATTENTION
    return SignalSeverity.INFO


def detect_context_switch_signals(context: AnticipationContext) -> list[Signal]:
    now = context.now
    upcoming = []

    for event in context.calendar_events:
        if event.get("all_day"):
            continue
        start = parse_datetime(event.get("start_time"))
        if start is None or start <= now:
            continue
        end = parse_datetime(event.get("end_time"))
        if end is not None and end <= now:
            continue
        if (start - now).total_seconds() > LOOKAHEAD_MINUTES * 60:
            continue
        upcoming.append((start, event))

    upcoming.sort(key=lambda item: item[0])

    signals = []
    for start, event in upcoming:
        minutes = minutes_until(now, start)
        severity = severity_by_proximity(minutes)
        summary = event.get("summary", "")

        if event.get("is_focus_block"):
            signals.append(
                make_signal(
                    type=SignalType.CONTEXT_SWITCH_PREP,
                    severity=severity,
                    domain=LifeDomain.PERSONAL_GROWTH,
                    source=NAME,
                    title="Deep work session approaching",
                    context=f'Focus block "{summary}" starts in {minutes} minutes at {format_hhmm(start)}',
                    suggested_action=(
                        "Prepare your environment: close distractions, "
                        "silence notifications, gather materials"
                    ),
                    related_entity_ids=[event["id"]],
                    now=now,
                )
            )
        else:
            signals.append(
                make_signal(
                    type=SignalType.CONTEXT_SWITCH_PREP,
                    severity=severity,
                    domain=infer_domain_from_event(event),
                    source=NAME,
                    title="Upcoming context switch",
                    context=f'"{summary}" starts in {minutes} minutes at {format_hhmm(start)}',
                    suggested_action=_SUGGESTIONS[severity],
                    related_entity_ids=[event["id"]],
                    now=now,
                )
            )

    return signals
