"""
Deadline Radar: task/project due dates and today's calendar load.

Tasks (not completed/dismissed):   overdue critical, today urgent,
                                   tomorrow attention, <= 3 days info
Projects (not completed):          overdue critical, <= 3 days urgent,
                                   <= 7 days attention
Calendar (today, timed events):    overlapping pair -> urgent conflict,
                                   > 8h booked -> attention "overbooked"
"""

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from ..models import (
    AnticipationContext,
    LifeDomain,
    Signal,
    SignalSeverity,
    SignalType,
    make_signal,
)
from ..temporal import day_bounds, days_between, format_hhmm, parse_date, parse_datetime

NAME = "deadline-radar"

TASK_INFO_DAYS = 3
PROJECT_URGENT_DAYS = 3
PROJECT_ATTENTION_DAYS = 7
OVERBOOKED_MINUTES = 8 * 60

_CLOSED_TASK_STATUSES = {"completed", "dismissed"}


def _plural_days(n: int) -> str:
    return f"{n} day{'' if n == 1 else 's'}"


def classify_task_deadline(days_until: int) -> tuple[SignalSeverity, str] | None:
    if days_until < 0:
        return SignalSeverity.CRITICAL, "OVERDUE"
    if days_until == 0:
        return SignalSeverity.URGENT, "Due today"
    if days_until == 1:
        return SignalSeverity.ATTENTION, "Due tomorrow"
    if days_until <= TASK_INFO_DAYS:
        return SignalSeverity.INFO, f"Due in {days_until} days"
    return None


def classify_project_deadline(days_until: int) -> tuple[SignalSeverity, str] | None:
    if days_until < 0:
        return SignalSeverity.CRITICAL, "OVERDUE"
    if days_until <= PROJECT_URGENT_DAYS:
        return SignalSeverity.URGENT, f"Due in {_plural_days(days_until)}"
    if days_until <= PROJECT_ATTENTION_DAYS:
        return SignalSeverity.ATTENTION, f"Due in {days_until} days"
    return None


def _task_signals(context: AnticipationContext) -> list[Signal]:
    signals = []
    today = context.today_date

    for task in context.tasks:
        if task.get("status") in _CLOSED_TASK_STATUSES:
            continue
        due = parse_date(task.get("due_date"))
        if due is None:
            continue

        days_until = days_between(today, due)
        classified = classify_task_deadline(days_until)
        if classified is None:
            continue

        severity, prefix = classified
        title = task.get("title", "")
        if days_until < 0:
            message = f'Task "{title}" was due {_plural_days(abs(days_until))} ago.'
        elif days_until == 0:
            message = f'Task "{title}" is due today.'
        elif days_until == 1:
            message = f'Task "{title}" is due tomorrow.'
        else:
            message = f'Task "{title}" is due in {days_until} days.'

        signals.append(
            make_signal(
                type=SignalType.DEADLINE_APPROACHING,
                severity=severity,
                domain=LifeDomain.PERSONAL_GROWTH,
                source=NAME,
                title=f"{prefix}: {title}",
                context=message,
                suggested_action=(
                    "Address this overdue task immediately"
                    if days_until < 0
                    else "Schedule time to complete this task"
                ),
                related_entity_ids=[task["id"]],
                now=context.now,
            )
        )

    return signals


def _project_signals(context: AnticipationContext) -> list[Signal]:
    signals = []
    today = context.today_date

    for project in context.projects:
        if project.get("status") == "completed":
            continue
        due = parse_date(project.get("due_date"))
        if due is None:
            continue

        days_until = days_between(today, due)
        classified = classify_project_deadline(days_until)
        if classified is None:
            continue

        severity, prefix = classified
        title = project.get("title", "")
        if days_until < 0:
            message = f'Project "{title}" was due {_plural_days(abs(days_until))} ago.'
        else:
            message = f'Project "{title}" is due in {_plural_days(days_until)}.'

        signals.append(
            make_signal(
                type=SignalType.DEADLINE_APPROACHING,
                severity=severity,
                domain=LifeDomain.PERSONAL_GROWTH,
                source=NAME,
                title=f"{prefix}: {title}",
                context=message,
                suggested_action=(
                    "Review and reschedule this overdue project"
                    if days_until < 0
                    else "Review project progress and plan next actions"
                ),
                related_entity_ids=[project["id"]],
                now=context.now,
            )
        )

    return signals


def _todays_timed_events(
    context: AnticipationContext,
) -> list[tuple[Mapping[str, Any], datetime, datetime]]:
    day_start, day_end = day_bounds(context.today_date)
    events = []
    for event in context.calendar_events:
        if event.get("all_day"):
            continue
        start = parse_datetime(event.get("start_time"))
        end = parse_datetime(event.get("end_time"))
        if start is None or end is None or end <= start:
            continue
        if day_start <= start < day_end:
            events.append((event, start, end))
    events.sort(key=lambda item: item[1])
    return events


def _busy_minutes(events: list[tuple[Mapping[str, Any], datetime, datetime]]) -> int:
    """Booked minutes with overlapping intervals merged. Expects start-sorted input."""
    total = 0.0
    current_start = current_end = None
    for _event, start, end in events:
        if current_end is None or start > current_end:
            if current_end is not None:
                total += (current_end - current_start).total_seconds()
            current_start, current_end = start, end
        else:
            current_end = max(current_end, end)
    if current_end is not None:
        total += (current_end - current_start).total_seconds()
    return int(total // 60)


def _calendar_signals(context: AnticipationContext) -> list[Signal]:
    signals = []
    events = _todays_timed_events(context)

    for i, (first, first_start, first_end) in enumerate(events):
        for second, second_start, _second_end in events[i + 1 :]:
            if second_start >= first_end:
                break
            signals.append(
                make_signal(
                    type=SignalType.CALENDAR_CONFLICT,
                    severity=SignalSeverity.URGENT,
                    domain=LifeDomain.PERSONAL_GROWTH,
                    source=NAME,
                    title=f"Double-booked: {first.get('summary', '')} / {second.get('summary', '')}",
                    context=(
                        f'"{first.get("summary", "")}" ({format_hhmm(first_start)}-'
                        f'{format_hhmm(first_end)}) overlaps "{second.get("summary", "")}" '
                        f"starting {format_hhmm(second_start)}."
                    ),
                    suggested_action="Decline or reschedule one of the overlapping events",
                    related_entity_ids=[first["id"], second["id"]],
                    now=context.now,
                )
            )

    busy = _busy_minutes(events)
    if busy > OVERBOOKED_MINUTES:
        signals.append(
            make_signal(
                type=SignalType.CALENDAR_CONFLICT,
                severity=SignalSeverity.ATTENTION,
                domain=LifeDomain.PERSONAL_GROWTH,
                source=NAME,
                title=f"Overbooked today ({busy // 60}h {busy % 60}m scheduled)",
                context=(
                    f"{len(events)} events fill {busy} minutes today, "
                    f"more than the {OVERBOOKED_MINUTES // 60}h working budget."
                ),
                suggested_action="Move lower-priority meetings to another day",
                now=context.now,
            )
        )

    return signals


def detect_deadline_signals(context: AnticipationContext) -> list[Signal]:
    return _task_signals(context) + _project_signals(context) + _calendar_signals(context)
