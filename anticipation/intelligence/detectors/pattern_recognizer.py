"""
Pattern Recognizer: compares today against learned behaviour.

Reads `historical_patterns` records of the form
``{"pattern_type": ..., "data": {...}}``:

    completion_rate   data.rate (tasks/day); info when the trailing
                      7-day rate falls below 80% of it
    peak_hours        data.hours; info when the current hour is one of them
    day_of_week       data.<weekday> = {avgTasks, avgCompletionRate}; info

Independently, categories with no activity for 7+ days are flagged at
attention. Categories that were never started (no streak, no progress)
are not neglected.
"""

from collections.abc import Iterable, Mapping
from datetime import date, datetime, timedelta
from typing import Any

from ..models import AnticipationContext, LifeDomain, Signal, SignalSeverity, SignalType, make_signal
from ..temporal import parse_date, parse_datetime
from .domains import map_category_to_domain

NAME = "pattern-recognizer"

COMPLETION_WINDOW_DAYS = 7
DECLINE_RATIO = 0.8
NEGLECT_DAYS = 7


def _find_pattern(context: AnticipationContext, pattern_type: str) -> Mapping[str, Any] | None:
    for pattern in context.historical_patterns:
        if pattern.get("pattern_type") == pattern_type:
            return pattern.get("data") or {}
    return None


def compute_completion_rate(
    tasks: Iterable[Mapping[str, Any]], days: int, now: datetime
) -> float:
    """Tasks completed per day over the trailing window ending at `now`."""
    cutoff = now - timedelta(days=days)
    completed = 0
    for task in tasks:
        completed_at = parse_datetime(task.get("completed_date"))
        if completed_at is not None and completed_at >= cutoff:
            completed += 1
    return completed / days


def find_neglected_categories(
    categories: Iterable[Mapping[str, Any]], today: date
) -> list[Mapping[str, Any]]:
    cutoff = today - timedelta(days=NEGLECT_DAYS)
    neglected = []
    for category in categories:
        if not category.get("streak_count") and not category.get("current_progress"):
            continue
        last_active = parse_date(category.get("last_active_date"))
        if last_active is None or last_active < cutoff:
            neglected.append(category)
    return neglected


def _completion_rate_signal(context: AnticipationContext) -> Signal | None:
    data = _find_pattern(context, "completion_rate")
    if data is None:
        return None

    historical_rate = float(data.get("rate") or 0)
    current_rate = compute_completion_rate(context.tasks, COMPLETION_WINDOW_DAYS, context.now)
    if current_rate >= historical_rate * DECLINE_RATIO:
        return None

    return make_signal(
        type=SignalType.PATTERN_INSIGHT,
        severity=SignalSeverity.INFO,
        domain=LifeDomain.PERSONAL_GROWTH,
        source=NAME,
        title="Completion rate declining",
        context=(
            f"Your task completion rate has dropped to {current_rate:.1f} tasks/day "
            f"from {historical_rate:.1f} tasks/day"
        ),
        now=context.now,
    )


def _peak_hours_signal(context: AnticipationContext) -> Signal | None:
    data = _find_pattern(context, "peak_hours")
    if data is None:
        return None

    try:
        current_hour = int(context.current_time.split(":")[0])
    except ValueError:
        return None
    if current_hour not in (data.get("hours") or []):
        return None

    return make_signal(
        type=SignalType.PATTERN_INSIGHT,
        severity=SignalSeverity.INFO,
        domain=LifeDomain.PERSONAL_GROWTH,
        source=NAME,
        title="Peak productivity window",
        context=(
            f"You're in your peak productivity window ({context.current_time}). "
            f"Consider scheduling deep work now."
        ),
        suggested_action="Block time for your most demanding tasks",
        now=context.now,
    )


def _day_of_week_signal(context: AnticipationContext) -> Signal | None:
    data = _find_pattern(context, "day_of_week")
    if data is None:
        return None

    day = context.day_of_week
    profile = data.get(day.lower()) or {}
    avg_tasks = profile.get("avgTasks", profile.get("avg_tasks"))
    avg_rate = profile.get("avgCompletionRate", profile.get("avg_completion_rate"))
    if avg_tasks is None or avg_rate is None:
        return None

    return make_signal(
        type=SignalType.PATTERN_INSIGHT,
        severity=SignalSeverity.INFO,
        domain=LifeDomain.PERSONAL_GROWTH,
        source=NAME,
        title=f"{day} productivity pattern",
        context=(
            f"Typically on {day}s you complete {float(avg_tasks):.1f} tasks "
            f"at {float(avg_rate) * 100:.0f}% rate"
        ),
        now=context.now,
    )


def _neglect_signals(context: AnticipationContext) -> list[Signal]:
    signals = []
    for category in find_neglected_categories(context.categories, context.today_date):
        name = category.get("name", "")
        signals.append(
            make_signal(
                type=SignalType.PATTERN_INSIGHT,
                severity=SignalSeverity.ATTENTION,
                domain=map_category_to_domain(name),
                source=NAME,
                title=f"{name} category neglected",
                context=(
                    f"No activity in {name} for {NEGLECT_DAYS}+ days. "
                    f"Last active: {category.get('last_active_date') or 'never'}"
                ),
                suggested_action=f"Schedule a task in {name} to maintain balance",
                related_entity_ids=[category["id"]],
                now=context.now,
            )
        )
    return signals


def detect_pattern_signals(context: AnticipationContext) -> list[Signal]:
    signals = [
        s
        for s in (
            _completion_rate_signal(context),
            _peak_hours_signal(context),
            _day_of_week_signal(context),
        )
        if s is not None
    ]
    signals.extend(_neglect_signals(context))
    return signals
