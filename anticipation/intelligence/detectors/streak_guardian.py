"""
Streak Guardian: warns before a habit streak breaks.

Whole days since the category was last active:

    1 day, streak >= 7   urgent (a long streak needs action today)
    1 day, streak < 7    attention
    2+ days              critical (already broken)

Categories with no streak, no last-active date, or activity today are skipped.
"""

from ..models import AnticipationContext, Signal, SignalSeverity, SignalType, make_signal
from ..temporal import days_between, parse_date
from .domains import map_category_to_domain

NAME = "streak-guardian"

LONG_STREAK_DAYS = 7


def classify_streak_risk(days_since: int, streak_count: int) -> SignalSeverity | None:
    if streak_count <= 0:
        return None
    if days_since == 1:
        return SignalSeverity.URGENT if streak_count >= LONG_STREAK_DAYS else SignalSeverity.ATTENTION
    if days_since >= 2:
        return SignalSeverity.CRITICAL
    return None


def detect_streak_signals(context: AnticipationContext) -> list[Signal]:
    signals: list[Signal] = []
    today = context.today_date

    for category in context.categories:
        streak = category.get("streak_count") or 0
        last_active = parse_date(category.get("last_active_date"))
        if streak <= 0 or last_active is None:
            continue

        days_since = days_between(last_active, today)
        severity = classify_streak_risk(days_since, streak)
        if severity is None:
            continue

        name = category.get("name", "")
        if severity is SignalSeverity.CRITICAL:
            message = (
                f"Your {name} streak of {streak} days has been broken. "
                f"Last activity was {days_since} days ago."
            )
        elif severity is SignalSeverity.URGENT:
            message = (
                f"Your {name} streak of {streak} days is still alive "
                f"but needs action today to continue."
            )
        else:
            message = (
                f"Your {name} streak of {streak} days was last active yesterday. "
                f"Complete a task today to keep it going."
            )

        signals.append(
            make_signal(
                type=SignalType.STREAK_AT_RISK,
                severity=severity,
                domain=map_category_to_domain(name),
                source=NAME,
                title=f"{name} streak at risk ({streak} days)",
                context=message,
                suggested_action=f"Complete a {name} task today to maintain your streak",
                related_entity_ids=[category["id"]],
                now=context.now,
            )
        )

    return signals
