"""
Aging Detector: unanswered email and stale active tasks.

Emails that are not replied/archived and not promotional escalate with
age since receipt (strictly greater than each threshold):

    > 24h  attention
    > 48h  urgent
    > 72h  critical

Active tasks whose status has not changed for more than task_stale_days
produce a follow_up_due attention signal.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ... import config
from ..models import (
    AgingConfig,
    AnticipationContext,
    LifeDomain,
    Signal,
    SignalSeverity,
    SignalType,
    make_signal,
)
from ..temporal import hours_between, parse_datetime

logger = logging.getLogger(__name__)

NAME = "aging-detector"

DEFAULT_AGING_CONFIG = AgingConfig()

_CLOSED_EMAIL_STATUSES = {"replied", "archived"}
_PROMOTIONAL_TIERS = {"promotions", "unsubscribe"}


def load_aging_config(thresholds: dict | None = None) -> AgingConfig:
    """Aging thresholds from the `aging` section of thresholds.yaml."""
    section = config.get_section("aging", thresholds)
    if not section:
        return DEFAULT_AGING_CONFIG
    return AgingConfig.from_mapping(section)


def classify_email_age(hours_since: float, cfg: AgingConfig = DEFAULT_AGING_CONFIG) -> SignalSeverity | None:
    """Severity for an unanswered email of the given age, or None if still fresh."""
    if hours_since > cfg.email_critical_hours:
        return SignalSeverity.CRITICAL
    if hours_since > cfg.email_urgent_hours:
        return SignalSeverity.URGENT
    if hours_since > cfg.email_attention_hours:
        return SignalSeverity.ATTENTION
    return None


def _last_status_change(task: Mapping[str, Any]):
    for key in ("status_changed_at", "updated_at", "created_date", "created_at"):
        dt = parse_datetime(task.get(key))
        if dt is not None:
            return dt
    return None


def detect_aging_signals(
    context: AnticipationContext, aging_config: AgingConfig | None = None
) -> list[Signal]:
    cfg = aging_config or DEFAULT_AGING_CONFIG
    now = context.now
    signals: list[Signal] = []

    for email in context.emails:
        if email.get("status") in _CLOSED_EMAIL_STATUSES:
            continue
        if email.get("tier") in _PROMOTIONAL_TIERS:
            continue

        received_at = parse_datetime(email.get("received_at"))
        if received_at is None:
            continue

        hours_since = hours_between(received_at, now)
        severity = classify_email_age(hours_since, cfg)
        if severity is None:
            continue

        sender = email.get("from") or "unknown sender"
        signals.append(
            make_signal(
                type=SignalType.AGING_EMAIL,
                severity=severity,
                domain=LifeDomain.BUSINESS_TECH,
                source=NAME,
                title=f"Email from {sender} aging ({int(hours_since)}h)",
                context=f'Subject: "{email.get("subject", "")}" received {int(hours_since)} hours ago',
                suggested_action=f"Review and respond to email from {sender}",
                related_entity_ids=[email["id"]],
                now=now,
            )
        )

    for task in context.tasks:
        if task.get("status") != "active":
            continue

        changed_at = _last_status_change(task)
        if changed_at is None:
            continue

        days_since = (now - changed_at).total_seconds() / 86400
        if days_since <= cfg.task_stale_days:
            continue

        title = task.get("title", "")
        signals.append(
            make_signal(
                type=SignalType.FOLLOW_UP_DUE,
                severity=SignalSeverity.ATTENTION,
                domain=LifeDomain.BUSINESS_TECH,
                source=NAME,
                title=f'Task "{title}" has been active for {int(days_since)} days',
                context=(
                    f"No status change in {int(days_since)} days "
                    f"(priority {task.get('priority', 'unset')})"
                ),
                suggested_action=f'Review progress or complete task "{title}"',
                related_entity_ids=[task["id"]],
                now=now,
            )
        )

    return signals
