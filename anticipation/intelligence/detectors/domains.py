"""
Keyword-based life-domain inference for categories and calendar events.
"""

import re
from collections.abc import Mapping
from typing import Any

from ..models import LifeDomain

# Checked in order; first hit wins
_CATEGORY_KEYWORDS: tuple[tuple[tuple[str, ...], LifeDomain], ...] = (
    (("health", "fitness"), LifeDomain.HEALTH_FITNESS),
    (("wealth", "finance", "money"), LifeDomain.FINANCE),
    (("family", "relationship"), LifeDomain.FAMILY),
    (("business", "work", "career"), LifeDomain.BUSINESS_TECH),
    (("social",), LifeDomain.SOCIAL),
    (("creative", "art"), LifeDomain.CREATIVE),
    (("spiritual", "mindfulness"), LifeDomain.SPIRITUAL),
)

_EVENT_PATTERNS: tuple[tuple[re.Pattern, LifeDomain], ...] = (
    (re.compile(r"\b(deal|property|real estate|showing|inspection|closing)\b"), LifeDomain.BUSINESS_RE),
    (re.compile(r"\b(trade|trading|market|stock|portfolio|alpaca)\b"), LifeDomain.BUSINESS_TRADING),
    (re.compile(r"\b(dev|development|code|coding|meeting|client|project)\b"), LifeDomain.BUSINESS_TECH),
    (re.compile(r"\b(family|kids|spouse|school|pickup|dropoff)\b"), LifeDomain.FAMILY),
    (re.compile(r"\b(workout|gym|doctor|health|fitness)\b"), LifeDomain.HEALTH_FITNESS),
    (re.compile(r"\b(social|dinner|coffee|drinks|hangout)\b"), LifeDomain.SOCIAL),
    (re.compile(r"\b(church|prayer|meditation|spiritual)\b"), LifeDomain.SPIRITUAL),
    (re.compile(r"\b(creative|writing|music|art|hobby)\b"), LifeDomain.CREATIVE),
)


def map_category_to_domain(category_name: str | None) -> LifeDomain:
    """Map a habit/category name onto a life domain. Defaults to personal growth."""
    lower = (category_name or "").lower()
    for keywords, domain in _CATEGORY_KEYWORDS:
        if any(k in lower for k in keywords):
            return domain
    return LifeDomain.PERSONAL_GROWTH


def infer_domain_from_event(event: Mapping[str, Any]) -> LifeDomain:
    """Infer a calendar event's domain from its summary and description."""
    text = f"{event.get('summary') or ''} {event.get('description') or ''}".lower()
    for pattern, domain in _EVENT_PATTERNS:
        if pattern.search(text):
            return domain
    return LifeDomain.PERSONAL_GROWTH
