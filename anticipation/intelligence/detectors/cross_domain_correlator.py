"""
Cross-Domain Correlator: second-order signals over the currently open set.

    3+ signals in one domain           pattern_insight (domain overload)
    business_re and finance both open  financial_update
    family and any business domain     context_switch_prep (work-life balance)

All correlations are attention severity and relate the contributing signal ids.
"""

from ..models import (
    BUSINESS_DOMAINS,
    AnticipationContext,
    LifeDomain,
    Signal,
    SignalSeverity,
    SignalType,
    make_signal,
)

NAME = "cross-domain-correlator"

OVERLOAD_THRESHOLD = 3


def group_by_domain(signals) -> dict[LifeDomain, list[Signal]]:
    grouped: dict[LifeDomain, list[Signal]] = {}
    for signal in signals:
        grouped.setdefault(signal.domain, []).append(signal)
    return grouped


def detect_cross_domain_signals(context: AnticipationContext) -> list[Signal]:
    if not context.signals:
        return []

    by_domain = group_by_domain(context.signals)
    signals: list[Signal] = []

    for domain, domain_signals in by_domain.items():
        if len(domain_signals) < OVERLOAD_THRESHOLD:
            continue
        severities = ", ".join(s.severity.value for s in domain_signals)
        signals.append(
            make_signal(
                type=SignalType.PATTERN_INSIGHT,
                severity=SignalSeverity.ATTENTION,
                domain=domain,
                source=NAME,
                title=f"Domain Overload: {domain.value}",
                context=(
                    f"{len(domain_signals)} signals detected in {domain.value} domain "
                    f"(severities: {severities}). This domain may need focused attention."
                ),
                suggested_action=f"Block time to address {domain.value} items systematically",
                related_entity_ids=[s.id for s in domain_signals],
                now=context.now,
            )
        )

    re_signals = by_domain.get(LifeDomain.BUSINESS_RE, [])
    finance_signals = by_domain.get(LifeDomain.FINANCE, [])
    if re_signals and finance_signals:
        signals.append(
            make_signal(
                type=SignalType.FINANCIAL_UPDATE,
                severity=SignalSeverity.ATTENTION,
                domain=LifeDomain.BUSINESS_RE,
                source=NAME,
                title="Real Estate + Finance Activity Detected",
                context=(
                    f"{len(re_signals)} real estate signal(s) and {len(finance_signals)} "
                    f"finance signal(s) active. Deal pipeline and portfolio both need attention."
                ),
                suggested_action="Review cash flow availability for real estate deals given portfolio status",
                related_entity_ids=[s.id for s in re_signals + finance_signals],
                now=context.now,
            )
        )

    family_signals = by_domain.get(LifeDomain.FAMILY, [])
    active_business = [d for d in BUSINESS_DOMAINS if d in by_domain]
    if family_signals and active_business:
        business_signals = [s for d in active_business for s in by_domain[d]]
        signals.append(
            make_signal(
                type=SignalType.CONTEXT_SWITCH_PREP,
                severity=SignalSeverity.ATTENTION,
                domain=LifeDomain.FAMILY,
                source=NAME,
                title="Work-Life Balance: Family + Business Activity",
                context=(
                    f"{len(family_signals)} family signal(s) and {len(business_signals)} "
                    f"business signal(s) across {', '.join(d.value for d in active_business)}. "
                    f"Context switching may be needed."
                ),
                suggested_action="Plan transition time between family and business responsibilities",
                related_entity_ids=[s.id for s in family_signals + business_signals],
                now=context.now,
            )
        )

    return signals
