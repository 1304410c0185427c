"""
Financial Sentinel: portfolio P&L and the real-estate deal pipeline.

    alpaca.day_pnl < -500                  critical portfolio_alert
    alpaca.day_pnl < -100                  urgent portfolio_alert
    open deal, analysis > 7 days old       attention deal_update
      ... and status under_contract        urgent deal_update

The alpaca snapshot is optional; any missing piece means no portfolio signal.
"""

import logging
from collections.abc import Mapping

from ..models import AnticipationContext, LifeDomain, Signal, SignalSeverity, SignalType, make_signal
from ..temporal import parse_datetime

logger = logging.getLogger(__name__)

NAME = "financial-sentinel"

CRITICAL_LOSS = -500
URGENT_LOSS = -100
DEAL_STALE_DAYS = 7

_CLOSED_DEAL_STATUSES = {"closed", "dead"}


def classify_day_pnl(day_pnl: float) -> SignalSeverity | None:
    if day_pnl < CRITICAL_LOSS:
        return SignalSeverity.CRITICAL
    if day_pnl < URGENT_LOSS:
        return SignalSeverity.URGENT
    return None


def _portfolio_signals(context: AnticipationContext) -> list[Signal]:
    alpaca = context.mcp_data.get("alpaca")
    if not isinstance(alpaca, Mapping):
        return []

    try:
        day_pnl = float(alpaca.get("day_pnl"))
    except (TypeError, ValueError):
        logger.debug("alpaca snapshot has no usable day_pnl")
        return []

    severity = classify_day_pnl(day_pnl)
    if severity is None:
        return []

    equity = float(alpaca.get("equity") or 0)
    positions = alpaca.get("positions") or []
    critical = severity is SignalSeverity.CRITICAL

    return [
        make_signal(
            type=SignalType.PORTFOLIO_ALERT,
            severity=severity,
            domain=LifeDomain.FINANCE,
            source=NAME,
            title=f"{'Critical Portfolio Loss' if critical else 'Portfolio Loss'}: ${abs(day_pnl):.2f}",
            context=(
                f"Day P&L is ${day_pnl:.2f} with {len(positions)} active positions. "
                f"Equity: ${equity:.2f}"
            ),
            suggested_action=(
                "Review positions immediately and consider risk management actions"
                if critical
                else "Review underperforming positions"
            ),
            now=context.now,
        )
    ]


def _deal_signals(context: AnticipationContext) -> list[Signal]:
    signals = []
    now = context.now

    for deal in context.deals:
        status = deal.get("status")
        if status in _CLOSED_DEAL_STATUSES:
            continue
        last_analysis = parse_datetime(deal.get("last_analysis_at"))
        if last_analysis is None:
            continue

        elapsed = now - last_analysis
        if elapsed.total_seconds() <= DEAL_STALE_DAYS * 86400:
            continue

        days = elapsed.days
        address = deal.get("address", "")
        if status == "under_contract":
            signals.append(
                make_signal(
                    type=SignalType.DEAL_UPDATE,
                    severity=SignalSeverity.URGENT,
                    domain=LifeDomain.BUSINESS_RE,
                    source=NAME,
                    title=f"Under-Contract Deal Needs Analysis: {address}",
                    context=(
                        f"Deal under contract for {days} days without fresh analysis. "
                        f"Due diligence period may be ending."
                    ),
                    suggested_action="Update analysis and verify all contingencies are complete",
                    related_entity_ids=[deal["id"]],
                    now=now,
                )
            )
        else:
            signals.append(
                make_signal(
                    type=SignalType.DEAL_UPDATE,
                    severity=SignalSeverity.ATTENTION,
                    domain=LifeDomain.BUSINESS_RE,
                    source=NAME,
                    title=f"Stale Deal: {address}",
                    context=(
                        f"Deal has been in {status} status for {days} days without analysis. "
                        f"Strategy: {deal.get('strategy', 'unknown')}"
                    ),
                    suggested_action="Run fresh comps and update deal analysis",
                    related_entity_ids=[deal["id"]],
                    now=now,
                )
            )

    return signals


def detect_financial_signals(context: AnticipationContext) -> list[Signal]:
    return _portfolio_signals(context) + _deal_signals(context)
