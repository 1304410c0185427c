"""
Priority Synthesizer: dedup and rank one cycle's raw signals.

Pipeline:
    group_signals       -> {(type, primary entity | NO_ENTITY): [signals]}
    pick_representative -> most severe per group (first wins on ties)
    score_signals       -> severity + due-date boost + project boost,
                           multiplied by the learned (type, domain) weight
    synthesize_priorities -> representatives sorted by score, descending

Scoring:
    severity        critical 100, urgent 75, attention 50, info 25
    due-date boost  max(0, 100 - 10 * days until due) when the primary
                    related id is a task with a due_date (overdue > 100)
    project boost   +20 when a related id is the category of an active project
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .models import AnticipationContext, LifeDomain, Signal, SignalSeverity, SignalType, SignalWeight
from .temporal import days_between, parse_date

logger = logging.getLogger(__name__)

# Sentinel for signals with no related entity. All entity-less signals of
# one type share a group, so only one of them survives dedup.
NO_ENTITY = "__none__"

SEVERITY_SCORES = {
    SignalSeverity.CRITICAL: 100,
    SignalSeverity.URGENT: 75,
    SignalSeverity.ATTENTION: 50,
    SignalSeverity.INFO: 25,
}

SEVERITY_RANK = {
    SignalSeverity.CRITICAL: 0,
    SignalSeverity.URGENT: 1,
    SignalSeverity.ATTENTION: 2,
    SignalSeverity.INFO: 3,
}

ACTIVE_PROJECT_BOOST = 20

DedupKey = tuple[SignalType, str]
WeightMap = Mapping[tuple[SignalType, LifeDomain], float]


@dataclass(frozen=True)
class ScoredSignal:
    signal: Signal
    score: float

    def to_dict(self) -> dict:
        return {"signal": self.signal.to_dict(), "score": round(self.score, 2)}


def score_severity(severity: SignalSeverity) -> int:
    return SEVERITY_SCORES[SignalSeverity(severity)]


def severity_rank(signal: Signal) -> int:
    """Dedup comparator: lower is more severe."""
    return SEVERITY_RANK[signal.severity]


def dedup_key(signal: Signal) -> DedupKey:
    return (signal.type, signal.primary_entity_id or NO_ENTITY)


def group_signals(signals: Iterable[Signal]) -> dict[DedupKey, list[Signal]]:
    """Group by dedup key, preserving first-appearance order of keys and members."""
    groups: dict[DedupKey, list[Signal]] = {}
    for signal in signals:
        groups.setdefault(dedup_key(signal), []).append(signal)
    return groups


def pick_representative(group: list[Signal]) -> Signal:
    if not group:
        raise ValueError("Cannot pick a representative from an empty group")
    # min() returns the first of equal elements
    return min(group, key=severity_rank)


def deduplicate_signals(signals: Iterable[Signal]) -> list[Signal]:
    return [pick_representative(group) for group in group_signals(signals).values()]


def build_weight_map(weights: Iterable[SignalWeight] | WeightMap | None) -> WeightMap:
    if weights is None:
        return {}
    if isinstance(weights, Mapping):
        return dict(weights)
    return {w.key: w.weight_modifier for w in weights}


def _due_date_boost(signal: Signal, context: AnticipationContext) -> float:
    primary = signal.primary_entity_id
    if primary is None:
        return 0
    for task in context.tasks:
        if task.get("id") != primary:
            continue
        due = parse_date(task.get("due_date"))
        if due is None:
            return 0
        return max(0, 100 - days_between(context.today_date, due) * 10)
    return 0


def _project_boost(signal: Signal, context: AnticipationContext) -> float:
    if not signal.related_entity_ids:
        return 0
    related = set(signal.related_entity_ids)
    for project in context.projects:
        if project.get("status") == "active" and project.get("category_id") in related:
            return ACTIVE_PROJECT_BOOST
    return 0


def calculate_signal_score(
    signal: Signal, context: AnticipationContext, weight_map: WeightMap | None = None
) -> float:
    score = score_severity(signal.severity)
    score += _due_date_boost(signal, context)
    score += _project_boost(signal, context)
    if weight_map:
        score *= weight_map.get((signal.type, signal.domain), 1.0)
    return score


def score_signals(
    signals: Iterable[Signal],
    context: AnticipationContext,
    weights: Iterable[SignalWeight] | WeightMap | None = None,
) -> list[ScoredSignal]:
    """Deduplicate, score and sort. Stable: equal scores keep dedup order."""
    if weights is None:
        weights = context.signal_weights
    weight_map = build_weight_map(weights)

    scored = [
        ScoredSignal(signal, calculate_signal_score(signal, context, weight_map))
        for signal in deduplicate_signals(signals)
    ]
    scored.sort(key=lambda s: s.score, reverse=True)
    return scored


def synthesize_priorities(
    signals: Iterable[Signal],
    context: AnticipationContext,
    weights: Iterable[SignalWeight] | WeightMap | None = None,
) -> list[Signal]:
    return [s.signal for s in score_signals(signals, context, weights)]
