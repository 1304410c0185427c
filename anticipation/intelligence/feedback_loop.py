"""
Effectiveness Feedback: learns per (signal type, domain) weights from how
the user responds to signals.

Counters:
    total_generated   signals of this key that fired
    total_dismissed   ... that the user dismissed
    total_acted_on    ... that the user acted on

effectiveness_score = acted / max(generated, 1)

Once acted + dismissed reaches min_interactions, the weight modifier moves
toward the target

    target = 0.3 + 1.7 * acted / (acted + dismissed)

by learning_rate of the remaining gap per update, clamped to
[min_modifier, max_modifier]. Below the floor the modifier stays put.
The synthesizer multiplies each signal's score by its key's modifier.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, fields
from typing import Any

from .. import config
from ..storage import Collection, RecordNotFoundError
from .models import LifeDomain, Signal, SignalType, SignalWeight
from .temporal import to_iso, utc_now

logger = logging.getLogger(__name__)

WeightKey = tuple[SignalType, LifeDomain]


@dataclass(frozen=True)
class FeedbackConfig:
    min_interactions: int = 5
    learning_rate: float = 0.2
    min_modifier: float = 0.3
    max_modifier: float = 2.0

    def __post_init__(self):
        if self.min_interactions < 0:
            raise ValueError("min_interactions must be >= 0")
        if not 0 < self.learning_rate <= 1:
            raise ValueError("learning_rate must be in (0, 1]")
        if not 0 < self.min_modifier <= self.max_modifier:
            raise ValueError("Modifier bounds must satisfy 0 < min_modifier <= max_modifier")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "FeedbackConfig":
        valid_fields = {f.name for f in fields(cls)}
        unknown = set(data) - valid_fields
        if unknown:
            raise ValueError(f"Unknown feedback settings: {sorted(unknown)}")
        return cls(
            min_interactions=int(data.get("min_interactions", cls.min_interactions)),
            learning_rate=float(data.get("learning_rate", cls.learning_rate)),
            min_modifier=float(data.get("min_modifier", cls.min_modifier)),
            max_modifier=float(data.get("max_modifier", cls.max_modifier)),
        )


def load_feedback_config(thresholds: dict | None = None) -> FeedbackConfig:
    """Feedback settings from the `feedback` section of thresholds.yaml."""
    section = config.get_section("feedback", thresholds)
    return FeedbackConfig.from_mapping(section) if section else FeedbackConfig()


def compute_effectiveness(weight: SignalWeight) -> float:
    return weight.total_acted_on / max(weight.total_generated, 1)


def target_modifier(acted: int, dismissed: int) -> float:
    """Modifier a key converges to: 0.3 at 0% acted-on, 2.0 at 100%."""
    interactions = acted + dismissed
    if interactions == 0:
        return 1.0
    return 0.3 + 1.7 * (acted / interactions)


class EffectivenessFeedback:
    """
    In-memory weight table, optionally mirrored to a collection.

    Rows are created lazily the first time a key fires.
    """

    def __init__(self, collection: Collection | None = None, config: FeedbackConfig | None = None):
        self.collection = collection
        self.config = config or FeedbackConfig()
        self._weights: dict[WeightKey, SignalWeight] = {}
        if collection is not None:
            self.load()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> int:
        """(Re)load weight rows from the collection. Returns rows loaded."""
        if self.collection is None:
            return 0
        self._weights.clear()
        for record in self.collection.find():
            try:
                weight = SignalWeight.from_dict(record)
            except (TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed weight row {record.get('id')}: {e}")
                continue
            self._weights[weight.key] = weight
        return len(self._weights)

    def _persist(self, weight: SignalWeight, created: bool) -> None:
        if self.collection is None:
            return
        if created:
            self.collection.insert(weight.to_dict())
            return
        # Rows purged by the retention sweep are re-inserted
        data = weight.to_dict()
        data.pop("id")
        try:
            self.collection.patch(weight.id, data)
        except RecordNotFoundError:
            logger.info(f"Weight row {weight.id} missing from {self.collection.name}, re-inserting")
            self.collection.insert(weight.to_dict())

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def _get_or_create(self, key: WeightKey) -> tuple[SignalWeight, bool]:
        weight = self._weights.get(key)
        if weight is not None:
            return weight, False
        weight = SignalWeight(signal_type=key[0], domain=key[1])
        self._weights[key] = weight
        return weight, True

    def _adapt(self, weight: SignalWeight) -> None:
        weight.effectiveness_score = compute_effectiveness(weight)

        interactions = weight.total_acted_on + weight.total_dismissed
        if interactions >= self.config.min_interactions:
            target = target_modifier(weight.total_acted_on, weight.total_dismissed)
            moved = weight.weight_modifier + self.config.learning_rate * (
                target - weight.weight_modifier
            )
            weight.weight_modifier = min(
                self.config.max_modifier, max(self.config.min_modifier, moved)
            )

        weight.last_updated = to_iso(utc_now())

    def record_generated(self, signal: Signal) -> SignalWeight:
        weight, created = self._get_or_create((signal.type, signal.domain))
        weight.total_generated += 1
        weight.effectiveness_score = compute_effectiveness(weight)
        weight.last_updated = to_iso(utc_now())
        self._persist(weight, created)
        return weight

    def record_dismissed(self, signal: Signal) -> SignalWeight:
        weight, created = self._get_or_create((signal.type, signal.domain))
        weight.total_dismissed += 1
        self._adapt(weight)
        self._persist(weight, created)
        logger.debug(
            f"Dismissed {signal.type.value}/{signal.domain.value}: "
            f"modifier now {weight.weight_modifier:.3f}"
        )
        return weight

    def record_acted_on(self, signal: Signal) -> SignalWeight:
        weight, created = self._get_or_create((signal.type, signal.domain))
        weight.total_acted_on += 1
        self._adapt(weight)
        self._persist(weight, created)
        logger.debug(
            f"Acted on {signal.type.value}/{signal.domain.value}: "
            f"modifier now {weight.weight_modifier:.3f}"
        )
        return weight

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def weights(self) -> tuple[SignalWeight, ...]:
        """Snapshot of all weight rows, for the next cycle's context."""
        return tuple(SignalWeight.from_dict(w.to_dict()) for w in self._weights.values())

    def get_weight(self, signal_type: SignalType | str, domain: LifeDomain | str) -> SignalWeight | None:
        return self._weights.get((SignalType(signal_type), LifeDomain(domain)))

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def recompute_from_history(self, signals: Iterable[Signal]) -> list[SignalWeight]:
        """
        Rebuild weight rows from a full signal history.

        Counters are replaced (not added to). Keys with enough interactions
        get their target modifier directly; the rest reset to neutral.
        """
        stats: dict[WeightKey, list[int]] = {}
        for signal in signals:
            counts = stats.setdefault((signal.type, signal.domain), [0, 0, 0])
            counts[0] += 1
            if signal.is_dismissed:
                counts[1] += 1
            if signal.is_acted_on:
                counts[2] += 1

        now = to_iso(utc_now())
        updated = []
        for key, (generated, dismissed, acted) in stats.items():
            weight, created = self._get_or_create(key)
            weight.total_generated = generated
            weight.total_dismissed = dismissed
            weight.total_acted_on = acted
            weight.effectiveness_score = compute_effectiveness(weight)
            if acted + dismissed >= self.config.min_interactions:
                weight.weight_modifier = min(
                    self.config.max_modifier,
                    max(self.config.min_modifier, target_modifier(acted, dismissed)),
                )
            else:
                weight.weight_modifier = 1.0
            weight.last_updated = now
            self._persist(weight, created)
            updated.append(weight)

        logger.info(f"Recomputed {len(updated)} signal weights from history")
        return updated
