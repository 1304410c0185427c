"""
Detector Registry: the set of detectors an anticipation cycle fans out to.

A detector is a named callable ``(AnticipationContext) -> list[Signal]``,
sync or async. Detectors are independent: none may read another's output
or assume an execution order. Adding a detector means registering a
Detector record, nothing else.
"""

import logging
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field
from functools import partial

from .detectors import (
    aging_detector,
    context_switch_prep,
    cross_domain_correlator,
    deadline_radar,
    family_awareness,
    financial_sentinel,
    pattern_recognizer,
    streak_guardian,
)
from .models import AnticipationContext, Signal

logger = logging.getLogger(__name__)

DetectFn = Callable[[AnticipationContext], list[Signal] | Awaitable[list[Signal]]]


class DetectorRegistryError(Exception):
    """Invalid registry operation (duplicate or unknown detector name)."""


@dataclass
class Detector:
    """A named detection capability."""

    name: str
    detect: DetectFn
    enabled: bool = True
    description: str = field(default="", compare=False)

    def __post_init__(self):
        if not self.name:
            raise ValueError("Detector name must be non-empty")
        if not callable(self.detect):
            raise TypeError(f"Detector {self.name!r}: detect must be callable")


class DetectorRegistry:
    """Ordered, name-keyed collection of detectors."""

    def __init__(self, detectors: list[Detector] | None = None):
        self._detectors: dict[str, Detector] = {}
        for detector in detectors or []:
            self.register(detector)

    def register(self, detector: Detector, replace: bool = False) -> Detector:
        if detector.name in self._detectors and not replace:
            raise DetectorRegistryError(f"Detector already registered: {detector.name}")
        self._detectors[detector.name] = detector
        logger.debug(f"Registered detector: {detector.name}")
        return detector

    def unregister(self, name: str) -> Detector:
        try:
            return self._detectors.pop(name)
        except KeyError:
            raise DetectorRegistryError(f"Unknown detector: {name}") from None

    def get(self, name: str) -> Detector:
        try:
            return self._detectors[name]
        except KeyError:
            raise DetectorRegistryError(f"Unknown detector: {name}") from None

    def enable(self, name: str) -> None:
        self.get(name).enabled = True

    def disable(self, name: str) -> None:
        self.get(name).enabled = False

    def enabled(self) -> list[Detector]:
        return [d for d in self._detectors.values() if d.enabled]

    def names(self) -> list[str]:
        return list(self._detectors)

    def __contains__(self, name: object) -> bool:
        return name in self._detectors

    def __iter__(self) -> Iterator[Detector]:
        return iter(list(self._detectors.values()))

    def __len__(self) -> int:
        return len(self._detectors)


def default_registry(thresholds: dict | None = None) -> DetectorRegistry:
    """
    Registry with the eight reference detectors.

    The aging detector is bound to the `aging` section of the thresholds
    config (defaults when the section or file is absent).
    """
    aging_config = aging_detector.load_aging_config(thresholds)
    return DetectorRegistry(
        [
            Detector(
                aging_detector.NAME,
                partial(aging_detector.detect_aging_signals, aging_config=aging_config),
                description="Unanswered email and stale active tasks",
            ),
            Detector(
                streak_guardian.NAME,
                streak_guardian.detect_streak_signals,
                description="Habit streaks about to break",
            ),
            Detector(
                deadline_radar.NAME,
                deadline_radar.detect_deadline_signals,
                description="Task/project due dates and calendar overload",
            ),
            Detector(
                pattern_recognizer.NAME,
                pattern_recognizer.detect_pattern_signals,
                description="Deviations from learned productivity patterns",
            ),
            Detector(
                financial_sentinel.NAME,
                financial_sentinel.detect_financial_signals,
                description="Portfolio losses and stale deals",
            ),
            Detector(
                family_awareness.NAME,
                family_awareness.detect_family_signals,
                description="Family calendar events and conflicts",
            ),
            Detector(
                context_switch_prep.NAME,
                context_switch_prep.detect_context_switch_signals,
                description="Upcoming calendar transitions",
            ),
            Detector(
                cross_domain_correlator.NAME,
                cross_domain_correlator.detect_cross_domain_signals,
                description="Correlations across open signals",
            ),
        ]
    )
