"""
Anticipation intelligence layer.

Turns a snapshot of the user's data into a ranked set of short-lived signals:
- Detectors (aging, streaks, deadlines, patterns, finance, family,
  context switches, cross-domain correlation)
- Concurrent anticipation cycle with per-detector failure isolation
- Dedup + priority synthesis, weighted by learned effectiveness
- Signal lifecycle store and the morning brief read model

Usage:
    from anticipation.intelligence import AnticipationContext, run_anticipation_cycle_sync

    context = AnticipationContext.build(tasks=tasks, emails=emails)
    result = run_anticipation_cycle_sync(context)
    for signal in result.prioritized_signals:
        print(signal.severity, signal.title)
"""

from .context_builder import ContextBuilder
from .engine import (
    AnticipationResult,
    AnticipationWorker,
    run_anticipation_cycle,
    run_anticipation_cycle_sync,
)
from .feedback_loop import EffectivenessFeedback, FeedbackConfig, load_feedback_config
from .models import (
    AgingConfig,
    AnticipationContext,
    LifeDomain,
    MorningBrief,
    PortfolioPulse,
    Signal,
    SignalSeverity,
    SignalType,
    SignalWeight,
    make_signal,
)
from .morning_brief import generate_morning_brief
from .priority_synthesizer import (
    NO_ENTITY,
    ScoredSignal,
    deduplicate_signals,
    group_signals,
    pick_representative,
    score_severity,
    score_signals,
    severity_rank,
    synthesize_priorities,
)
from .registry import Detector, DetectorRegistry, DetectorRegistryError, default_registry
from .signal_store import (
    DuplicateSignalError,
    SignalNotFoundError,
    SignalStore,
    SignalStoreError,
)

__all__ = [
    # Model
    "AgingConfig",
    "AnticipationContext",
    "LifeDomain",
    "MorningBrief",
    "PortfolioPulse",
    "Signal",
    "SignalSeverity",
    "SignalType",
    "SignalWeight",
    "make_signal",
    # Registry / engine
    "Detector",
    "DetectorRegistry",
    "DetectorRegistryError",
    "default_registry",
    "AnticipationResult",
    "AnticipationWorker",
    "run_anticipation_cycle",
    "run_anticipation_cycle_sync",
    # Synthesis
    "NO_ENTITY",
    "ScoredSignal",
    "deduplicate_signals",
    "group_signals",
    "pick_representative",
    "score_severity",
    "score_signals",
    "severity_rank",
    "synthesize_priorities",
    # Feedback / store
    "EffectivenessFeedback",
    "FeedbackConfig",
    "load_feedback_config",
    "DuplicateSignalError",
    "SignalNotFoundError",
    "SignalStore",
    "SignalStoreError",
    # Read models
    "ContextBuilder",
    "generate_morning_brief",
]
