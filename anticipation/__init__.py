# Anticipation Engine - proactive signal intelligence
"""
Exports for the CLI, the API server and other consumers.
"""

from .data_retention import RetentionReport, run_retention_cycle
from .intelligence import (
    AnticipationContext,
    AnticipationResult,
    AnticipationWorker,
    EffectivenessFeedback,
    Signal,
    SignalStore,
    generate_morning_brief,
    run_anticipation_cycle,
    run_anticipation_cycle_sync,
    synthesize_priorities,
)

__version__ = "1.0.0"

__all__ = [
    "AnticipationContext",
    "AnticipationResult",
    "AnticipationWorker",
    "EffectivenessFeedback",
    "RetentionReport",
    "Signal",
    "SignalStore",
    "generate_morning_brief",
    "run_anticipation_cycle",
    "run_anticipation_cycle_sync",
    "run_retention_cycle",
    "synthesize_priorities",
]
