"""
Reference detectors.

Each module exposes NAME and one detect_* function taking an
AnticipationContext and returning a list of Signals.
"""

from .aging_detector import detect_aging_signals, load_aging_config
from .context_switch_prep import detect_context_switch_signals
from .cross_domain_correlator import detect_cross_domain_signals
from .deadline_radar import detect_deadline_signals
from .domains import infer_domain_from_event, map_category_to_domain
from .family_awareness import detect_family_signals
from .financial_sentinel import detect_financial_signals
from .pattern_recognizer import detect_pattern_signals
from .streak_guardian import detect_streak_signals

__all__ = [
    "detect_aging_signals",
    "detect_context_switch_signals",
    "detect_cross_domain_signals",
    "detect_deadline_signals",
    "detect_family_signals",
    "detect_financial_signals",
    "detect_pattern_signals",
    "detect_streak_signals",
    "infer_domain_from_event",
    "load_aging_config",
    "map_category_to_domain",
]
