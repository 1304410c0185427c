"""
Observability module: structured logging and cycle IDs.

Usage:
    from anticipation.observability import get_logger, CycleContext

    logger = get_logger(__name__)

    with CycleContext() as ctx:
        logger.info("Cycle started", extra={"detectors": 8})
"""

from .context import CycleContext, generate_cycle_id, get_cycle_id, set_cycle_id
from .logging import HumanFormatter, JSONFormatter, configure_logging, get_logger

__all__ = [
    "CycleContext",
    "generate_cycle_id",
    "get_cycle_id",
    "set_cycle_id",
    "HumanFormatter",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
]
