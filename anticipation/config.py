"""
Centralized configuration for the anticipation engine.

Deployment-level values live here as module constants with environment
overrides. Tunable detection/feedback/retention thresholds live in
intelligence/thresholds.yaml and are read with load_thresholds().
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("ANTICIPATION_LOG_LEVEL", "INFO")
"""Root log level used by configure_logging() in the CLI."""

LOG_JSON: bool | None = (
    os.environ["ANTICIPATION_LOG_JSON"].strip().lower() in {"1", "true", "yes", "on"}
    if os.environ.get("ANTICIPATION_LOG_JSON")
    else None
)
"""Force JSON logs on/off. None auto-detects from the TTY."""

# ============================================================
# Worker / context assembly
# ============================================================

WORKER_INTERVAL_SECONDS: int = int(os.environ.get("ANTICIPATION_WORKER_INTERVAL", "300"))
"""Seconds between anticipation cycles when run by the worker."""

CONTEXT_CACHE_TTL_SECONDS: int = int(os.environ.get("ANTICIPATION_CONTEXT_TTL", "300"))
"""How long an assembled source snapshot stays fresh in the context cache."""

# ============================================================
# Thresholds
# ============================================================

THRESHOLDS_PATH: Path = Path(
    os.environ.get(
        "ANTICIPATION_THRESHOLDS",
        str(Path(__file__).parent / "intelligence" / "thresholds.yaml"),
    )
)
"""YAML file with per-component threshold sections."""


def load_thresholds(path: Path | None = None) -> dict[str, Any]:
    """
    Load threshold configuration from YAML.

    Returns an empty mapping when the file does not exist.

    Raises:
        ValueError: If the file does not contain a mapping.
    """
    path = path or THRESHOLDS_PATH
    if not path.exists():
        logger.debug(f"No thresholds file at {path}, using defaults")
        return {}

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Thresholds file must contain a mapping: {path}")
    return data


def get_section(name: str, thresholds: dict[str, Any] | None = None) -> dict[str, Any]:
    """Return one named section of the thresholds config (empty if absent)."""
    if thresholds is None:
        thresholds = load_thresholds()
    section = thresholds.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"Thresholds section '{name}' must be a mapping")
    return section
