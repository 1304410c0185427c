from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "ANTICIPATION_HOME"
APP_ENV_DB = "ANTICIPATION_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains anticipation/, tests/, etc.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for the anticipation engine.
    Override with ANTICIPATION_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".anticipation").resolve()


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path for signal, weight and analytics collections.

    Resolution order:
    1. ANTICIPATION_DB env var (explicit override)
    2. ~/.anticipation/data/anticipation.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "anticipation.db"
