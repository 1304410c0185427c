"""
Test configuration: repo root on sys.path, isolated app home, shared fixtures.

Every test runs against a fixed evaluation instant (FIXED_NOW) so detector
math is deterministic. Nothing touches ~/.anticipation: ANTICIPATION_HOME
and ANTICIPATION_DB are redirected into tmp_path for each test.
"""

import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add repo root to sys.path so tests can import anticipation.* and tests.fixtures
REPO_ROOT = Path(__file__).parent.parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from anticipation.intelligence.models import AnticipationContext  # noqa: E402
from tests.fixtures import FIXED_NOW, FakeClock  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep every test away from the real app home and API token."""
    home = tmp_path / "home"
    monkeypatch.setenv("ANTICIPATION_HOME", str(home))
    monkeypatch.setenv("ANTICIPATION_DB", str(home / "anticipation.db"))
    monkeypatch.delenv("ANTICIPATION_API_TOKEN", raising=False)
    return home


@pytest.fixture
def now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def make_context():
    """Factory: make_context(tasks=[...], mcp_data={...}, now=...)."""

    def _make(now: datetime = FIXED_NOW, **kwargs) -> AnticipationContext:
        return AnticipationContext.build(now, **kwargs)

    return _make


@pytest.fixture
def empty_context() -> AnticipationContext:
    return AnticipationContext.empty(FIXED_NOW)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
