"""
Tests for the anticipation CLI.
"""

import json

import pytest

from anticipation import cli
from anticipation.storage import SIGNALS, SqliteCollection
from tests.fixtures import iso_ago


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch):
    monkeypatch.setattr(cli, "configure_logging", lambda *args, **kwargs: None)


@pytest.fixture
def snapshot(tmp_path):
    path = tmp_path / "context.json"
    path.write_text(
        json.dumps(
            {
                "now": "2026-03-14T09:00:00Z",
                "emails": [
                    {"id": "e1", "from": "bob", "subject": "Offer", "status": "unread", "received_at": iso_ago(hours=50)}
                ],
                "calendarEvents": [
                    {"id": "ev1", "summary": "Standup", "start_time": "2026-03-14T09:20:00Z", "end_time": "2026-03-14T09:35:00Z"}
                ],
                "mcpData": {"alpaca": {"equity": 10000, "dayPnl": -50, "positions": []}},
            }
        )
    )
    return path


class TestRun:
    def test_prints_ranked_signals(self, snapshot, capsys):
        assert cli.main(["run", "--context", str(snapshot)]) == 0
        out = capsys.readouterr().out
        assert "8 detectors" in out
        assert "Email from bob aging (50h)" in out
        assert "Upcoming context switch" in out

    def test_json_output(self, snapshot, capsys):
        assert cli.main(["run", "--context", str(snapshot), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data["servicesRun"]) == 8
        assert [s["severity"] for s in data["prioritizedSignals"]] == ["urgent", "info"]

    def test_commits_to_db(self, snapshot, tmp_path, capsys):
        db = tmp_path / "store.db"
        assert cli.main(["run", "--context", str(snapshot), "--db", str(db)]) == 0
        assert len(SqliteCollection(db, SIGNALS).find()) == 2

    def test_missing_context_file(self, tmp_path, capsys):
        assert cli.main(["run", "--context", str(tmp_path / "absent.json")]) == 1
        assert "❌" in capsys.readouterr().err

    def test_non_object_context(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[]")
        assert cli.main(["run", "--context", str(path)]) == 1


class TestBrief:
    def test_brief_text(self, snapshot, capsys):
        assert cli.main(["brief", "--context", str(snapshot)]) == 0
        out = capsys.readouterr().out
        assert "## Morning Brief: 2026-03-14" in out
        assert "One urgent item (aging email)" in out
        assert "09:20 - Standup" in out
        assert "### Portfolio" in out

    def test_brief_json(self, snapshot, capsys):
        assert cli.main(["brief", "--context", str(snapshot), "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["date"] == "2026-03-14"
        assert len(data["urgent_signals"]) == 1


class TestRetention:
    def test_empty_db(self, tmp_path, capsys):
        assert cli.main(["retention", "--db", str(tmp_path / "r.db")]) == 0
        assert "Removed 0 expired signals" in capsys.readouterr().out

    def test_default_db_from_env(self, capsys):
        assert cli.main(["retention"]) == 0
