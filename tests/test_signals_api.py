"""
Tests for the signals HTTP API.

Uses FastAPI's TestClient against an app bound to an in-memory SignalStore.
"""

import pytest
from fastapi.testclient import TestClient

from anticipation.api import create_app
from anticipation.intelligence.models import LifeDomain, SignalSeverity, SignalType
from anticipation.intelligence.signal_store import SignalStore
from tests.fixtures import build_signal


@pytest.fixture
def store(clock):
    store = SignalStore(clock=clock)
    store.add_signals(
        [
            build_signal(id="crit", severity=SignalSeverity.CRITICAL, domain=LifeDomain.FINANCE),
            build_signal(id="att", severity=SignalSeverity.ATTENTION, type=SignalType.DEAL_UPDATE),
            build_signal(id="gone", severity=SignalSeverity.URGENT, is_dismissed=True),
        ]
    )
    return store


@pytest.fixture
def client(store):
    return TestClient(create_app(store))


class TestReadEndpoints:
    def test_list_active(self, client):
        response = client.get("/signals")
        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert {s["id"] for s in data["items"]} == {"crit", "att"}

    def test_list_including_dismissed(self, client):
        assert client.get("/signals", params={"include_dismissed": True}).json()["total"] == 3

    def test_counts(self, client):
        assert client.get("/signals/counts").json() == {"total": 2, "urgent": 1, "attention": 1, "info": 0}

    def test_urgent(self, client):
        items = client.get("/signals/urgent").json()["items"]
        assert [s["id"] for s in items] == ["crit"]

    def test_by_domain(self, client):
        items = client.get("/signals/domain/finance").json()["items"]
        assert [s["id"] for s in items] == ["crit"]

    def test_by_type(self, client):
        items = client.get("/signals/type/deal_update").json()["items"]
        assert [s["id"] for s in items] == ["att"]

    def test_unknown_domain_rejected(self, client):
        assert client.get("/signals/domain/astrology").status_code == 422

    def test_get_one(self, client):
        data = client.get("/signals/crit").json()
        assert data["severity"] == "critical"
        assert data["related_entity_ids"] == []

    def test_get_unknown(self, client):
        assert client.get("/signals/nope").status_code == 404

    def test_health(self, client):
        data = client.get("/health").json()
        assert data["status"] == "ok"
        assert data["signals"] == 3


class TestTransitions:
    def test_dismiss(self, client, store):
        response = client.post("/signals/att/dismiss")
        assert response.status_code == 200
        assert response.json()["is_dismissed"] is True
        assert store.get("att").is_dismissed

    def test_act(self, client, store):
        response = client.post("/signals/crit/act")
        assert response.json()["is_acted_on"] is True
        assert response.json()["severity"] == "critical"

    def test_transition_unknown(self, client):
        assert client.post("/signals/nope/dismiss").status_code == 404
        assert client.post("/signals/nope/act").status_code == 404


class TestAuth:
    def test_disabled_without_token(self, client):
        assert client.get("/signals").status_code == 200

    def test_missing_token(self, client, monkeypatch):
        monkeypatch.setenv("ANTICIPATION_API_TOKEN", "s3cret")
        response = client.get("/signals")
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_wrong_token(self, client, monkeypatch):
        monkeypatch.setenv("ANTICIPATION_API_TOKEN", "s3cret")
        assert client.get("/signals", headers={"Authorization": "Bearer nope"}).status_code == 401

    def test_bearer_token(self, client, monkeypatch):
        monkeypatch.setenv("ANTICIPATION_API_TOKEN", "s3cret")
        assert client.get("/signals", headers={"Authorization": "Bearer s3cret"}).status_code == 200

    def test_x_api_token_header(self, client, monkeypatch):
        monkeypatch.setenv("ANTICIPATION_API_TOKEN", "s3cret")
        assert client.get("/signals/counts", headers={"X-API-Token": "s3cret"}).status_code == 200

    def test_health_is_public(self, client, monkeypatch):
        monkeypatch.setenv("ANTICIPATION_API_TOKEN", "s3cret")
        assert client.get("/health").status_code == 200
