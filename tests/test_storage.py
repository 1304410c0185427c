"""
Tests for document collections (in-memory and SQLite) and selector matching.
"""

import pytest

from anticipation.storage import (
    ANALYTICS_EVENTS,
    SIGNAL_WEIGHTS,
    SIGNALS,
    DuplicateRecordError,
    InMemoryCollection,
    RecordNotFoundError,
    SqliteCollection,
    matches,
    open_memory_collections,
    open_sqlite_collections,
)


@pytest.fixture(params=["memory", "sqlite"])
def collection(request, tmp_path):
    if request.param == "memory":
        return InMemoryCollection("signals")
    return SqliteCollection(tmp_path / "test.db", "signals")


class TestSelectors:
    def test_empty_selector_matches_all(self):
        assert matches({"id": "a"}, None)
        assert matches({"id": "a"}, {})

    def test_equality(self):
        assert matches({"is_dismissed": True}, {"is_dismissed": True})
        assert not matches({"is_dismissed": False}, {"is_dismissed": True})

    def test_operators(self):
        record = {"timestamp": "2026-01-01", "n": 5}
        assert matches(record, {"timestamp": {"$lt": "2026-02-01"}})
        assert matches(record, {"n": {"$gte": 5, "$lte": 5}})
        assert matches(record, {"n": {"$in": [1, 5]}})
        assert matches(record, {"n": {"$ne": 4}})
        assert not matches(record, {"n": {"$gt": 5}})

    def test_missing_field_never_matches_operator(self):
        assert not matches({"id": "a"}, {"expires_at": {"$lt": "z"}})
        assert not matches({"id": "a", "expires_at": None}, {"expires_at": {"$lt": "z"}})

    def test_incomparable_types_do_not_match(self):
        assert not matches({"n": "five"}, {"n": {"$lt": 3}})

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            matches({"n": 1}, {"n": {"$regex": ".*"}})


class TestCollections:
    """Behaviour shared by both implementations."""

    def test_insert_and_find(self, collection):
        collection.insert({"id": "a", "severity": "urgent"})
        collection.insert({"id": "b", "severity": "info"})
        assert [r["id"] for r in collection.find()] == ["a", "b"]
        assert [r["id"] for r in collection.find({"severity": "info"})] == ["b"]

    def test_insert_duplicate(self, collection):
        collection.insert({"id": "a"})
        with pytest.raises(DuplicateRecordError):
            collection.insert({"id": "a"})

    def test_insert_requires_id(self, collection):
        with pytest.raises(ValueError):
            collection.insert({"severity": "info"})

    def test_patch_merges(self, collection):
        collection.insert({"id": "a", "is_dismissed": False, "title": "t"})
        updated = collection.patch("a", {"is_dismissed": True})
        assert updated == {"id": "a", "is_dismissed": True, "title": "t"}
        assert collection.find({"is_dismissed": True})[0]["title"] == "t"

    def test_patch_missing(self, collection):
        with pytest.raises(RecordNotFoundError):
            collection.patch("missing", {"x": 1})

    def test_remove(self, collection):
        collection.insert({"id": "a"})
        collection.remove("a")
        assert collection.find() == []
        with pytest.raises(RecordNotFoundError):
            collection.remove("a")

    def test_records_are_copies(self, collection):
        collection.insert({"id": "a", "tags": "x"})
        record = collection.find()[0]
        record["tags"] = "mutated"
        assert collection.find()[0]["tags"] == "x"


class TestSqliteCollection:
    def test_persists_across_instances(self, tmp_path):
        db = tmp_path / "persist.db"
        SqliteCollection(db, "signals").insert({"id": "a", "n": 1})
        assert SqliteCollection(db, "signals").find() == [{"id": "a", "n": 1}]

    def test_rejects_unsafe_name(self, tmp_path):
        with pytest.raises(ValueError):
            SqliteCollection(tmp_path / "x.db", "signals; DROP TABLE x")

    def test_open_engine_collections(self, tmp_path):
        collections = open_sqlite_collections(tmp_path / "engine.db")
        assert set(collections) == {SIGNALS, SIGNAL_WEIGHTS, ANALYTICS_EVENTS}
        assert set(open_memory_collections()) == set(collections)
