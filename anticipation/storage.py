"""
Document collections: the storage seam for signals, weights and analytics.

The engine never talks to a storage engine directly. The Signal Store,
the feedback loop and the retention sweep are handed objects that satisfy
the Collection protocol:

    find(selector)        -> list of matching records (dicts)
    insert(record)        -> store a new record keyed by record["id"]
    patch(id, partial)    -> shallow-merge fields into an existing record
    remove(id)            -> delete a record

Selectors are mappings of field -> condition. A condition is either a
plain value (equality) or an operator mapping: {"$lt": v}, {"$lte": v},
{"$gt": v}, {"$gte": v}, {"$ne": v}, {"$in": [...]}. A record missing the
field never matches an operator condition.

Two implementations ship here: InMemoryCollection (tests, single-process
use) and SqliteCollection (JSON documents in a SQLite table).
"""

import json
import logging
import re
import sqlite3
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_OPERATORS = {
    "$lt": lambda a, b: a < b,
    "$lte": lambda a, b: a <= b,
    "$gt": lambda a, b: a > b,
    "$gte": lambda a, b: a >= b,
    "$ne": lambda a, b: a != b,
    "$in": lambda a, b: a in b,
}


class DuplicateRecordError(Exception):
    """Raised when inserting a record whose id already exists."""

    pass


class RecordNotFoundError(Exception):
    """Raised when patching or removing a record that does not exist."""

    pass


class Collection(Protocol):
    """Storage collection API consumed by the store, feedback loop and retention sweep."""

    name: str

    def find(self, selector: Mapping[str, Any] | None = None) -> list[dict]: ...

    def insert(self, record: Mapping[str, Any]) -> None: ...

    def patch(self, record_id: str, partial: Mapping[str, Any]) -> dict: ...

    def remove(self, record_id: str) -> None: ...


def matches(record: Mapping[str, Any], selector: Mapping[str, Any] | None) -> bool:
    """True if a record satisfies every condition in the selector."""
    if not selector:
        return True

    for field_name, condition in selector.items():
        if isinstance(condition, Mapping):
            if field_name not in record or record[field_name] is None:
                return False
            value = record[field_name]
            for op, operand in condition.items():
                compare = _OPERATORS.get(op)
                if compare is None:
                    raise ValueError(f"Unsupported selector operator: {op}")
                try:
                    if not compare(value, operand):
                        return False
                except TypeError:
                    return False
        elif record.get(field_name) != condition:
            return False

    return True


def _require_id(record: Mapping[str, Any]) -> str:
    record_id = record.get("id")
    if not record_id:
        raise ValueError("Record must carry a non-empty 'id'")
    return str(record_id)


class InMemoryCollection:
    """Dict-backed collection. Records are copied on the way in and out."""

    def __init__(self, name: str):
        self.name = name
        self._records: dict[str, dict] = {}

    def __len__(self) -> int:
        return len(self._records)

    def find(self, selector: Mapping[str, Any] | None = None) -> list[dict]:
        return [dict(r) for r in self._records.values() if matches(r, selector)]

    def insert(self, record: Mapping[str, Any]) -> None:
        record_id = _require_id(record)
        if record_id in self._records:
            raise DuplicateRecordError(f"{self.name}: record {record_id} already exists")
        self._records[record_id] = dict(record)

    def patch(self, record_id: str, partial: Mapping[str, Any]) -> dict:
        if record_id not in self._records:
            raise RecordNotFoundError(f"{self.name}: record {record_id} not found")
        self._records[record_id].update(partial)
        return dict(self._records[record_id])

    def remove(self, record_id: str) -> None:
        if record_id not in self._records:
            raise RecordNotFoundError(f"{self.name}: record {record_id} not found")
        del self._records[record_id]


class SqliteCollection:
    """
    Collection stored as JSON documents in one SQLite table.

    Filtering happens in Python after loading candidate rows; collections
    here are small (active signals, a few dozen weight rows, 90 days of
    analytics events).
    """

    def __init__(self, db_path: Path, name: str):
        if not _IDENTIFIER.match(name):
            raise ValueError(f"Invalid collection name: {name!r}")
        self.db_path = db_path
        self.name = name
        self._ensure_table()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_table(self) -> None:
        conn = self._connect()
        try:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {self.name} (
                    id TEXT PRIMARY KEY,
                    doc TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def find(self, selector: Mapping[str, Any] | None = None) -> list[dict]:
        conn = self._connect()
        try:
            rows = conn.execute(f"SELECT doc FROM {self.name} ORDER BY rowid").fetchall()
        finally:
            conn.close()

        records = []
        for row in rows:
            try:
                record = json.loads(row["doc"])
            except json.JSONDecodeError:
                logger.warning(f"{self.name}: skipping undecodable document")
                continue
            if matches(record, selector):
                records.append(record)
        return records

    def insert(self, record: Mapping[str, Any]) -> None:
        record_id = _require_id(record)
        conn = self._connect()
        try:
            conn.execute(
                f"INSERT INTO {self.name} (id, doc) VALUES (?, ?)",
                (record_id, json.dumps(dict(record), default=str)),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise DuplicateRecordError(
                f"{self.name}: record {record_id} already exists"
            ) from e
        finally:
            conn.close()

    def patch(self, record_id: str, partial: Mapping[str, Any]) -> dict:
        conn = self._connect()
        try:
            row = conn.execute(
                f"SELECT doc FROM {self.name} WHERE id = ?", (record_id,)
            ).fetchone()
            if row is None:
                raise RecordNotFoundError(f"{self.name}: record {record_id} not found")

            record = json.loads(row["doc"])
            record.update(partial)
            conn.execute(
                f"UPDATE {self.name} SET doc = ? WHERE id = ?",
                (json.dumps(record, default=str), record_id),
            )
            conn.commit()
            return record
        finally:
            conn.close()

    def remove(self, record_id: str) -> None:
        conn = self._connect()
        try:
            cursor = conn.execute(f"DELETE FROM {self.name} WHERE id = ?", (record_id,))
            conn.commit()
            if cursor.rowcount == 0:
                raise RecordNotFoundError(f"{self.name}: record {record_id} not found")
        finally:
            conn.close()


# Collection names used across the engine
SIGNALS = "signals"
SIGNAL_WEIGHTS = "signal_weights"
ANALYTICS_EVENTS = "analytics_events"


def open_sqlite_collections(db_path: Path) -> dict[str, SqliteCollection]:
    """Open (creating if needed) the three engine collections in one SQLite file."""
    return {
        name: SqliteCollection(db_path, name)
        for name in (SIGNALS, SIGNAL_WEIGHTS, ANALYTICS_EVENTS)
    }


def open_memory_collections() -> dict[str, InMemoryCollection]:
    """In-memory equivalents of open_sqlite_collections()."""
    return {
        name: InMemoryCollection(name) for name in (SIGNALS, SIGNAL_WEIGHTS, ANALYTICS_EVENTS)
    }
