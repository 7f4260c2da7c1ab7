from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

import pulse.memory.store as store_module
from pulse.memory.store import SQLiteStore


def test_sqlite_roundtrip(tmp_path: Path):
    store = SQLiteStore(tmp_path / "pulse.db")
    assert store.get("k") is None
    store.set("k", "v1")
    store.set("k", "v2")
    assert store.get("k") == "v2"
    store.delete("k")
    assert store.get("k") is None


def test_sqlite_json_helpers(tmp_path: Path):
    store = SQLiteStore(tmp_path / "pulse.db")
    store.set_json("chats", {"c1": [{"id": "m1"}]})
    assert store.get_json("chats", {}) == {"c1": [{"id": "m1"}]}
    assert store.get_json("missing", []) == []


class FailingCursor:
    def execute(self, *args, **kwargs):
        raise sqlite3.OperationalError("database is locked")


class TrackingConnection:
    def __init__(self):
        self.closed = False

    def cursor(self):
        return FailingCursor()

    def commit(self):
        pass

    def close(self):
        self.closed = True


@pytest.mark.parametrize(
    "operation",
    [
        lambda s: s.get("k"),
        lambda s: s.set("k", "v"),
        lambda s: s.delete("k"),
    ],
)
def test_connection_closed_when_query_fails(tmp_path: Path, monkeypatch, operation):
    store = SQLiteStore(tmp_path / "pulse.db")
    conn = TrackingConnection()
    monkeypatch.setattr(store_module, "get_connection", lambda db_path=None: conn)

    with pytest.raises(sqlite3.OperationalError):
        operation(store)
    assert conn.closed
