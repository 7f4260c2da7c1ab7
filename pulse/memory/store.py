# pulse/memory/store.py
"""
Key/value store capability.

Everything the scheduler persists (contacts, settings, transcripts, unread
counts, service configuration) is a string under a string key. Values are
JSON where structure is needed; scalar configuration may be plain text.

Two implementations:
  - SQLiteStore   : the durable store used by the running process.
  - InMemoryStore : a dict-backed store for tests and embedding.
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pulse.memory.db import get_connection, init_db
from pulse.utils.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore:
    """
    Base capability. Subclasses implement get/set/delete on raw strings;
    JSON helpers are shared.
    """

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def get_json(self, key: str, default: Any) -> Any:
        """
        Decode the value at `key` as JSON. Absent keys and undecodable values
        both yield `default`.
        """
        raw = self.get(key)
        if raw is None or raw == "":
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Stored value for key=%r is not valid JSON (%s); using default.", key, e)
            return default

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class SQLiteStore(KeyValueStore):
    """
    Durable store backed by the `kv` table. One short-lived connection per
    operation; errors from sqlite3 propagate to the caller.
    """

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        self.db_path = db_path
        init_db(db_path)

    def get(self, key: str) -> Optional[str]:
        conn = get_connection(self.db_path)
        try:
            cur = conn.cursor()
            cur.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = cur.fetchone()
        finally:
            conn.close()
        return row["value"] if row is not None else None

    def set(self, key: str, value: str) -> None:
        conn = get_connection(self.db_path)
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO kv (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = get_connection(self.db_path)
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()
