# pulse/memory/db.py

import sqlite3
from pathlib import Path
from typing import Optional, Union

from pulse.config.settings import load_settings


def get_db_path() -> Path:
    return Path(load_settings().db_path)


def get_connection(db_path: Optional[Union[str, Path]] = None) -> sqlite3.Connection:
    """
    Return a SQLite connection.
    Uses Row factory to allow dict-like access later if needed.
    Caller is responsible for closing.
    """
    path = Path(db_path) if db_path is not None else get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Optional[Union[str, Path]] = None) -> None:
    """
    Initialize the key/value schema if it does not exist.
    Safe to call multiple times.
    """
    conn = get_connection(db_path)
    cur = conn.cursor()

    # kv: every persisted value is a JSON (or plain) string under a string key
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS kv (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """
    )

    conn.commit()
    conn.close()
