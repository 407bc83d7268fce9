# src/storage/sqlite_store.py
"""SQLite-based key-value store (STORAGE_BACKEND=sqlite).

Uses stdlib sqlite3, no external dependency. One row per key.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from muscleai.storage.base_kv_store import BaseKeyValueStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_items (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteKeyValueStore(BaseKeyValueStore):
    """SQLite-backed key-value store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path))
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    async def get_item(self, key: str) -> str | None:
        row = self._conn.execute(
            "SELECT value FROM kv_items WHERE key = ?", (key,)
        ).fetchone()
        return None if row is None else row[0]

    async def set_item(self, key: str, value: str) -> None:
        self._conn.execute(
            """INSERT INTO kv_items (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET
                   value = excluded.value, updated_at = CURRENT_TIMESTAMP""",
            (key, value),
        )
        self._conn.commit()

    async def remove_item(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv_items WHERE key = ?", (key,))
        self._conn.commit()

    async def get_all_keys(self) -> list[str]:
        rows = self._conn.execute("SELECT key FROM kv_items ORDER BY key").fetchall()
        return [row[0] for row in rows]

    async def multi_remove(self, keys: list[str]) -> None:
        self._conn.executemany(
            "DELETE FROM kv_items WHERE key = ?", [(k,) for k in keys]
        )
        self._conn.commit()

    async def close(self) -> None:
        self._conn.close()
