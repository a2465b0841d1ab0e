"""Key-value blob stores used to persist the catalog snapshot."""

from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from ..logging import get_logger
from ..paths import find_project_root, var_dir


LOG = get_logger("catalog-storage")

DEFAULT_DB_FOLDER = "catalog"
DEFAULT_DB_FILENAME = "catalog.sqlite3"
TABLE_NAME = "kv_store"


class MemoryBlobStore:
    """In-process store; nothing survives the interpreter."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def save(self, key: str, text: str) -> None:
        self._data[key] = text


class SqliteBlobStore:
    """SQLite-backed key/value store.

    - Places DB under `<repo-root>/var/catalog/catalog.sqlite3` unless an
      explicit db_path is given.
    - Ensures schema on first use.
    """

    def __init__(self, root_dir: Optional[str] = None, *, db_path: Optional[str] = None) -> None:
        if db_path:
            self.db_path = os.path.abspath(db_path)
        else:
            folder = os.path.join(var_dir(find_project_root(root_dir)), DEFAULT_DB_FOLDER)
            self.db_path = os.path.join(folder, DEFAULT_DB_FILENAME)
        os.makedirs(os.path.dirname(self.db_path), exist_ok=True)
        LOG.info(f"Catalog DB path: {self.db_path}")
        self._ensure_schema()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self.db_path)
        try:
            yield conn
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self.connect() as conn:
            cur = conn.cursor()
            try:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            except sqlite3.DatabaseError:
                # Non-fatal; continue with schema creation
                pass
            cur.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
                    key        TEXT PRIMARY KEY,
                    value      TEXT NOT NULL,
                    updated_at TEXT DEFAULT (datetime('now'))
                );
                """
            )
            conn.commit()

    def load(self, key: str) -> Optional[str]:
        with self.connect() as conn:
            cur = conn.cursor()
            cur.execute(f"SELECT value FROM {TABLE_NAME} WHERE key = ?;", (key,))
            row = cur.fetchone()
            return str(row[0]) if row else None

    def save(self, key: str, text: str) -> None:
        with self.connect() as conn:
            conn.execute(
                f"""
                INSERT INTO {TABLE_NAME} (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at;
                """,
                (key, text),
            )
            conn.commit()
        LOG.debug(f"Saved {len(text)} chars under key {key!r}")
