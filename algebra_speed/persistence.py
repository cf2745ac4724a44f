from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Protocol

from .clock import utc_now_iso

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1


class BlobStore(Protocol):
    """Named string blobs. Failures surface as ``None``/``False``, never raise."""

    def get(self, key: str) -> str | None: ...
    def set(self, key: str, value: str) -> bool: ...


class MemoryBlobStore:
    """Process-local store; nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._blobs: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._blobs.get(key)

    def set(self, key: str, value: str) -> bool:
        self._blobs[key] = value
        return True


def open_db(path: Path) -> sqlite3.Connection:
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path)
    try:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        _migrate(conn)
    except sqlite3.Error:
        conn.close()
        raise
    return conn


def _migrate(conn: sqlite3.Connection) -> None:
    row = conn.execute("PRAGMA user_version;").fetchone()
    ver = int(row[0]) if row else 0
    if ver >= SCHEMA_VERSION:
        return

    with conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS blob (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at_utc TEXT NOT NULL
            );
            """
        )
        conn.execute(f"PRAGMA user_version={SCHEMA_VERSION};")


class SqliteBlobStore:
    """Key/value blobs in a single sqlite file, one connection per call."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> str | None:
        if not self._path.exists():
            return None
        try:
            conn = open_db(self._path)
            try:
                row = conn.execute("SELECT value FROM blob WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Failed to read %r from %s: %s", key, self._path, exc)
            return None
        return None if row is None else str(row[0])

    def set(self, key: str, value: str) -> bool:
        try:
            conn = open_db(self._path)
            try:
                with conn:
                    conn.execute(
                        """
                        INSERT INTO blob(key, value, updated_at_utc) VALUES (?, ?, ?)
                        ON CONFLICT(key) DO UPDATE SET
                            value = excluded.value,
                            updated_at_utc = excluded.updated_at_utc
                        """,
                        (key, value, utc_now_iso()),
                    )
            finally:
                conn.close()
        except (sqlite3.Error, OSError) as exc:
            logger.warning("Failed to write %r to %s: %s", key, self._path, exc)
            return False
        return True
