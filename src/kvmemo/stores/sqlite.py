from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

logger = logging.getLogger(__name__)

_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL, expires_at REAL NOT NULL)",
    "CREATE INDEX IF NOT EXISTS idx_kv_expires_at ON kv(expires_at)",
)


class SqliteKVStore:
    """Local KV store on SQLite with per-entry expiry.

    Expired entries are dropped lazily on read, or in bulk with
    ``purge_expired()``. Blocking sqlite calls run in a worker thread and
    share one connection, opened on first use.
    """

    def __init__(self, db_path: Path, clock: Callable[[], float] = time.time) -> None:
        self._db_path = db_path
        self._clock = clock
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            if self._conn is None:
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
                conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
                conn.execute("PRAGMA journal_mode=WAL")
                conn.execute("PRAGMA busy_timeout=5000")
                for statement in _SCHEMA:
                    conn.execute(statement)
                self._conn = conn
                logger.info("SqliteKVStore opened at %s", self._db_path)
            # commits on success, rolls back on error
            with self._conn:
                yield self._conn

    def _get(self, key: str) -> str | None:
        with self._transaction() as conn:
            row = conn.execute("SELECT value, expires_at FROM kv WHERE key = ?", (key,)).fetchone()
            if row is None:
                return None
            value, expires_at = row
            if self._clock() >= expires_at:
                conn.execute("DELETE FROM kv WHERE key = ?", (key,))
                return None
            return value

    def _put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._transaction() as conn:
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value, expires_at) VALUES (?, ?, ?)",
                (key, value, self._clock() + ttl_seconds),
            )

    def _delete(self, key: str) -> None:
        with self._transaction() as conn:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def _purge_expired(self) -> int:
        with self._transaction() as conn:
            return conn.execute("DELETE FROM kv WHERE expires_at <= ?", (self._clock(),)).rowcount

    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def put(self, key: str, value: str, ttl_seconds: int) -> None:
        await asyncio.to_thread(self._put, key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)

    async def purge_expired(self) -> int:
        """Delete all expired entries, returning how many were removed."""
        removed = await asyncio.to_thread(self._purge_expired)
        if removed:
            logger.info("Purged %d expired entries from %s", removed, self._db_path)
        return removed

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
