"""
Mention cursor persistence.

The ingestion run stores the mention source's opaque cursor after each
completed batch and replays it on the next run, including after a restart.
MemoryCursorStore keeps it in-process; SQLiteCursorStore writes it to a small
SQLite table so a restarted worker resumes from the same window.
"""

from __future__ import annotations

import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from tweetonium.logging import get_logger

logger = get_logger(__name__)

SCHEMA_MENTION_CURSORS = """
CREATE TABLE IF NOT EXISTS mention_cursors (
    source TEXT PRIMARY KEY,
    cursor TEXT NOT NULL,
    updated_at INTEGER NOT NULL
);
"""


class CursorStore(ABC):
    """Abstract cursor persistence keyed by mention source name."""

    @abstractmethod
    def load(self, source: str) -> str | None:
        """Return the last saved cursor for source, or None if never saved."""
        ...

    @abstractmethod
    def save(self, source: str, cursor: str) -> None:
        """Persist cursor for source, replacing any previous value."""
        ...


class MemoryCursorStore(CursorStore):
    """Process-local cursor store (lost on restart; dedup index still protects)."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cursors: dict[str, str] = {}

    def load(self, source: str) -> str | None:
        with self._lock:
            return self._cursors.get(source)

    def save(self, source: str, cursor: str) -> None:
        with self._lock:
            self._cursors[source] = cursor


class SQLiteCursorStore(CursorStore):
    """SQLite-backed cursor store. One short-lived connection per call."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self.ensure_schema()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self._path, timeout=10.0)
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def ensure_schema(self) -> None:
        with self._lock, self._connection() as conn:
            conn.executescript(SCHEMA_MENTION_CURSORS)

    def load(self, source: str) -> str | None:
        with self._lock, self._connection() as conn:
            row = conn.execute(
                "SELECT cursor FROM mention_cursors WHERE source = ?",
                (source,),
            ).fetchone()
        return row[0] if row else None

    def save(self, source: str, cursor: str) -> None:
        with self._lock, self._connection() as conn:
            conn.execute(
                """
                INSERT INTO mention_cursors (source, cursor, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(source) DO UPDATE SET cursor = excluded.cursor, updated_at = excluded.updated_at
                """,
                (source, cursor, int(time.time())),
            )
        logger.debug("mention_cursor_saved", source=source, cursor=cursor, path=str(self._path))


def get_cursor_store(path: str | Path | None) -> CursorStore:
    """Return SQLiteCursorStore when path is set, else MemoryCursorStore."""
    if path:
        return SQLiteCursorStore(path)
    return MemoryCursorStore()
