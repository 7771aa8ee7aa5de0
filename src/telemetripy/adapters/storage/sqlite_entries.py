"""SQLite storage adapter for log entries."""

import json
import sqlite3
from collections.abc import AsyncIterable
from datetime import datetime
from typing import Any

import aiosqlite

from telemetripy.adapters.storage.sqlite_base import (
    AsyncConnectionManager,
    SyncConnectionManager,
)
from telemetripy.core.models import LogEntry, LogLevel

_ENTRIES_SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    epoch REAL NOT NULL,
    timestamp TEXT NOT NULL,
    level INTEGER NOT NULL,
    category TEXT NOT NULL,
    message TEXT NOT NULL,
    thread_id INTEGER NOT NULL,
    session_id TEXT NOT NULL DEFAULT '',
    function TEXT NOT NULL DEFAULT '',
    file TEXT NOT NULL DEFAULT '',
    line INTEGER NOT NULL DEFAULT 0,
    context TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_entries_epoch ON entries(epoch);
CREATE INDEX IF NOT EXISTS idx_entries_session ON entries(session_id);
"""

_INSERT_ENTRY = """
INSERT INTO entries (
    epoch, timestamp, level, category, message, thread_id,
    session_id, function, file, line, context
) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""

_SELECT_ENTRIES = """
SELECT timestamp, level, category, message, thread_id,
       session_id, function, file, line, context
FROM entries
WHERE epoch > ?
ORDER BY id ASC
"""

_COUNT_ENTRIES = """
SELECT COUNT(*) FROM entries
"""

_CLEAR_ENTRIES = """
DELETE FROM entries
"""


def _to_row(entry: LogEntry) -> tuple[Any, ...]:
    return (
        entry.timestamp.timestamp(),
        entry.timestamp.isoformat(),
        int(entry.level),
        entry.category,
        entry.message,
        entry.thread_id,
        entry.session_id,
        entry.function,
        entry.file,
        entry.line,
        json.dumps(entry.context),
    )


def _from_row(row: sqlite3.Row | aiosqlite.Row | tuple[Any, ...]) -> LogEntry:
    return LogEntry(
        timestamp=datetime.fromisoformat(row[0]),
        level=LogLevel(row[1]),
        category=row[2],
        message=row[3],
        thread_id=row[4],
        session_id=row[5],
        function=row[6],
        file=row[7],
        line=row[8],
        context=json.loads(row[9]),
    )


class SQLiteEntryStore:
    """SQLite implementation of EntryStorePort.

    The logging pipeline is synchronous, so the sink uses the sqlite3-based
    sync methods. Async readers (e.g. the diagnostics router) use the
    aiosqlite-based methods. Uses WAL mode for concurrent access.

    For file-based databases, sync and async methods share the same file.
    For :memory: databases, sync and async have separate in-memory DBs.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._async_manager = AsyncConnectionManager(db_path, _ENTRIES_SCHEMA)
        self._sync_manager = SyncConnectionManager(db_path, _ENTRIES_SCHEMA)

    # --- Sync methods using standard sqlite3 module ---

    def write_sync(self, entry: LogEntry) -> None:
        """Persist one entry."""
        with self._sync_manager.connection() as conn:
            conn.execute(_INSERT_ENTRY, _to_row(entry))
            conn.commit()

    def read_sync(self, since: float = 0) -> list[LogEntry]:
        """Entries with a Unix timestamp greater than since, in insertion order."""
        with self._sync_manager.connection() as conn:
            cursor = conn.execute(_SELECT_ENTRIES, (since,))
            return [_from_row(row) for row in cursor]

    def count_sync(self) -> int:
        with self._sync_manager.connection() as conn:
            row = conn.execute(_COUNT_ENTRIES).fetchone()
            return row[0] if row else 0

    def clear_sync(self) -> None:
        with self._sync_manager.connection() as conn:
            conn.execute(_CLEAR_ENTRIES)
            conn.commit()

    # --- Async methods using aiosqlite ---

    async def write(self, entry: LogEntry) -> None:
        async with self._async_manager.connection() as db:
            await db.execute(_INSERT_ENTRY, _to_row(entry))
            await db.commit()

    async def read(self, since: float = 0) -> AsyncIterable[LogEntry]:
        """Async counterpart of read_sync."""
        async with self._async_manager.connection() as db:
            async with db.execute(_SELECT_ENTRIES, (since,)) as cursor:
                async for row in cursor:
                    yield _from_row(row)

    async def count(self) -> int:
        async with self._async_manager.connection() as db:
            async with db.execute(_COUNT_ENTRIES) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0

    async def clear(self) -> None:
        async with self._async_manager.connection() as db:
            await db.execute(_CLEAR_ENTRIES)
            await db.commit()

    async def close(self) -> None:
        """Close persistent connections (for :memory: databases)."""
        await self._async_manager.close()
        self._sync_manager.close()
