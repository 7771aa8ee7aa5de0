"""Connection management shared by the SQLite storage adapters."""

import asyncio
import sqlite3
import threading
from collections.abc import AsyncIterator, Iterator
from contextlib import asynccontextmanager, contextmanager

import aiosqlite

MEMORY = ":memory:"
SCHEMA_VERSION = 1
BUSY_TIMEOUT_MS = 5000

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}",
)


def _needs_schema(version: int) -> bool:
    return version < SCHEMA_VERSION


class SyncConnectionManager:
    """One sqlite3 connection shared by every producer thread.

    Entries are written one at a time from the logging pipeline, so a single
    long-lived connection is opened on first use (``check_same_thread=False``)
    and every use of it is serialised by a lock. For :memory: databases this
    database is separate from the one AsyncConnectionManager opens.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._lock = threading.RLock()
        self._conn: sqlite3.Connection | None = None

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        if self._db_path != MEMORY:
            for pragma in _PRAGMAS:
                conn.execute(pragma)
        (version,) = conn.execute("PRAGMA user_version").fetchone()
        if _needs_schema(version):
            conn.executescript(self._schema)
            conn.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
            conn.commit()
        return conn

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Yield the shared connection while holding its lock."""
        with self._lock:
            if self._conn is None:
                self._conn = self._open()
            yield self._conn

    def close(self) -> None:
        """Close the shared connection; the next use reopens it."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None


class AsyncConnectionManager:
    """aiosqlite connections for async readers.

    File databases get a fresh connection per use. A :memory: database only
    lives as long as its connection, so that one is kept open until close().
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._ready = False
        self._ready_lock: asyncio.Lock | None = None
        self._memory_conn: aiosqlite.Connection | None = None

    async def _prepare(self, db: aiosqlite.Connection) -> None:
        if self._db_path != MEMORY:
            for pragma in _PRAGMAS:
                await db.execute(pragma)
        async with db.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
        if _needs_schema(row[0] if row else 0):
            await db.executescript(self._schema)
            await db.execute(f"PRAGMA user_version={SCHEMA_VERSION}")
            await db.commit()

    async def _ensure_ready(self) -> None:
        if self._ready:
            return
        # Created lazily so the manager can be built outside an event loop.
        if self._ready_lock is None:
            self._ready_lock = asyncio.Lock()
        async with self._ready_lock:
            if self._ready:
                return
            if self._db_path == MEMORY:
                self._memory_conn = await aiosqlite.connect(MEMORY)
                await self._prepare(self._memory_conn)
            else:
                async with aiosqlite.connect(self._db_path) as db:
                    await self._prepare(db)
            self._ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        await self._ensure_ready()
        if self._memory_conn is not None:
            yield self._memory_conn
            return
        db = await aiosqlite.connect(self._db_path)
        try:
            await db.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        if self._memory_conn is not None:
            await self._memory_conn.close()
            self._memory_conn = None
            self._ready = False
