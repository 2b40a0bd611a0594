"""
The aiosqlite connection behind a :class:`~vouchcord.database.database.Database`.

Each Database owns one ConnectionManager and keeps its connection open for
the life of the bot. SQLite accepts a single writer at a time, so every write
runs inside :meth:`ConnectionManager.transaction`, which queues writers on a
semaphore and commits or rolls back when the block ends. Reads go through
:meth:`ConnectionManager.read` without queueing; in WAL mode they do not
block on a writer.

Example
-------
    manager = ConnectionManager()
    await manager.open(path)

    async with manager.read() as conn:
        async with conn.execute("SELECT prefix FROM guild_prefixes") as cursor:
            rows = await cursor.fetchall()

    async with manager.transaction() as conn:
        await conn.execute("DELETE FROM proofs WHERE message_id = ?", (message_id,))

    await manager.close()
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from vouchcord.util.logger import get_logger

logger = get_logger("database_connection")

# journal_mode is applied separately so its result can be checked
CONNECTION_PRAGMAS = (
    "PRAGMA foreign_keys = ON",
    "PRAGMA synchronous = NORMAL",
    "PRAGMA temp_store = MEMORY",
    "PRAGMA busy_timeout = 5000",
)


class ConnectionManager:
    """
    Owner of one aiosqlite connection and its write queue.

    Opening an already open manager logs a warning and does nothing. Reading
    ``connection`` before ``open()`` raises ``RuntimeError``.
    """

    def __init__(self) -> None:
        self._conn: aiosqlite.Connection | None = None
        self._path: Path | None = None
        self._writer = asyncio.Semaphore(1)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def path(self) -> Path | None:
        return self._path

    @property
    def connection(self) -> aiosqlite.Connection:
        """
        The open aiosqlite connection.

        Raises:
            RuntimeError: If ``open()`` has not been awaited yet.
        """
        if self._conn is None:
            raise RuntimeError("Database connection is not open; await Database.initialize() first.")
        return self._conn

    async def open(self, path: Path) -> None:
        """Create the parent directory, connect, and configure the connection."""
        if self._conn is not None:
            logger.warning("[DB CONNECTION] Already open at %s; ignoring open(%s)", self._path, path)
            return

        path.parent.mkdir(parents=True, exist_ok=True)
        conn = await aiosqlite.connect(path)
        conn.row_factory = aiosqlite.Row
        await self._configure(conn)

        self._conn = conn
        self._path = path
        logger.info("[DB CONNECTION] Opened %s", path)

    async def _configure(self, conn: aiosqlite.Connection) -> None:
        async with conn.execute("PRAGMA journal_mode = WAL") as cursor:
            row = await cursor.fetchone()
        if row is None or str(row[0]).lower() != "wal":
            logger.warning("[DB CONNECTION] WAL unavailable, journal mode is %s", row[0] if row else None)

        for pragma in CONNECTION_PRAGMAS:
            await conn.execute(pragma)
        await conn.commit()

    async def close(self) -> None:
        """Fold the WAL back into the database file and close the connection."""
        conn, self._conn = self._conn, None
        if conn is None:
            return

        try:
            await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")
            await conn.commit()
        except aiosqlite.Error:
            logger.exception("[DB CONNECTION] WAL checkpoint failed during close")
        finally:
            await conn.close()
            logger.info("[DB CONNECTION] Closed %s", self._path)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Queue for the writer slot and yield the connection.

        The transaction is committed when the block exits normally. Any
        exception rolls it back and is re-raised.

        Raises:
            RuntimeError: If the connection is not open.
        """
        conn = self.connection
        async with self._writer:
            try:
                yield conn
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()

    @asynccontextmanager
    async def read(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield the connection for queries; no queueing."""
        yield self.connection
