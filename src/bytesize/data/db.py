"""Async SQLite connection manager using aiosqlite."""

from __future__ import annotations

import logging
from pathlib import Path
from types import TracebackType
from typing import Any

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS chat_state (
    id TEXT PRIMARY KEY,
    data TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT ''
);
"""


class Database:
    """Async SQLite connection manager using aiosqlite."""

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def connect(self) -> Database:
        """Connect to SQLite and ensure schema."""
        if str(self._db_path) != ":memory:":
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(str(self._db_path))
        self._conn.row_factory = aiosqlite.Row
        await self._conn.execute("PRAGMA journal_mode=WAL")
        await self._conn.execute("PRAGMA synchronous=NORMAL")
        await self._ensure_schema()
        await self._conn.commit()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the SQLite connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            msg = "Database not connected. Use 'async with Database(path) as db:'"
            raise RuntimeError(msg)
        return self._conn

    async def execute(self, sql: str, params: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        """Execute a SQL statement."""
        return await self.conn.execute(sql, params)

    async def fetch_one(self, sql: str, params: tuple[Any, ...] = ()) -> aiosqlite.Row | None:
        """Fetch a single row from a query."""
        cursor = await self.conn.execute(sql, params)
        return await cursor.fetchone()  # type: ignore[return-value]

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self.conn.commit()

    async def _ensure_schema(self) -> None:
        """Create missing tables and record the schema version.

        Snapshots are never dropped on a version change; rows only hold JSON.
        """
        await self.conn.execute("""
            CREATE TABLE IF NOT EXISTS app_meta (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)
        row = await self.fetch_one("SELECT value FROM app_meta WHERE key = 'schema_version'")
        current_version = int(row["value"]) if row and str(row["value"]).isdigit() else 0
        await self.conn.executescript(SCHEMA_SQL)
        if current_version != SCHEMA_VERSION:
            logger.info(
                "Migrating DB schema from version %s to %s", current_version, SCHEMA_VERSION
            )
            await self.conn.execute(
                "INSERT OR REPLACE INTO app_meta (key, value) VALUES ('schema_version', ?)",
                (str(SCHEMA_VERSION),),
            )
