"""Repository layer for SQL persistence."""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from bytesize.models.errors import PersistenceError

if TYPE_CHECKING:
    from bytesize.data.protocols import DatabaseProtocol

logger = logging.getLogger(__name__)


class SnapshotRepository:
    """Key-value store of serialized conversation snapshots."""

    def __init__(self, db: DatabaseProtocol) -> None:
        self._db = db

    async def get(self, key: str) -> str | None:
        try:
            row = await self._db.fetch_one("SELECT data FROM chat_state WHERE id = ?", (key,))
        except (sqlite3.Error, RuntimeError) as exc:
            raise PersistenceError(f"Failed to read chat state: {exc}") from exc
        if row is None:
            return None
        return str(row["data"])

    async def put(self, key: str, data: str) -> None:
        try:
            await self._db.execute(
                """INSERT INTO chat_state (id, data, updated_at)
                   VALUES (?, ?, ?)
                   ON CONFLICT(id) DO UPDATE SET
                       data = excluded.data,
                       updated_at = excluded.updated_at""",
                (key, data, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except (sqlite3.Error, RuntimeError) as exc:
            raise PersistenceError(f"Failed to save chat state: {exc}") from exc
        logger.debug("Saved chat state %s (%d bytes)", key, len(data))
