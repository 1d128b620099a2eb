"""
SQLite storage backend using aiosqlite.

A single ``kv`` table holds every namespace. Each write runs in its own
transaction, so a rejected write rolls back and the last committed value
stays readable.
"""

from datetime import datetime
from pathlib import Path

import aiosqlite

from tapestry.core.storage.base import StorageBackend
from tapestry.utils.exceptions import StorageWriteFailure, StoreError
from tapestry.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteStorageBackend(StorageBackend):
    """
    SQLite-based key/value store.

    Features:
    - Fast local storage
    - WAL journaling
    - Optional byte quota enforced before each write
    """

    def __init__(self, db_path: str = "data/tapestry.db", quota_bytes: int | None = None):
        """
        Initialize SQLite storage backend.

        Args:
            db_path: Path to SQLite database file
            quota_bytes: Maximum total size of stored values
        """
        super().__init__(quota_bytes=quota_bytes)
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        # Ensure directory exists
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            self.connection = await aiosqlite.connect(self.db_path)
            await self.connection.execute("PRAGMA journal_mode = WAL")
            await self.connection.commit()

    async def initialize(self) -> None:
        """Initialize database schema."""
        await self.connect()

        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """
        )
        await self.connection.commit()

    async def get(self, key: str) -> str | None:
        await self.connect()

        cursor = await self.connection.execute("SELECT value FROM kv WHERE key = ?", (key,))
        row = await cursor.fetchone()
        await cursor.close()
        return row[0] if row else None

    async def set(self, key: str, value: str) -> None:
        await self.connect()

        new_size = len(value.encode("utf-8"))
        try:
            if self.quota_bytes is not None:
                cursor = await self.connection.execute(
                    "SELECT COALESCE(SUM(LENGTH(CAST(value AS BLOB))), 0), "
                    "COALESCE(SUM(CASE WHEN key = ? THEN LENGTH(CAST(value AS BLOB)) END), 0) "
                    "FROM kv",
                    (key,),
                )
                total, old_size = await cursor.fetchone()
                await cursor.close()
                if self._would_exceed_quota(total, old_size, new_size):
                    raise StorageWriteFailure(
                        f"Storage quota exceeded writing '{key}'",
                        context={"key": key, "quota_bytes": self.quota_bytes, "size": new_size},
                    )

            await self.connection.execute(
                "INSERT OR REPLACE INTO kv (key, value, updated_at) VALUES (?, ?, ?)",
                (key, value, datetime.now().isoformat()),
            )
            await self.connection.commit()
        except StorageWriteFailure:
            raise
        except aiosqlite.Error as e:
            await self.connection.rollback()
            logger.error(f"SQLite write failed for '{key}': {e}")
            raise StorageWriteFailure(
                f"Failed to write '{key}': {e}",
                context={"key": key, "error_type": type(e).__name__},
            ) from e

    async def delete(self, key: str) -> None:
        await self.connect()

        await self.connection.execute("DELETE FROM kv WHERE key = ?", (key,))
        await self.connection.commit()

    async def keys(self, prefix: str = "") -> list[str]:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
            (len(prefix), prefix),
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return [row[0] for row in rows]

    async def usage_bytes(self) -> int:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT COALESCE(SUM(LENGTH(CAST(value AS BLOB))), 0) FROM kv"
        )
        row = await cursor.fetchone()
        await cursor.close()
        return int(row[0])

    async def close(self) -> None:
        """Close the connection."""
        if self.connection is not None:
            try:
                await self.connection.close()
            except aiosqlite.Error as e:
                raise StoreError(f"Failed to close SQLite connection: {e}") from e
            finally:
                self.connection = None
