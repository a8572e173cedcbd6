"""SQLite storage backends."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import Any, Optional

from .base import ActorStorage, KeyValueStore
from .serializer import deserialize_value, serialize_value


class _SQLiteBase:
    """Connection handling shared by the SQLite backends.

    Every operation opens its own connection inside the default executor so
    the event loop is never blocked on disk I/O.
    """

    def __init__(self, db_path: str = "contextvault.db"):
        """Initialize SQLite backend.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    async def _run(self, func, *args):
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, func, *args)


class SQLiteKeyValueStore(_SQLiteBase, KeyValueStore):
    """SQLite-backed passage store.

    Keys are listed in write order (rowid), matching the in-memory store.
    """

    def _ensure_table(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS passages (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
        """)

    async def put(self, key: str, value: dict[str, Any]) -> None:
        await self._run(self._put_sync, key, serialize_value(value).decode("utf-8"))

    def _put_sync(self, key: str, payload: str) -> None:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            conn.execute(
                "INSERT OR REPLACE INTO passages (key, value) VALUES (?, ?)",
                (key, payload),
            )
            conn.commit()
        finally:
            conn.close()

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        payload = await self._run(self._get_sync, key)
        return deserialize_value(payload) if payload is not None else None

    def _get_sync(self, key: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            row = conn.execute(
                "SELECT value FROM passages WHERE key = ?", (key,)
            ).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    async def delete(self, key: str) -> bool:
        return await self._run(self._delete_sync, key)

    def _delete_sync(self, key: str) -> bool:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            cursor = conn.execute("DELETE FROM passages WHERE key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    async def list(self, prefix: str = "") -> list[str]:
        return await self._run(self._list_sync, prefix)

    def _list_sync(self, prefix: str) -> list[str]:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            rows = conn.execute(
                "SELECT key FROM passages WHERE substr(key, 1, ?) = ? ORDER BY rowid",
                (len(prefix), prefix),
            ).fetchall()
            return [row["key"] for row in rows]
        finally:
            conn.close()


class SQLiteActorStorage(_SQLiteBase, ActorStorage):
    """SQLite-backed storage for one named actor."""

    def __init__(self, db_path: str = "contextvault.db", actor: str = "global"):
        """Initialize actor storage.

        Args:
            db_path: Path to SQLite database file
            actor: Stable actor name (e.g. ``registry`` or ``session:<id>``)
        """
        super().__init__(db_path)
        self.actor = actor

    def _ensure_table(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS actor_state (
                actor TEXT NOT NULL,
                field TEXT NOT NULL,
                value TEXT NOT NULL,
                PRIMARY KEY (actor, field)
            )
        """)

    async def get(self, field: str) -> Any:
        payload = await self._run(self._get_sync, field)
        return deserialize_value(payload) if payload is not None else None

    def _get_sync(self, field: str) -> Optional[str]:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            row = conn.execute(
                "SELECT value FROM actor_state WHERE actor = ? AND field = ?",
                (self.actor, field),
            ).fetchone()
            return row["value"] if row else None
        finally:
            conn.close()

    async def put(self, field: str, value: Any) -> None:
        await self._run(self._put_sync, field, serialize_value(value).decode("utf-8"))

    def _put_sync(self, field: str, payload: str) -> None:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            conn.execute(
                """
                INSERT OR REPLACE INTO actor_state (actor, field, value)
                VALUES (?, ?, ?)
                """,
                (self.actor, field, payload),
            )
            conn.commit()
        finally:
            conn.close()

    async def delete(self, field: str) -> bool:
        return await self._run(self._delete_sync, field)

    def _delete_sync(self, field: str) -> bool:
        conn = self._get_connection()
        try:
            self._ensure_table(conn)
            cursor = conn.execute(
                "DELETE FROM actor_state WHERE actor = ? AND field = ?",
                (self.actor, field),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()


class SQLiteStorageFactory:
    """Builds :class:`SQLiteActorStorage` instances sharing one database file."""

    def __init__(self, db_path: str = "contextvault.db"):
        self.db_path = db_path

    def __call__(self, name: str) -> SQLiteActorStorage:
        return SQLiteActorStorage(self.db_path, actor=name)
