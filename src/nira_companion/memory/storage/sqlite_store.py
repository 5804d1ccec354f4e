"""SQLite document store.

This module provides the key/collection document store the companion keeps
its per-user memory in, using SQLite with aiosqlite for async operations.

Documents are JSON objects addressed by ``(collection, doc_id)``. Collections
are slash separated paths (``users/<uid>/conversations``) so sub-collections
need no extra schema. Writes support merge semantics plus sentinels that
are resolved inside the write transaction:

* ``SERVER_TIMESTAMP`` -- replaced with the store clock's current time
* ``Increment(n)`` -- added to the currently stored numeric value
* ``IfMissing(v)`` -- written only when the field is not stored yet
"""

from __future__ import annotations

import asyncio
import functools
import json
import re
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable
from uuid import uuid4

import aiosqlite
from loguru import logger

from ..exceptions import StoreFailure

_FIELD_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class _ServerTimestamp:
    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


class Increment:
    """Numeric increment applied against the stored field value."""

    def __init__(self, amount: float):
        self.amount = amount

    def __repr__(self) -> str:
        return f"Increment({self.amount})"


class IfMissing:
    """Value written only when the document does not have the field yet."""

    def __init__(self, value: Any):
        self.value = value

    def __repr__(self) -> str:
        return f"IfMissing({self.value!r})"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _store_errors(func):
    """Wrap sqlite errors raised by a store coroutine in StoreFailure."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except StoreFailure:
            raise
        except (sqlite3.Error, ValueError, TypeError, OSError) as e:
            logger.error(f"SQLiteDocumentStore.{func.__name__} failed: {e}")
            raise StoreFailure(f"{func.__name__} failed: {e}") from e

    return wrapper


class WriteBatch:
    """Collects writes and commits them in a single transaction."""

    def __init__(self, store: "SQLiteDocumentStore"):
        self._store = store
        self._ops: list[tuple[str, str, dict, bool]] = []
        self._committed = False

    def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> None:
        self._ops.append((collection, doc_id, dict(data), merge))

    def add(self, collection: str, data: dict) -> str:
        doc_id = _new_doc_id()
        self._ops.append((collection, doc_id, dict(data), False))
        return doc_id

    def __len__(self) -> int:
        return len(self._ops)

    async def commit(self) -> None:
        if self._committed:
            raise RuntimeError("WriteBatch already committed")
        await self._store._apply_writes(self._ops)
        self._committed = True


def _new_doc_id() -> str:
    return uuid4().hex[:20]


class SQLiteDocumentStore:
    """SQLite storage backend for companion documents.

    Uses WAL mode and a single connection. All statements run under one
    asyncio lock so that a batch transaction is never interleaved with
    another coroutine's statements on the shared connection.
    """

    def __init__(
        self,
        db_path: str = "./memory/companion.db",
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize SQLite store.

        Args:
            db_path: Path to SQLite database file (":memory:" is accepted)
            clock: Source of server timestamps, defaults to UTC now
        """
        self.db_path = db_path
        self._clock = clock or _utcnow
        self._db: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        logger.info(f"SQLiteDocumentStore initialized with db_path: {db_path}")

    def now(self) -> datetime:
        return self._clock()

    @_store_errors
    async def initialize(self) -> None:
        """Create the documents table if it doesn't exist."""
        if self._db is not None:
            return
        if self.db_path != ":memory:":
            db_dir = Path(self.db_path).parent
            db_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Ensured database directory exists: {db_dir}")

        # autocommit mode, transactions are opened explicitly
        self._db = await aiosqlite.connect(self.db_path, isolation_level=None)
        await self._db.execute("PRAGMA journal_mode=WAL")

        await self._db.execute("""
            CREATE TABLE IF NOT EXISTS documents (
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                collection TEXT NOT NULL,
                doc_id TEXT NOT NULL,
                data TEXT NOT NULL,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL,
                UNIQUE (collection, doc_id)
            )
        """)
        await self._db.execute(
            "CREATE INDEX IF NOT EXISTS idx_documents_collection "
            "ON documents(collection)"
        )
        logger.info("SQLite document store initialized successfully")

    async def close(self) -> None:
        if self._db is not None:
            await self._db.close()
            self._db = None
            logger.info("SQLiteDocumentStore closed")

    def _conn(self) -> aiosqlite.Connection:
        if self._db is None:
            raise StoreFailure("Document store is not initialized")
        return self._db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @_store_errors
    async def get(self, collection: str, doc_id: str) -> dict | None:
        async with self._lock:
            return await self._get_unlocked(collection, doc_id)

    async def _get_unlocked(self, collection: str, doc_id: str) -> dict | None:
        async with self._conn().execute(
            "SELECT data FROM documents WHERE collection = ? AND doc_id = ?",
            (collection, doc_id),
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    @_store_errors
    async def query(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = True,
        limit: int | None = None,
    ) -> list[tuple[str, dict]]:
        """Return ``(doc_id, data)`` pairs of a collection.

        Documents with equal ``order_by`` values keep insertion order
        (reversed when descending).
        """
        direction = "DESC" if descending else "ASC"
        params: list[Any] = [collection]
        if order_by is not None:
            if not _FIELD_RE.match(order_by):
                raise ValueError(f"Invalid order_by field: {order_by!r}")
            order_clause = f"json_extract(data, ?) {direction}, seq {direction}"
            params.append(f"$.{order_by}")
        else:
            order_clause = f"seq {direction}"

        sql = f"SELECT doc_id, data FROM documents WHERE collection = ? ORDER BY {order_clause}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        async with self._lock:
            async with self._conn().execute(sql, params) as cursor:
                rows = await cursor.fetchall()
        return [(doc_id, json.loads(data)) for doc_id, data in rows]

    async def list_documents(self, collection: str, limit: int | None = None) -> list[dict]:
        """Documents of a collection, newest first, with their ids under ``id``."""
        rows = await self.query(collection, limit=limit)
        return [{"id": doc_id, **data} for doc_id, data in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def set(self, collection: str, doc_id: str, data: dict, merge: bool = False) -> None:
        await self._apply_writes([(collection, doc_id, dict(data), merge)])

    async def add(self, collection: str, data: dict) -> str:
        doc_id = _new_doc_id()
        await self._apply_writes([(collection, doc_id, dict(data), False)])
        return doc_id

    @_store_errors
    async def delete(self, collection: str, doc_id: str) -> bool:
        async with self._lock:
            cursor = await self._conn().execute(
                "DELETE FROM documents WHERE collection = ? AND doc_id = ?",
                (collection, doc_id),
            )
            return cursor.rowcount > 0

    def batch(self) -> WriteBatch:
        return WriteBatch(self)

    @_store_errors
    async def _apply_writes(self, ops: list[tuple[str, str, dict, bool]]) -> None:
        """Apply writes in one transaction (all or nothing)."""
        if not ops:
            return
        db = self._conn()
        async with self._lock:
            now = self._clock()
            await db.execute("BEGIN IMMEDIATE")
            try:
                for collection, doc_id, data, merge in ops:
                    existing = await self._get_unlocked(collection, doc_id)
                    base = dict(existing) if (merge and existing) else {}
                    resolved = self._resolve(data, existing or {}, now)
                    base.update(resolved)
                    await db.execute(
                        """
                        INSERT INTO documents (collection, doc_id, data, created_at, updated_at)
                        VALUES (?, ?, ?, ?, ?)
                        ON CONFLICT (collection, doc_id) DO UPDATE SET
                            data = excluded.data,
                            updated_at = excluded.updated_at
                        """,
                        (
                            collection,
                            doc_id,
                            json.dumps(base, ensure_ascii=False),
                            now.isoformat(),
                            now.isoformat(),
                        ),
                    )
                await db.execute("COMMIT")
            except BaseException:
                await db.execute("ROLLBACK")
                raise
        logger.debug(f"Committed {len(ops)} document write(s)")

    @staticmethod
    def _resolve(data: dict, existing: dict, now: datetime) -> dict:
        resolved: dict[str, Any] = {}
        for key, value in data.items():
            if value is SERVER_TIMESTAMP:
                resolved[key] = now.isoformat()
            elif isinstance(value, IfMissing):
                resolved[key] = existing[key] if key in existing else value.value
            elif isinstance(value, Increment):
                current = existing.get(key) or 0
                if not isinstance(current, (int, float)) or isinstance(current, bool):
                    current = 0
                resolved[key] = current + value.amount
            elif isinstance(value, datetime):
                resolved[key] = value.isoformat()
            else:
                resolved[key] = value
        return resolved
