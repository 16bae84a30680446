"""
Document Store

Persistence collaborator for assessments, roadmaps, goals and profiles.
Records are JSON documents grouped in named collections, owned by one
user and optionally carrying a status used for indexed lookups.

Features:
- Opaque string ids assigned on insert
- Per-document atomic read-modify-write updates
- Owner-scoped updates and deletes
- Owner and owner+status indexed queries
- Stable insertion-order iteration, optionally newest first
- Async operations with aiosqlite
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import uuid4

import aiosqlite

from utils.tracing import trace_db_operation

# Keys managed by the store itself, never stored inside the body
RESERVED_KEYS = ("id", "created_at", "updated_at")
OWNER_KEY = "user_id"
STATUS_KEY = "status"


class DocumentNotFoundError(KeyError):
    """Raised when updating or deleting a document that does not exist."""
    pass


class DocumentStore(ABC):
    """
    Abstract document store.

    Returned records are plain dicts: the stored body plus `id` and
    `created_at`.
    """

    @abstractmethod
    async def initialize(self):
        pass

    @abstractmethod
    async def insert(self, table: str, record: Dict[str, Any]) -> str:
        """Insert a record and return its new id."""
        pass

    @abstractmethod
    async def get(self, table: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    async def update(
        self,
        table: str,
        doc_id: str,
        apply: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
        owner_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Atomic read-modify-write of one record.

        `apply` receives the current record and returns the fields to merge
        (or None to leave it unchanged). It runs while the store holds the
        write lock, so concurrent updates of the same record never interleave.
        An exception raised by `apply` aborts the update and propagates.

        Raises:
            DocumentNotFoundError: if no record matches the id (and owner, if given)
        """
        pass

    @abstractmethod
    async def delete(self, table: str, doc_id: str, owner_id: Optional[str] = None) -> None:
        """Delete one record; with `owner_id`, only if that user owns it."""
        pass

    async def patch(self, table: str, doc_id: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        """Merge `fields` into a record and return the updated record."""
        return await self.update(table, doc_id, lambda _record: fields)

    @abstractmethod
    async def query(
        self,
        table: str,
        owner_id: str,
        status: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """Records owned by `owner_id`, optionally filtered by status, in insertion order."""
        pass

    @abstractmethod
    async def count(
        self,
        table: str,
        owner_id: Optional[str] = None,
        status: Optional[str] = None
    ) -> int:
        pass

    @abstractmethod
    async def reset(self):
        """Delete every document."""
        pass

    async def first(
        self,
        table: str,
        owner_id: str,
        status: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        """Oldest record matching the owner (and status) filter."""
        records = await self.query(table, owner_id, status=status, limit=1)
        return records[0] if records else None


class SqliteDocumentStore(DocumentStore):
    """
    SQLite-backed document store.

    All collections share one `documents` table. Owner and status are
    lifted out of the JSON body into indexed columns on every write.
    """

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Union[str, Path]):
        """
        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.logger = logging.getLogger(self.__class__.__name__)

        # Connection is opened per operation
        self._initialized = False

    async def initialize(self):
        """Create the schema if it does not exist yet."""
        if self._initialized:
            return

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id TEXT NOT NULL UNIQUE,
                    collection TEXT NOT NULL,
                    owner_id TEXT,
                    status TEXT,
                    body TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)

            await db.execute("""
                CREATE INDEX IF NOT EXISTS idx_documents_owner_status
                ON documents(collection, owner_id, status)
            """)

            await db.execute("""
                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            await db.execute("""
                INSERT OR REPLACE INTO metadata (key, value)
                VALUES ('schema_version', ?)
            """, (str(self.SCHEMA_VERSION),))

            await db.commit()

        self._initialized = True
        self.logger.info(f"Document store initialized: {self.db_path}")

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @staticmethod
    def _strip_reserved(record: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in record.items() if key not in RESERVED_KEYS}

    @staticmethod
    def _to_record(row: aiosqlite.Row) -> Dict[str, Any]:
        record = json.loads(row["body"])
        record["id"] = row["id"]
        record["created_at"] = row["created_at"]
        return record

    @trace_db_operation("insert")
    async def insert(self, table: str, record: Dict[str, Any]) -> str:
        if not self._initialized:
            await self.initialize()

        doc_id = uuid4().hex
        body = self._strip_reserved(record)
        now = self._now()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("""
                INSERT INTO documents (
                    id, collection, owner_id, status, body, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                doc_id,
                table,
                body.get(OWNER_KEY),
                body.get(STATUS_KEY),
                json.dumps(body),
                now,
                now
            ))
            await db.commit()

        self.logger.debug(f"Inserted {table}/{doc_id}")
        return doc_id

    @trace_db_operation("get")
    async def get(self, table: str, doc_id: str) -> Optional[Dict[str, Any]]:
        if not self._initialized:
            await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute("""
                SELECT id, body, created_at FROM documents
                WHERE collection = ? AND id = ?
            """, (table, doc_id))
            row = await cursor.fetchone()

        return self._to_record(row) if row else None

    @trace_db_operation("update")
    async def update(
        self,
        table: str,
        doc_id: str,
        apply: Callable[[Dict[str, Any]], Optional[Dict[str, Any]]],
        owner_id: Optional[str] = None
    ) -> Dict[str, Any]:
        if not self._initialized:
            await self.initialize()

        sql = "SELECT id, body, created_at FROM documents WHERE collection = ? AND id = ?"
        params: List[Any] = [table, doc_id]
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            # Write lock is held from the read until commit
            await db.execute("BEGIN IMMEDIATE")
            try:
                cursor = await db.execute(sql, params)
                row = await cursor.fetchone()
                if row is None:
                    raise DocumentNotFoundError(f"{table}/{doc_id}")

                fields = apply(self._to_record(row)) or {}

                body = json.loads(row["body"])
                body.update(self._strip_reserved(fields))
                if fields:
                    await db.execute("""
                        UPDATE documents SET
                            owner_id = ?,
                            status = ?,
                            body = ?,
                            updated_at = ?
                        WHERE id = ?
                    """, (
                        body.get(OWNER_KEY),
                        body.get(STATUS_KEY),
                        json.dumps(body),
                        self._now(),
                        doc_id
                    ))
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        body["id"] = row["id"]
        body["created_at"] = row["created_at"]
        self.logger.debug(f"Updated {table}/{doc_id}: {sorted(fields)}")
        return body

    @trace_db_operation("delete")
    async def delete(self, table: str, doc_id: str, owner_id: Optional[str] = None) -> None:
        if not self._initialized:
            await self.initialize()

        sql = "DELETE FROM documents WHERE collection = ? AND id = ?"
        params: List[Any] = [table, doc_id]
        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(sql, params)
            await db.commit()
            deleted = cursor.rowcount

        if not deleted:
            raise DocumentNotFoundError(f"{table}/{doc_id}")

        self.logger.debug(f"Deleted {table}/{doc_id}")

    @trace_db_operation("query")
    async def query(
        self,
        table: str,
        owner_id: str,
        status: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        if not self._initialized:
            await self.initialize()

        sql = "SELECT id, body, created_at FROM documents WHERE collection = ? AND owner_id = ?"
        params: List[Any] = [table, owner_id]

        if status is not None:
            sql += " AND status = ?"
            params.append(status)

        sql += " ORDER BY seq DESC" if descending else " ORDER BY seq ASC"

        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()

        return [self._to_record(row) for row in rows]

    @trace_db_operation("count")
    async def count(
        self,
        table: str,
        owner_id: Optional[str] = None,
        status: Optional[str] = None
    ) -> int:
        if not self._initialized:
            await self.initialize()

        sql = "SELECT COUNT(*) FROM documents WHERE collection = ?"
        params: List[Any] = [table]

        if owner_id is not None:
            sql += " AND owner_id = ?"
            params.append(owner_id)

        if status is not None:
            sql += " AND status = ?"
            params.append(status)

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute(sql, params)
            row = await cursor.fetchone()

        return row[0] if row else 0

    async def reset(self):
        if not self._initialized:
            await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("DELETE FROM documents")
            await db.commit()

        self.logger.warning(f"All documents deleted from {self.db_path}")
