"""
Record store for the phonebook and a simple migration system.

The directory talks to its storage through the small document-style
contract declared by ``DocumentStore``: find everything, find by
identifier, find by field equality, insert, update and delete by
identifier, plus a connectivity state.  ``PersonStore`` implements
that contract on top of SQLite through ``aiosqlite`` so that every
call is awaitable and never blocks the event loop.

A single connection is opened once at application startup
(``connect``) and shared by every request until shutdown.  Schema
changes are kept in the ``MIGRATIONS`` list; applied versions are
recorded in the ``migrations`` table and new entries are executed in
order when the store connects.

Documents returned by the store are plain dictionaries.  The storage
identifier lives under ``_id`` and bookkeeping columns (``revision``,
``created_at``, ``updated_at``) travel with the document; callers are
expected to hide them before a record leaves the service.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import sqlite3
import uuid
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import aiosqlite
from fastapi import Request

from .config import settings

logger = logging.getLogger(__name__)

Document = Dict[str, Any]

IDENTIFIER_PATTERN = re.compile(r"[0-9a-f]{32}")

MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS persons (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            number TEXT NOT NULL,
            revision INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );
        """,
    ),
    # Migration 2: enforce unique names at the storage level so that two
    # concurrent inserts with the same name cannot both succeed.
    (
        2,
        """
        CREATE UNIQUE INDEX IF NOT EXISTS idx_persons_name ON persons(name);
        """,
    ),
]


class ConnectionState(str, Enum):
    """Connectivity of the store as reported by the health endpoint."""

    CONNECTED = "connected"
    CONNECTING = "connecting"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class StoreError(Exception):
    """Raised when the underlying database driver fails."""


class DuplicateKeyError(StoreError):
    """Raised when a write violates a unique constraint."""

    def __init__(self, field: str) -> None:
        super().__init__(f"Duplicate value for unique field '{field}'")
        self.field = field


class DocumentStore(ABC):
    """Storage contract required by the directory service."""

    @property
    @abstractmethod
    def state(self) -> ConnectionState:
        """Current connectivity state."""

    @staticmethod
    @abstractmethod
    def is_valid_identifier(identifier: str) -> bool:
        """Return ``True`` if ``identifier`` is structurally a store identifier."""

    @abstractmethod
    async def find_all(self) -> List[Document]:
        """Return every document in insertion order."""

    @abstractmethod
    async def find_by_id(self, identifier: str) -> Optional[Document]:
        """Return the document with ``identifier`` or ``None``."""

    @abstractmethod
    async def find_one(self, field: str, value: Any) -> Optional[Document]:
        """Return the first document whose ``field`` equals ``value``."""

    @abstractmethod
    async def insert(self, fields: Dict[str, Any]) -> Document:
        """Insert a new document; the store assigns its identifier.

        Raises
        ------
        DuplicateKeyError
            If a unique field already holds the same value.
        """

    @abstractmethod
    async def update_by_id(self, identifier: str, fields: Dict[str, Any]) -> Optional[Document]:
        """Replace ``fields`` on a document and return it after the update."""

    @abstractmethod
    async def delete_by_id(self, identifier: str) -> Optional[Document]:
        """Delete a document and return it as it was, or ``None``."""

    @abstractmethod
    async def count(self) -> int:
        """Return the number of stored documents."""


def get_database_path(database_url: Optional[str] = None) -> str:
    """Compute the path to the SQLite database file.

    Absolute paths and ``:memory:`` are returned unchanged.  Relative
    paths are resolved against the project root.
    """
    db_url = database_url if database_url is not None else settings.database_url
    if db_url == ":memory:" or os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


class PersonStore(DocumentStore):
    """``DocumentStore`` for person records backed by a shared aiosqlite connection.

    Every statement runs under one ``asyncio.Lock``: a write holds it
    from execution to commit or rollback, and reads wait for it, so no
    caller ever sees a row that is not committed yet.
    """

    _FIELDS = ("name", "number")

    def __init__(self, database_url: Optional[str] = None) -> None:
        self.path = get_database_path(database_url)
        self._conn: Optional[aiosqlite.Connection] = None
        self._state = ConnectionState.DISCONNECTED
        self._lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @staticmethod
    def is_valid_identifier(identifier: str) -> bool:
        return isinstance(identifier, str) and bool(IDENTIFIER_PATTERN.fullmatch(identifier))

    async def connect(self) -> None:
        """Open the connection and apply pending migrations."""
        if self._conn is not None:
            return
        self._state = ConnectionState.CONNECTING
        conn: Optional[aiosqlite.Connection] = None
        try:
            conn = await aiosqlite.connect(self.path)
            conn.row_factory = aiosqlite.Row
            await self._migrate(conn)
        except sqlite3.Error as exc:
            if conn is not None:
                await conn.close()
            self._state = ConnectionState.ERROR
            logger.error("Error connecting to database %s: %s", self.path, exc)
            raise StoreError(str(exc)) from exc
        self._conn = conn
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to database %s", self.path)

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None
        self._state = ConnectionState.DISCONNECTED
        logger.info("Closed database connection")

    @staticmethod
    async def _migrate(conn: aiosqlite.Connection) -> None:
        await conn.execute("CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)")
        async with conn.execute("SELECT MAX(version) AS version FROM migrations") as cursor:
            row = await cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                await conn.executescript(sql)
                await conn.execute("INSERT INTO migrations (version) VALUES (?)", (version,))
                logger.debug("Applied migration %s", version)
                current_version = version
        await conn.commit()

    @property
    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("Database connection is not open")
        return self._conn

    @staticmethod
    def _row_to_document(row: aiosqlite.Row) -> Document:
        document = dict(row)
        document["_id"] = document.pop("id")
        return document

    async def _read(self, query: str, params: tuple = ()) -> List[aiosqlite.Row]:
        """Run a SELECT and return all rows.

        Reads take the same lock as writes, so they never observe a row
        between its INSERT and the COMMIT or ROLLBACK that settles it.
        """
        conn = self._connection
        async with self._lock:
            try:
                async with conn.execute(query, params) as cursor:
                    return list(await cursor.fetchall())
            except sqlite3.Error as exc:
                raise StoreError(str(exc)) from exc

    async def _fetch_one(self, query: str, params: tuple) -> Optional[Document]:
        rows = await self._read(query, params)
        return self._row_to_document(rows[0]) if rows else None

    async def find_all(self) -> List[Document]:
        rows = await self._read("SELECT * FROM persons ORDER BY rowid ASC")
        return [self._row_to_document(row) for row in rows]

    async def find_by_id(self, identifier: str) -> Optional[Document]:
        return await self._fetch_one("SELECT * FROM persons WHERE id = ?", (identifier,))

    async def find_one(self, field: str, value: Any) -> Optional[Document]:
        if field not in self._FIELDS:
            raise StoreError(f"Unknown field '{field}'")
        return await self._fetch_one(
            f"SELECT * FROM persons WHERE {field} = ? ORDER BY rowid ASC LIMIT 1",
            (value,),
        )

    async def _write(self, query: str, params: tuple) -> int:
        """Execute one write statement in its own transaction.

        Statements share a single connection, so they are serialised: a
        rollback after a failed statement must never discard another
        request's uncommitted row.  Returns the affected row count.
        """
        conn = self._connection
        async with self._lock:
            try:
                cursor = await conn.execute(query, params)
                affected = cursor.rowcount
                await conn.commit()
            except sqlite3.IntegrityError as exc:
                await conn.rollback()
                if "UNIQUE" in str(exc):
                    raise DuplicateKeyError("name") from exc
                raise StoreError(str(exc)) from exc
            except sqlite3.Error as exc:
                await conn.rollback()
                raise StoreError(str(exc)) from exc
        return affected

    async def insert(self, fields: Dict[str, Any]) -> Document:
        identifier = uuid.uuid4().hex
        await self._write(
            "INSERT INTO persons (id, name, number) VALUES (?, ?, ?)",
            (identifier, fields["name"], fields["number"]),
        )
        document = await self.find_by_id(identifier)
        if document is None:
            raise StoreError(f"Inserted document {identifier} could not be read back")
        return document

    async def update_by_id(self, identifier: str, fields: Dict[str, Any]) -> Optional[Document]:
        affected = await self._write(
            """
            UPDATE persons
            SET name = ?, number = ?, revision = revision + 1, updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (fields["name"], fields["number"], identifier),
        )
        if not affected:
            return None
        return await self.find_by_id(identifier)

    async def delete_by_id(self, identifier: str) -> Optional[Document]:
        document = await self.find_by_id(identifier)
        if document is None:
            return None
        affected = await self._write("DELETE FROM persons WHERE id = ?", (identifier,))
        # Another request may have removed it between the read and the delete.
        return document if affected else None

    async def count(self) -> int:
        rows = await self._read("SELECT COUNT(*) AS count FROM persons")
        return rows[0]["count"]


def get_store(request: Request) -> PersonStore:
    """FastAPI dependency returning the process-wide store handle."""
    return request.app.state.store
