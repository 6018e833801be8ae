# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite async adapter using aiosqlite with serialized access."""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from typing import TYPE_CHECKING, Any

import aiosqlite

from ..compiler import double_quote_identifier, qmark_placeholder
from ..errors import ConnectionAcquisitionError
from .base import DbAdapter

if TYPE_CHECKING:
    from ..compiler import CompiledStatement

logger = logging.getLogger(__name__)


class SqliteAdapter(DbAdapter):
    """SQLite async adapter serializing all access to one connection.

    SQLite has no server-side pool: the adapter keeps a single aiosqlite
    connection and an ``asyncio.Lock``. acquire() takes the lock and returns
    the connection, release() gives the lock back. A plain query holds it for
    one statement, a sequence holds it for the whole callback, so the
    statements of a sequence are never interleaved with other callers.

    Uses ``?`` placeholders and double-quoted identifiers. The connection runs
    with ``isolation_level=None`` so that BEGIN/COMMIT are explicit. A
    transaction left open when the connection is released is rolled back.
    """

    name = "sqlite"
    placeholder = staticmethod(qmark_placeholder)
    quote_identifier = staticmethod(double_quote_identifier)

    def __init__(self, db_path: str):
        self.db_path = db_path or ":memory:"
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()

    @classmethod
    def from_connection_info(
        cls, db_type: str, connection_info: str, **options: Any
    ) -> SqliteAdapter:
        """Open ``connection_info`` as a file path; pool options do not apply."""
        return cls(connection_info)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        return (sqlite3.Error,)

    async def _ensure_connection(self) -> aiosqlite.Connection:
        """Open the shared connection if not already open."""
        if self._conn is not None:
            return self._conn
        try:
            self._conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        except (sqlite3.Error, OSError) as e:
            raise ConnectionAcquisitionError(
                f"Cannot open SQLite database '{self.db_path}': {e}"
            ) from e
        logger.info("Opened SQLite database %s", self.db_path)
        return self._conn

    async def acquire(self) -> aiosqlite.Connection:
        """Wait for exclusive access to the shared connection."""
        await self._lock.acquire()
        try:
            return await self._ensure_connection()
        except BaseException:
            self._lock.release()
            raise

    async def release(self, conn: aiosqlite.Connection) -> None:
        """Roll back any dangling transaction and give exclusive access back."""
        try:
            if conn.in_transaction:
                logger.warning("Rolling back transaction left open on %s", self.db_path)
                await conn.rollback()
        finally:
            self._lock.release()

    async def shutdown(self) -> None:
        """Close the shared connection."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
            logger.info("Closed SQLite database %s", self.db_path)

    def total_connections(self) -> int:
        return 0 if self._conn is None else 1

    def free_connections(self) -> int:
        if self._lock.locked():
            return 0
        return self.total_connections()

    async def fetch_all(
        self, conn: aiosqlite.Connection, statement: CompiledStatement
    ) -> list[dict[str, Any]]:
        """Execute statement, return all rows as list of dicts."""
        async with conn.execute(statement.text, statement.values) as cursor:
            if cursor.description is None:
                return []
            rows = await cursor.fetchall()
            cols = [c[0] for c in cursor.description]
            return [dict(zip(cols, row, strict=True)) for row in rows]

    async def insert_and_get(
        self, conn: aiosqlite.Connection, statement: CompiledStatement
    ) -> list[Any]:
        """Execute an INSERT and return ``[lastrowid]``."""
        async with conn.execute(statement.text, statement.values) as cursor:
            return [cursor.lastrowid]


__all__ = ["SqliteAdapter"]
