# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""PostgreSQL async adapter using psycopg3 with connection pooling.

Statements are sent with server-side ``$n`` parameters through psycopg raw
cursors, so literal ``%`` in fragment text needs no escaping. acquire() checks
a connection out of the pool, release() puts it back.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from ..compiler import double_quote_identifier, numbered_placeholder
from ..errors import ConnectionAcquisitionError
from .base import DbAdapter

if TYPE_CHECKING:
    from ..compiler import CompiledStatement

logger = logging.getLogger(__name__)


class PostgresAdapter(DbAdapter):
    """PostgreSQL async adapter with connection pooling.

    Uses ``$1, $2, ...`` placeholders and double-quoted identifiers.
    Connections are opened in autocommit mode; psycopg_pool rolls back any
    transaction still open when a connection is returned.

    Pool is initialized lazily on first acquire().
    """

    name = "postgresql"
    placeholder = staticmethod(numbered_placeholder)
    quote_identifier = staticmethod(double_quote_identifier)

    def __init__(
        self,
        dsn: str,
        min_size: int = 1,
        max_size: int = 10,
        connect_timeout: float = 10.0,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.connect_timeout = connect_timeout
        self._pool: Any = None
        self._pool_lock = asyncio.Lock()

        # Verify psycopg is available at init time
        try:
            import psycopg  # noqa: F401
            import psycopg_pool  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "PostgreSQL support requires psycopg and psycopg-pool. "
                "Install with: pip install fragdb[postgresql]"
            ) from e

    @classmethod
    def from_connection_info(
        cls, db_type: str, connection_info: str, **options: Any
    ) -> PostgresAdapter:
        # postgres: is an alias, the stored dsn always uses postgresql:
        return cls(f"postgresql:{connection_info}", **options)

    @property
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        import psycopg

        return (psycopg.Error,)

    async def _ensure_pool(self) -> None:
        """Initialize connection pool if not already open.

        Concurrent first callers wait on the lock and share one pool.
        """
        if self._pool is not None:
            return
        async with self._pool_lock:
            if self._pool is None:
                self._pool = await self._open_pool()
                logger.info(
                    "Opened PostgreSQL pool (min=%d, max=%d)", self.min_size, self.max_size
                )

    async def _open_pool(self) -> Any:
        from psycopg_pool import AsyncConnectionPool

        pool = AsyncConnectionPool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False,
            kwargs={"autocommit": True},
            timeout=self.connect_timeout,
        )
        try:
            await asyncio.wait_for(
                pool.open(wait=True, timeout=self.connect_timeout),
                timeout=self.connect_timeout + 1,
            )
        except asyncio.TimeoutError:
            await pool.close()
            raise ConnectionAcquisitionError(
                f"PostgreSQL connection timed out after {self.connect_timeout}s. "
                "Check credentials and server availability."
            ) from None
        except Exception as e:
            await pool.close()
            raise ConnectionAcquisitionError(f"PostgreSQL connection failed: {e}") from e
        return pool

    async def acquire(self) -> Any:
        """Check a connection out of the pool."""
        from psycopg_pool import PoolTimeout

        await self._ensure_pool()
        try:
            return await self._pool.getconn()
        except PoolTimeout as e:
            raise ConnectionAcquisitionError(
                f"No PostgreSQL connection available after {self.connect_timeout}s"
            ) from e

    async def release(self, conn: Any) -> None:
        """Return connection to pool."""
        if self._pool:
            await self._pool.putconn(conn)

    async def shutdown(self) -> None:
        """Close connection pool (application shutdown)."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Closed PostgreSQL pool")

    def total_connections(self) -> int:
        if self._pool is None:
            return 0
        return self._pool.get_stats()["pool_size"]

    def free_connections(self) -> int:
        if self._pool is None:
            return 0
        return self._pool.get_stats()["pool_available"]

    async def fetch_all(self, conn: Any, statement: CompiledStatement) -> list[dict[str, Any]]:
        """Execute statement, return all rows as list of dicts."""
        from psycopg import AsyncRawCursor
        from psycopg.rows import dict_row

        async with AsyncRawCursor(conn, row_factory=dict_row) as cur:
            await cur.execute(statement.text, statement.values or None)
            if cur.description is None:
                return []
            return await cur.fetchall()

    async def insert_and_get(self, conn: Any, statement: CompiledStatement) -> list[Any]:
        """Execute an INSERT ... RETURNING and return the first column of each row."""
        from psycopg import AsyncRawCursor

        async with AsyncRawCursor(conn) as cur:
            await cur.execute(statement.text, statement.values or None)
            if cur.description is None:
                return []
            return [row[0] for row in await cur.fetchall()]


__all__ = ["PostgresAdapter"]
