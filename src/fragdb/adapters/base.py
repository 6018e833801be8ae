# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base adapter class: connection source primitives plus backend strategies."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from ..compiler import (
    CompiledStatement,
    compile_fragment,
    double_quote_identifier,
    qmark_placeholder,
)

if TYPE_CHECKING:
    from ..fragment import SqlFragment


class DbAdapter(ABC):
    """Abstract base class for async database adapters.

    An adapter is the connection source a ``Database`` wraps. It exposes:
    - Backend strategies (placeholder, quote_identifier) used to compile fragments
    - Connection management (connect, acquire, release, shutdown)
    - Statement execution on an acquired connection (fetch_all, insert_and_get)
    - Pool introspection (free_connections, total_connections)

    Connection model:
    - acquire(): Reserve a connection exclusively (pool checkout or lock)
    - release(conn): Give it back; called exactly once per acquire()
    - shutdown(): Close the pool/file (application shutdown only)

    Connections run in autocommit mode: transactions are opened explicitly
    with BEGIN/COMMIT/ROLLBACK statements issued inside ``Database.sequence``.

    Subclasses must implement the abstract methods, set ``placeholder`` and
    ``quote_identifier`` (and ``literal`` when the driver rewrites statement
    text), and list the driver exception classes that mean
    "statement failed" in ``driver_errors``.
    """

    name: str = "base"

    # Override in subclass
    placeholder = staticmethod(qmark_placeholder)
    quote_identifier = staticmethod(double_quote_identifier)
    literal: Any = None

    @classmethod
    def from_connection_info(cls, db_type: str, connection_info: str, **options: Any) -> DbAdapter:
        """Build the adapter from a split ``db_type:connection_info`` string.

        Used by ``get_adapter`` for the class registered under ``db_type``.
        The default passes the whole URL and the pool options to the
        constructor.
        """
        return cls(f"{db_type}:{connection_info}", **options)

    def compile(self, fragment: SqlFragment) -> CompiledStatement:
        """Compile a fragment with this backend's strategies."""
        return compile_fragment(fragment, self.placeholder, self.quote_identifier, self.literal)

    @property
    @abstractmethod
    def driver_errors(self) -> tuple[type[BaseException], ...]:
        """Driver exception classes translated to QueryError."""
        ...

    async def connect(self) -> None:
        """Open the underlying pool/connection eagerly.

        Adapters open lazily on the first acquire(), so calling this is
        optional; it only surfaces configuration errors early.
        """
        conn = await self.acquire()
        await self.release(conn)

    @abstractmethod
    async def acquire(self) -> Any:
        """Reserve a connection for exclusive use.

        Raises:
            ConnectionAcquisitionError: Pool exhausted or backend unreachable.
        """
        ...

    @abstractmethod
    async def release(self, conn: Any) -> None:
        """Give back a connection obtained from acquire()."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Close the pool or connection (application shutdown)."""
        ...

    @abstractmethod
    def free_connections(self) -> int:
        """Number of idle connections currently available."""
        ...

    @abstractmethod
    def total_connections(self) -> int:
        """Number of connections currently owned by the pool."""
        ...

    # -------------------------------------------------------------------------
    # Connection-bound operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def fetch_all(self, conn: Any, statement: CompiledStatement) -> list[dict[str, Any]]:
        """Execute on connection, return all rows (empty list if none)."""
        ...

    @abstractmethod
    async def insert_and_get(self, conn: Any, statement: CompiledStatement) -> list[Any]:
        """Execute an INSERT on connection and return the generated ids."""
        ...


__all__ = ["DbAdapter"]
