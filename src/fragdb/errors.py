# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for fragment compilation, execution and repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .compiler import CompiledStatement


class DatabaseError(Exception):
    """Base class for every error raised by fragdb."""


class CompileError(DatabaseError):
    """Raised when a fragment cannot be compiled.

    Fragments are validated at construction, so this only happens with a
    misbehaving placeholder/identifier strategy or an identifier that no
    quoting scheme can represent.
    """


class QueryError(DatabaseError):
    """Raised when the backend rejects or fails to execute a statement.

    The driver exception is available as ``__cause__``.
    """

    def __init__(self, message: str, statement: CompiledStatement | None = None):
        self.statement = statement
        super().__init__(message)


class ConnectionAcquisitionError(DatabaseError):
    """Raised when no connection can be obtained (pool exhausted, server down)."""


class NotFoundError(DatabaseError):
    """Raised when exactly one row was expected and none was found."""

    def __init__(self, table: str, key: Any = None, column: str | None = None):
        self.table = table
        self.key = key
        self.column = column
        if column is not None:
            msg = f"Object not found in table '{table}' for {column} = {key!r}"
        else:
            msg = f"Object not found in table '{table}'"
        super().__init__(msg)


class TooManyResultsError(DatabaseError):
    """Raised when exactly one row was expected and several were found."""

    def __init__(self, table: str, count: int, key: Any = None, column: str | None = None):
        self.table = table
        self.count = count
        self.key = key
        self.column = column
        if column is not None:
            msg = f"Expected 1 object in table '{table}' for {column} = {key!r}, found {count}"
        else:
            msg = f"Expected 1 object in table '{table}', found {count}"
        super().__init__(msg)


class RelationshipNotFoundError(DatabaseError):
    """Raised when a repository is asked for a relationship it does not define."""

    def __init__(self, name: str, table: str):
        self.name = name
        self.table = table
        super().__init__(f"Relationship '{name}' is not registered on table '{table}'")


__all__ = [
    "DatabaseError",
    "CompileError",
    "QueryError",
    "ConnectionAcquisitionError",
    "NotFoundError",
    "TooManyResultsError",
    "RelationshipNotFoundError",
]
