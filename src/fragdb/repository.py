# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Generic CRUD repository built on SqlFragment and Database.query."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from .errors import NotFoundError, RelationshipNotFoundError, TooManyResultsError
from .fragment import Identifier, SqlFragment, sql, sql_join

if TYPE_CHECKING:
    from .database import Database

M = TypeVar("M")


@dataclass(frozen=True)
class Relationship:
    """Named link from this repository's rows to rows of another repository.

    Attributes:
        name: Relationship name used with ``CrudRepository.load``.
        repository: Repository of the related rows.
        local_key: Column of this table holding the join value.
        foreign_key: Column of the related table matched against ``local_key``.
        many: True for one-to-many (list of models), False for many-to-one.
    """

    name: str
    repository: CrudRepository[Any]
    local_key: str
    foreign_key: str
    many: bool = True


class CrudRepository(Generic[M]):
    """Persistence for one table, returning rows wrapped in ``model``.

    Models are built with ``model(row)`` where ``row`` is a dict; the default
    model is ``dict``. Attribute access on models works for mappings
    (``model[key]``) and plain objects (``getattr(model, key)``).

    An optional ``scope`` fragment is ANDed with every lookup, e.g.
    ``sql("{} IS NULL", Identifier("deleted_at"))``. Scope and ``where``
    fragments must be complete boolean expressions; they are wrapped in
    parentheses but not validated.

    Usage:
        users = CrudRepository(db, "users", model=User)
        user = await users.create({"id": 1, "name": "Ada"})
        user = await users.update(user, {"name": "Ada L."})
        active = await users.search(
            where=sql("{} = {}", Identifier("active"), True),
            order_by=sql("{}", Identifier("name")),
        )
        await users.delete(user)
    """

    def __init__(
        self,
        database: Database,
        table: str,
        primary_key: str = "id",
        model: Callable[[dict[str, Any]], M] = dict,  # type: ignore[assignment]
        scope: SqlFragment | None = None,
    ):
        self.database = database
        self.table = table
        self.primary_key = primary_key
        self.model = model
        self.scope = scope
        self.relationships: dict[str, Relationship] = {}

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def attribute(model: Any, key: str) -> Any:
        """Read ``key`` from a mapping or an object model."""
        if isinstance(model, Mapping):
            return model[key]
        return getattr(model, key)

    def _condition(self, where: SqlFragment | None) -> SqlFragment | None:
        """Combine scope and caller filter as ``(scope) AND (where)``."""
        conditions = [c for c in (self.scope, where) if c is not None]
        if not conditions:
            return None
        return sql_join([sql("({})", c) for c in conditions], sql(" AND "))

    def _pk_condition(self, key: Any) -> SqlFragment:
        return sql("{} = {}", Identifier(self.primary_key), key)

    def _exactly_one(self, rows: list[dict[str, Any]], key: Any) -> M:
        if not rows:
            raise NotFoundError(self.table, key, self.primary_key)
        if len(rows) > 1:
            raise TooManyResultsError(self.table, len(rows), key, self.primary_key)
        return self.model(rows[0])

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    async def get(self, key: Any) -> M:
        """Return the single row whose primary key equals ``key``.

        Raises:
            NotFoundError: No row matches.
            TooManyResultsError: More than one row matches.
        """
        condition = self._condition(self._pk_condition(key))
        rows = await self.database.query(
            sql("SELECT * FROM {} WHERE {}", Identifier(self.table), condition)
        )
        return self._exactly_one(rows, key)

    async def search(
        self, where: SqlFragment | None = None, order_by: SqlFragment | None = None
    ) -> list[M]:
        """Return all rows matching scope and ``where``, optionally ordered."""
        condition = self._condition(where)
        rows = await self.database.query(
            sql(
                "SELECT * FROM {}{}{}",
                Identifier(self.table),
                sql() if condition is None else sql(" WHERE {}", condition),
                sql() if order_by is None else sql(" ORDER BY {}", order_by),
            )
        )
        return [self.model(row) for row in rows]

    async def create(self, attributes: Mapping[str, Any]) -> M:
        """Insert a row and return it as stored (``RETURNING *``)."""
        if not attributes:
            raise ValueError(f"Cannot create a row in '{self.table}' without attributes")
        columns = sql_join([sql("{}", Identifier(k)) for k in attributes])
        values = sql_join([sql("{}", v) for v in attributes.values()])
        rows = await self.database.query(
            sql(
                "INSERT INTO {} ({}) VALUES ({}) RETURNING *",
                Identifier(self.table),
                columns,
                values,
            )
        )
        return self.model(rows[0])

    async def update(self, model: M, attributes: Mapping[str, Any]) -> M:
        """Update the row of ``model`` and return it as stored.

        Raises:
            NotFoundError: The row no longer exists (or is out of scope).
            TooManyResultsError: The primary key is not unique.
        """
        if not attributes:
            raise ValueError(f"Cannot update a row in '{self.table}' without attributes")
        key = self.attribute(model, self.primary_key)
        assignments = sql_join([sql("{} = {}", Identifier(k), v) for k, v in attributes.items()])
        rows = await self.database.query(
            sql(
                "UPDATE {} SET {} WHERE {} RETURNING *",
                Identifier(self.table),
                assignments,
                self._condition(self._pk_condition(key)),
            )
        )
        return self._exactly_one(rows, key)

    async def delete(self, model: M) -> None:
        """Delete the row of ``model``."""
        key = self.attribute(model, self.primary_key)
        await self.database.query(
            sql(
                "DELETE FROM {} WHERE {}",
                Identifier(self.table),
                self._condition(self._pk_condition(key)),
            )
        )

    # -------------------------------------------------------------------------
    # Relationships
    # -------------------------------------------------------------------------

    def relate(
        self,
        name: str,
        repository: CrudRepository[Any],
        local_key: str,
        foreign_key: str,
        many: bool = True,
    ) -> Relationship:
        """Register a named relationship to another repository."""
        relationship = Relationship(name, repository, local_key, foreign_key, many)
        self.relationships[name] = relationship
        return relationship

    def relationship(self, name: str) -> Relationship:
        """Get relationship by name.

        Raises:
            RelationshipNotFoundError: If not registered.
        """
        if name not in self.relationships:
            raise RelationshipNotFoundError(name, self.table)
        return self.relationships[name]

    async def load(self, models: Iterable[M], name: str) -> dict[Any, Any]:
        """Fetch related models for ``models`` with a single query.

        Returns:
            ``local_key`` value → list of related models (one-to-many) or the
            related model / None (many-to-one).

        Raises:
            RelationshipNotFoundError: If ``name`` is not registered.
        """
        rel = self.relationship(name)
        keys: list[Any] = []
        for model in models:
            value = self.attribute(model, rel.local_key)
            if value is not None and value not in keys:
                keys.append(value)

        related: dict[Any, list[Any]] = {k: [] for k in keys}
        if keys:
            where = sql(
                "{} IN ({})",
                Identifier(rel.foreign_key),
                sql_join([sql("{}", k) for k in keys]),
            )
            for item in await rel.repository.search(where=where):
                related.setdefault(self.attribute(item, rel.foreign_key), []).append(item)

        if rel.many:
            return related
        return {k: (items[0] if items else None) for k, items in related.items()}


__all__ = ["CrudRepository", "Relationship"]
