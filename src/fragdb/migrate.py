# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tracked, transactional schema migrations built on Database.sequence.

Each migration is a named SqlFragment. Applied names are stored in a
tracking table (``"Migrations"`` by default). Pending migrations run in
mapping order, each inside its own sequence::

    BEGIN; <migration>; INSERT INTO "Migrations" ("name") VALUES (<name>); COMMIT;

A failing migration is rolled back together with its tracking row and the
error is re-raised, so the remaining migrations of the batch are not
attempted and a later run retries from the failed one.

Example:
    migrations = {
        "001 create users": sql('CREATE TABLE "users" ("id" INTEGER PRIMARY KEY, "name" TEXT)'),
        "002 add email": sql('ALTER TABLE "users" ADD COLUMN "email" TEXT'),
    }
    applied = await db.migrate(migrations)
"""

from __future__ import annotations

import logging
from functools import partial
from typing import TYPE_CHECKING

from .fragment import Identifier, sql

if TYPE_CHECKING:
    from collections.abc import Mapping

    from .database import Database
    from .fragment import SqlFragment

logger = logging.getLogger(__name__)


async def ensure_migrations_table(database: Database, table: str = "Migrations") -> None:
    """Create the tracking table if it does not exist."""
    await database.query(
        sql(
            "CREATE TABLE IF NOT EXISTS {} ({} VARCHAR(768) PRIMARY KEY NOT NULL)",
            Identifier(table),
            Identifier("name"),
        )
    )


async def applied_migrations(database: Database, table: str = "Migrations") -> list[str]:
    """Return the names recorded in the tracking table, creating it if needed."""
    await ensure_migrations_table(database, table)
    rows = await database.query(
        sql("SELECT {} FROM {} ORDER BY {}", Identifier("name"), Identifier(table), Identifier("name"))
    )
    return [row["name"] for row in rows]


async def migrate(
    database: Database,
    migrations: Mapping[str, SqlFragment],
    table: str = "Migrations",
) -> list[str]:
    """Apply the migrations not yet recorded in the tracking table.

    Args:
        database: Pooled or dedicated database.
        migrations: Migration name → statement, applied in iteration order.
        table: Tracking table name.

    Returns:
        Names applied by this call, in order.

    Raises:
        QueryError: A migration failed; it was rolled back and not recorded.
    """
    done = set(await applied_migrations(database, table))
    applied: list[str] = []

    for name, statement in migrations.items():
        if name in done:
            logger.debug("Migration %r already applied, skipping", name)
            continue
        await database.sequence(partial(_apply, name=name, statement=statement, table=table))
        logger.info("Applied migration %r", name)
        applied.append(name)

    return applied


async def _apply(seq_db: Database, name: str, statement: SqlFragment, table: str) -> None:
    await seq_db.query(sql("BEGIN"))
    try:
        await seq_db.query(statement)
        await seq_db.query(
            sql("INSERT INTO {} ({}) VALUES ({})", Identifier(table), Identifier("name"), name)
        )
    except Exception:
        logger.error("Migration %r failed, rolling back", name)
        await seq_db.query(sql("ROLLBACK"))
        raise
    await seq_db.query(sql("COMMIT"))


__all__ = ["applied_migrations", "ensure_migrations_table", "migrate"]
