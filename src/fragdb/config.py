# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Database configuration dataclass and environment loader.

Configuration via environment variables:
    FRAGDB_URL: Connection string (SQLite path, postgresql://..., mysql://...)
    FRAGDB_MIN_CONNECTIONS: Minimum pool size (default: 1)
    FRAGDB_MAX_CONNECTIONS: Maximum pool size (default: 10)
    FRAGDB_CONNECT_TIMEOUT: Seconds to wait for a connection (default: 10)

Usage:
    # From environment (Docker/production):
    db = Database.from_config(config_from_env())

    # Explicit configuration:
    config = DatabaseConfig(url="postgresql://app:secret@db/app", max_connections=20)
    db = Database.from_config(config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any


@dataclass
class DatabaseConfig:
    """Connection settings forwarded to the backend driver.

    Values are not interpreted beyond choosing the adapter from ``url``.

    Attributes:
        url: Connection string (see ``fragdb.adapters.get_adapter``).
        min_connections: Connections the pool keeps open.
        max_connections: Upper bound of concurrent connections.
        connect_timeout: Seconds to wait when opening or acquiring a connection.
    """

    url: str = ":memory:"
    min_connections: int = 1
    max_connections: int = 10
    connect_timeout: float = 10.0

    def pool_options(self) -> dict[str, Any]:
        """Keyword arguments for pooled adapters."""
        return {
            "min_size": self.min_connections,
            "max_size": self.max_connections,
            "connect_timeout": self.connect_timeout,
        }


def config_from_env() -> DatabaseConfig:
    """Build DatabaseConfig from FRAGDB_* environment variables."""
    return DatabaseConfig(
        url=os.environ.get("FRAGDB_URL", ":memory:"),
        min_connections=int(os.environ.get("FRAGDB_MIN_CONNECTIONS", "1")),
        max_connections=int(os.environ.get("FRAGDB_MAX_CONNECTIONS", "10")),
        connect_timeout=float(os.environ.get("FRAGDB_CONNECT_TIMEOUT", "10")),
    )


__all__ = ["DatabaseConfig", "config_from_env"]
