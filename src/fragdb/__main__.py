# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for fragdb (python -m fragdb).

Usage:
    python -m fragdb --help
    python -m fragdb migrate myapp.migrations:MIGRATIONS
    python -m fragdb status
"""

from .cli import main

if __name__ == "__main__":
    main()
