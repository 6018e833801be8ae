# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Sphinx configuration for the fragdb API page (docs/index.md)."""

import os
import sys

sys.path.insert(0, os.path.abspath("../src"))

project = "fragdb"
author = "Softwell S.r.l."
release = "0.1.0"

# index.md is MyST markdown holding automodule directives
extensions = [
    "myst_parser",
    "sphinx.ext.autodoc",
    "sphinx.ext.napoleon",
]
autodoc_default_options = {"members": True, "member-order": "bysource"}

html_theme = "furo"
master_doc = "index"
exclude_patterns = ["_build"]
