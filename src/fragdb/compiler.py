# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Fragment compilation and per-backend placeholder/identifier strategies."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any

from .errors import CompileError
from .fragment import Identifier, Param, Part, SqlFragment

PlaceholderStrategy = Callable[[int], str]
IdentifierStrategy = Callable[[str], str]
LiteralStrategy = Callable[[str], str]


@dataclass(frozen=True)
class CompiledStatement:
    """SQL text with backend placeholders and the values bound to them.

    ``values[i]`` is bound to the i-th placeholder appearing in ``text``.
    """

    text: str
    values: tuple[Any, ...] = ()


# -------------------------------------------------------------------------
# Placeholder strategies (called with the number of values collected so far)
# -------------------------------------------------------------------------


def numbered_placeholder(index: int) -> str:
    """``$1, $2, ...`` (PostgreSQL server-side parameters)."""
    return f"${index + 1}"


def qmark_placeholder(index: int) -> str:
    """``?`` (SQLite)."""
    return "?"


def format_placeholder(index: int) -> str:
    """``%s`` (MySQL drivers using pyformat)."""
    return "%s"


# -------------------------------------------------------------------------
# Identifier strategies
# -------------------------------------------------------------------------


def _check_identifier(name: str) -> None:
    if "\x00" in name:
        raise CompileError(f"Identifier {name!r} contains a NUL character")


def double_quote_identifier(name: str) -> str:
    """Standard SQL quoting: ``"name"`` with embedded quotes doubled."""
    _check_identifier(name)
    return '"' + name.replace('"', '""') + '"'


def backtick_identifier(name: str) -> str:
    """MySQL quoting: ``name`` wrapped in backticks, embedded backticks doubled."""
    _check_identifier(name)
    return "`" + name.replace("`", "``") + "`"


# -------------------------------------------------------------------------
# Literal strategies
# -------------------------------------------------------------------------


def percent_literal(text: str) -> str:
    """Double every ``%`` (drivers that apply ``text % args`` to the statement)."""
    return text.replace("%", "%%")


# -------------------------------------------------------------------------
# Compilation
# -------------------------------------------------------------------------


def compile_fragment(
    fragment: SqlFragment,
    placeholder: PlaceholderStrategy,
    identifier: IdentifierStrategy,
    literal: LiteralStrategy | None = None,
) -> CompiledStatement:
    """Flatten a fragment into a single statement.

    Parts are visited depth-first, left to right. Nested fragments contribute
    their parts at the point where they are nested. Each parameter is rendered
    with ``placeholder(n)``, where ``n`` is the number of values collected
    before it, and its value is appended to the statement values.

    When given, ``literal`` rewrites literal text and quoted identifiers
    (for drivers that give meaning to characters in the statement text).

    Raises:
        CompileError: If a strategy returns something other than ``str``.
    """
    text: list[str] = []
    values: list[Any] = []

    stack: list[Iterator[Part]] = [iter(fragment.parts)]
    while stack:
        part = next(stack[-1], None)
        if part is None:
            stack.pop()
            continue

        if isinstance(part, SqlFragment):
            stack.append(iter(part.parts))
        elif isinstance(part, Param):
            text.append(_checked(placeholder(len(values)), "placeholder"))
            values.append(part.value)
        elif isinstance(part, Identifier):
            quoted = _checked(identifier(part.name), "identifier")
            text.append(quoted if literal is None else literal(quoted))
        elif isinstance(part, str):
            text.append(part if literal is None else literal(part))
        else:
            raise CompileError(f"Unsupported fragment part {part!r}")

    return CompiledStatement("".join(text), tuple(values))


def _checked(rendered: Any, kind: str) -> str:
    if not isinstance(rendered, str):
        raise CompileError(f"The {kind} strategy returned {rendered!r} instead of a string")
    return rendered


__all__ = [
    "CompiledStatement",
    "IdentifierStrategy",
    "LiteralStrategy",
    "PlaceholderStrategy",
    "backtick_identifier",
    "compile_fragment",
    "double_quote_identifier",
    "format_placeholder",
    "numbered_placeholder",
    "percent_literal",
    "qmark_placeholder",
]
