# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Composable SQL fragments with bound parameters and quoted identifiers.

A fragment is an immutable tuple of parts. Each part is one of:

- ``str``: literal SQL text, copied verbatim at compile time.
- ``Param``: a value sent to the driver as a bound parameter.
- ``Identifier``: a table/column name, quoted by the backend.
- ``SqlFragment``: a nested fragment, flattened in place at compile time.

Fragments carry no backend state, so the same fragment can be compiled for
PostgreSQL, MySQL and SQLite.

Example:
    Building a statement from smaller pieces::

        from fragdb import Identifier, sql, sql_join

        columns = sql_join([sql("{}", Identifier(c)) for c in ("id", "name")])
        where = sql("{} = {}", Identifier("status"), "active")
        query = sql("SELECT {} FROM {} WHERE {}", columns, Identifier("users"), where)

    Interpolated values that are not ``SqlFragment``, ``Param`` or
    ``Identifier`` always become ``Param`` (strings included), so user input
    can never end up as raw SQL text.

Note:
    Template placeholders are ``{}``. Literal braces are written ``{{`` and
    ``}}``.
"""

from __future__ import annotations

import string
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .compiler import CompiledStatement

_formatter = string.Formatter()


@dataclass(frozen=True)
class Param:
    """A value bound as a driver parameter, never rendered into SQL text."""

    value: Any


@dataclass(frozen=True)
class Identifier:
    """A table or column name rendered through the backend quoting rules."""

    name: str

    def __post_init__(self) -> None:
        if not isinstance(self.name, str):
            raise TypeError(f"Identifier name must be str, got {type(self.name).__name__}")


Part = Union[str, Param, Identifier, "SqlFragment"]


def _check_part(part: Any) -> Part:
    if isinstance(part, (str, Param, Identifier, SqlFragment)):
        return part
    raise TypeError(
        f"Invalid fragment part {part!r}: expected str, Param, Identifier or SqlFragment"
    )


def _wrap(value: Any) -> Param | Identifier | SqlFragment:
    """Keep tagged values as they are, bind everything else as a parameter."""
    if isinstance(value, (SqlFragment, Param, Identifier)):
        return value
    return Param(value)


@dataclass(frozen=True)
class SqlFragment:
    """Immutable, recursively composable SQL statement.

    Attributes:
        parts: Literal text, parameters, identifiers and nested fragments,
            in the order they are rendered.
    """

    parts: tuple[Part, ...] = ()

    def __post_init__(self) -> None:
        parts = tuple(_check_part(p) for p in self.parts)
        object.__setattr__(self, "parts", parts)

    @classmethod
    def from_template(cls, strings: Sequence[str], values: Sequence[Any]) -> SqlFragment:
        """Interleave literal strings with interpolated values.

        ``strings`` must hold exactly one more item than ``values``. Values
        already tagged as fragment, parameter or identifier are kept; any other
        value is wrapped as ``Param``.
        """
        if len(strings) != len(values) + 1:
            raise ValueError(
                f"Template needs {len(values) + 1} literal strings for "
                f"{len(values)} values, got {len(strings)}"
            )
        parts: list[Part] = [strings[0]]
        for value, text in zip(values, strings[1:]):
            parts.append(_wrap(value))
            parts.append(text)
        return cls(tuple(parts))

    @classmethod
    def join(
        cls, fragments: Iterable[SqlFragment], delimiter: SqlFragment | None = None
    ) -> SqlFragment:
        """Join fragments with a delimiter fragment (default ``", "``).

        The delimiter is a fragment rather than a string so that nothing
        unescaped can be injected through it.
        """
        if delimiter is None:
            delimiter = SqlFragment((", ",))
        elif not isinstance(delimiter, SqlFragment):
            raise TypeError("join() delimiter must be an SqlFragment, e.g. sql(' AND ')")

        parts: list[Part] = []
        for i, fragment in enumerate(fragments):
            if i > 0:
                parts.append(delimiter)
            parts.append(fragment)
        return cls(tuple(parts))

    def compile(
        self,
        placeholder: Callable[[int], str],
        identifier: Callable[[str], str],
        literal: Callable[[str], str] | None = None,
    ) -> CompiledStatement:
        """Flatten into SQL text plus ordered values. See ``compile_fragment``."""
        from .compiler import compile_fragment

        return compile_fragment(self, placeholder, identifier, literal)

    def __add__(self, other: Any) -> SqlFragment:
        if isinstance(other, (str, Param, Identifier, SqlFragment)):
            return SqlFragment((*self.parts, other))
        return NotImplemented

    def __radd__(self, other: Any) -> SqlFragment:
        if isinstance(other, str):
            return SqlFragment((other, *self.parts))
        return NotImplemented


def sql(template: str = "", *values: Any) -> SqlFragment:
    """Build a fragment from a ``{}`` template and interpolated values.

    Args:
        template: Literal SQL with one ``{}`` per value.
        *values: Interpolated values. ``SqlFragment``, ``Param`` and
            ``Identifier`` are kept as-is, anything else is bound as ``Param``.

    Returns:
        A new SqlFragment.

    Raises:
        ValueError: If the number of ``{}`` does not match the values, or a
            placeholder uses a field name, conversion or format spec.
    """
    strings: list[str] = []
    pending = ""
    slots = 0
    for literal, field, spec, conversion in _formatter.parse(template):
        pending += literal
        if field is None:
            continue
        if field or spec or conversion:
            raise ValueError(
                f"Only bare '{{}}' placeholders are supported, got '{{{field}}}' in {template!r}"
            )
        strings.append(pending)
        pending = ""
        slots += 1
    strings.append(pending)

    if slots != len(values):
        raise ValueError(f"Template has {slots} placeholders but {len(values)} values were given")
    return SqlFragment.from_template(strings, values)


def sql_join(
    fragments: Iterable[SqlFragment], delimiter: SqlFragment | None = None
) -> SqlFragment:
    """Shortcut for ``SqlFragment.join``."""
    return SqlFragment.join(fragments, delimiter)


__all__ = ["Identifier", "Param", "Part", "SqlFragment", "sql", "sql_join"]
