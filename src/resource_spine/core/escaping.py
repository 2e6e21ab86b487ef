"""
Value escaping and identifier validation.

Every value and every table/column name that reaches SQL text passes
through :class:`Escaper`. Values are rendered as SQL literals with the
driver's own string escaping; identifiers are validated against the ASCII
word-character class and wrapped in the dialect's delimiter quotes so
reserved words (``order``, ``group``) work as column names.

Examples:
    >>> escaper.escape(None)
    'null'
    >>> escaper.escape(True)
    '1'
    >>> escaper.escape("42")
    '42'
    >>> escaper.escape("O'Brien")          # MySQL driver
    "'O\\\\'Brien'"
    >>> escaper.escape_identifier("order")  # MySQL dialect
    '`order`'
    >>> escaper.escape_identifier("a;b")
    Traceback (most recent call last):
    InvalidIdentifierError: Invalid identifier.

Guardrails:
    ❌ DON'T: Interpolate caller values into SQL with f-strings
    ✅ DO: ``escaper.escape(value)`` for values, ``escape_identifier`` for names

Tags:
    sql, escaping, injection, identifiers, resource-spine
"""

from __future__ import annotations

import json
import re
from typing import Any

from resource_spine.core.errors import InvalidIdentifierError
from resource_spine.core.protocols import Driver

_IDENTIFIER = re.compile(r"\w+", re.ASCII)
_DIGITS = re.compile(r"[0-9]+")


def is_valid_identifier(name: Any) -> bool:
    """True when ``name`` is made only of ``[A-Za-z0-9_]`` (full match)."""
    return isinstance(name, str) and _IDENTIFIER.fullmatch(name) is not None


def to_json(value: Any) -> str:
    """Serialize a nested map/list the way it is stored in JSON columns."""
    return json.dumps(value, separators=(",", ":"), default=str)


class Escaper:
    """Renders values and identifiers as SQL text for one driver."""

    def __init__(self, driver: Driver):
        self._driver = driver

    def quote(self, text: str) -> str:
        """Single-quote ``text`` after driver-level escaping."""
        return "'" + self._driver.escape_string(text) + "'"

    def escape(self, value: Any, basic: bool = False) -> str:
        """
        Render ``value`` as a SQL literal.

        With ``basic=True`` only the driver's string escaping is applied to
        ``str(value)``; no quotes are added and ``None`` is not special-cased.
        """
        if basic:
            return self._driver.escape_string(str(value))

        if value is None:
            return "null"
        if value is True:
            return "1"
        if value is False:
            return "0"
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str) and _DIGITS.fullmatch(value):
            return value
        if isinstance(value, (dict, list)):
            return self.quote(to_json(value))
        return self.quote(str(value))

    def escape_identifier(self, name: str) -> str:
        """Validate ``name`` and wrap it in the dialect's identifier quotes."""
        if not is_valid_identifier(name):
            raise InvalidIdentifierError(
                "Invalid identifier.",
                field="identifier",
                value=name,
            ).with_context(identifier=str(name))
        return self._driver.dialect.quote_identifier(name)


__all__ = [
    "Escaper",
    "is_valid_identifier",
    "to_json",
]
