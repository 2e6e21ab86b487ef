"""
SQL statement builder for attribute maps.

Turns ``{column: value}`` maps into WHERE predicates, SET assignments and
complete SELECT / INSERT / UPDATE / DELETE / COUNT statements. All values
and identifiers go through :class:`~resource_spine.core.escaping.Escaper`.

Predicate forms::

    None                                   → `col` IS NULL
    [1, 2, 3]                              → `col` IN (1, 2, 3)
    []                                     → 1 = 0
    {"operator": ">=", "value": 5}         → `col` >= 5
    {"operator": "between", "value": [1, 9]} → `col` BETWEEN 1 AND 9
    anything else                          → `col` = 'value'

Tags:
    sql, query-builder, predicates, resource-spine
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from resource_spine.core.dialect import Dialect
from resource_spine.core.errors import InvalidOperatorError
from resource_spine.core.escaping import Escaper

COMPARISON_OPERATORS = frozenset({">", "<", "=", ">=", "<="})
BETWEEN = "between"


class QueryBuilder:
    """Builds complete statements for one escaper/dialect pair."""

    def __init__(self, escaper: Escaper, dialect: Dialect):
        self._escaper = escaper
        self._dialect = dialect

    # -- Fragments ---------------------------------------------------------

    def predicate(self, column: str, value: Any) -> str:
        col = self._escaper.escape_identifier(column)

        if value is None:
            return f"{col} IS NULL"

        if isinstance(value, (list, tuple)):
            if not value:
                return "1 = 0"
            items = ", ".join(self._escaper.escape(v) for v in value)
            return f"{col} IN ({items})"

        if isinstance(value, Mapping) and "operator" in value:
            return self._operator_predicate(col, column, value)

        return f"{col} = {self._escaper.escape(value)}"

    def _operator_predicate(self, col: str, column: str, spec: Mapping[str, Any]) -> str:
        operator = spec["operator"]
        operand = spec.get("value")

        if not isinstance(operator, str):
            raise InvalidOperatorError("Invalid operator.", field=column, value=operator)

        if operator == BETWEEN:
            if not isinstance(operand, (list, tuple)) or len(operand) != 2:
                raise InvalidOperatorError(
                    "Between requires a two-element value.",
                    field=column,
                    value=operand,
                )
            low, high = (self._escaper.escape(v) for v in operand)
            return f"{col} BETWEEN {low} AND {high}"

        if operator in COMPARISON_OPERATORS:
            return f"{col} {operator} {self._escaper.escape(operand)}"

        raise InvalidOperatorError(
            "Invalid operator.",
            field=column,
            value=operator,
        )

    def assignment(self, column: str, value: Any) -> str:
        return f"{self._escaper.escape_identifier(column)} = {self._escaper.escape(value)}"

    def where(self, attributes: Mapping[str, Any] | None) -> str:
        """``' WHERE ...'`` for the non-empty-list attributes, or ``''``."""
        predicates = [
            self.predicate(column, value)
            for column, value in (attributes or {}).items()
            if not (isinstance(value, (list, tuple)) and len(value) == 0)
        ]
        if not predicates:
            return ""
        return " WHERE " + " AND ".join(predicates)

    # -- Statements --------------------------------------------------------

    def select(
        self,
        table: str,
        attributes: Mapping[str, Any] | None = None,
        columns: Iterable[str] | None = None,
    ) -> str:
        columns = list(columns or [])
        projection = (
            ", ".join(self._escaper.escape_identifier(c) for c in columns) if columns else "*"
        )
        return (
            f"SELECT {projection} FROM {self._escaper.escape_identifier(table)}"
            f"{self.where(attributes)}"
        )

    def count(self, table: str, attributes: Mapping[str, Any] | None = None) -> str:
        return (
            f"SELECT COUNT(*) AS {self._escaper.escape_identifier('count')} "
            f"FROM {self._escaper.escape_identifier(table)}{self.where(attributes)}"
        )

    def insert(self, table: str, attributes: Mapping[str, Any]) -> str:
        table_sql = self._escaper.escape_identifier(table)
        if not attributes:
            return self._dialect.insert_defaults(table_sql)
        columns = ", ".join(self._escaper.escape_identifier(c) for c in attributes)
        values = ", ".join(self._escaper.escape(v) for v in attributes.values())
        return f"INSERT INTO {table_sql} ({columns}) VALUES ({values})"

    def update(self, table: str, key: str, id_: Any, attributes: Mapping[str, Any]) -> str:
        assignments = ", ".join(self.assignment(c, v) for c, v in attributes.items())
        return (
            f"UPDATE {self._escaper.escape_identifier(table)} SET {assignments}"
            f" WHERE {self.predicate(key, id_)}"
        )

    def delete(self, table: str, key: str, id_: Any) -> str:
        return (
            f"DELETE FROM {self._escaper.escape_identifier(table)}"
            f" WHERE {self.predicate(key, id_)}"
        )


__all__ = [
    "COMPARISON_OPERATORS",
    "QueryBuilder",
]
