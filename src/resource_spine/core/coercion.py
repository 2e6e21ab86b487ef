"""
Type coercion for rows read from the store.

Drivers hand back what the wire gives them: ``tinyint(1)`` as ``0``/``1``,
``BIT(1)`` as bytes, ``DECIMAL`` as :class:`decimal.Decimal`, JSON as text.
A :class:`CoercionPlan` is built once per SELECT from the result column
metadata and then applied to every row.

Rules:
    - TINYINT or BIT column of length 1  → ``bool``
    - DECIMAL column                     → ``float``
    - JSON column, ``json_*`` name, or the ``converged`` column → parsed JSON
      (a resource with soft columns leaves ``converged`` to its codec)

``None`` values are never touched. Unparseable JSON becomes ``None`` and is
logged.

Tags:
    coercion, types, json, resource-spine
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from resource_spine.core.logging import get_logger
from resource_spine.core.protocols import ColumnKind, ColumnMeta

logger = get_logger(__name__)

CONVERGED_COLUMN = "converged"
JSON_PREFIX = "json_"


def is_json_column(name: str) -> bool:
    """Name convention for JSON-bearing columns."""
    return name.startswith(JSON_PREFIX) or name == CONVERGED_COLUMN


def to_bool(value: Any) -> bool:
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big") != 0
    return bool(int(value))


def to_float(value: Any) -> float:
    return float(value)


def parse_json(column: str, value: Any) -> Any:
    if not isinstance(value, (str, bytes, bytearray)):
        return value
    try:
        return json.loads(value)
    except ValueError as e:
        logger.warning("json_column_unparseable", column=column, error=str(e))
        return None


@dataclass
class CoercionPlan:
    """Column names grouped by the coercion they need."""

    boolean: list[str] = field(default_factory=list)
    floating: list[str] = field(default_factory=list)
    json: list[str] = field(default_factory=list)

    @classmethod
    def from_columns(
        cls,
        columns: Iterable[ColumnMeta],
        json_columns: Iterable[str] = (),
        skip: Iterable[str] = (),
    ) -> CoercionPlan:
        """Build the plan; ``json_columns`` adds declared JSON columns by name.

        Columns named in ``skip`` are left as the driver returned them.
        """
        declared_json = set(json_columns)
        skipped = set(skip)
        plan = cls()
        for column in columns:
            if column.name in skipped:
                continue
            if column.kind in (ColumnKind.TINYINT, ColumnKind.BIT) and column.length == 1:
                plan.boolean.append(column.name)
            elif column.kind is ColumnKind.DECIMAL:
                plan.floating.append(column.name)
            elif (
                column.kind is ColumnKind.JSON
                or is_json_column(column.name)
                or column.name in declared_json
            ):
                plan.json.append(column.name)
        return plan

    @property
    def empty(self) -> bool:
        return not (self.boolean or self.floating or self.json)

    def apply(self, row: dict[str, Any]) -> dict[str, Any]:
        """Coerce ``row`` in place and return it."""
        for name in self.boolean:
            if row.get(name) is not None:
                row[name] = to_bool(row[name])
        for name in self.floating:
            if row.get(name) is not None:
                row[name] = to_float(row[name])
        for name in self.json:
            if row.get(name) is not None:
                row[name] = parse_json(name, row[name])
        return row


__all__ = [
    "CONVERGED_COLUMN",
    "JSON_PREFIX",
    "CoercionPlan",
    "is_json_column",
    "parse_json",
]
