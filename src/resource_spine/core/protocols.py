"""
Canonical protocol definitions for resource-spine.

The connection never talks to a database library directly. It composes a
``Driver``: a narrow interface (connect, select schema, execute, escape,
close) that a MySQL, SQLite or in-test fake implementation can satisfy.

Manifesto:
    Protocols define contracts without inheritance. They enable:
    - **Decoupling:** The data layer depends on shape, not on PyMySQL
    - **Testability:** A scripted fake driver satisfies the protocol
    - **Portability:** Same CRUD code on MySQL and SQLite

Architecture:
    ::

        Driver Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ connect()              → Open the physical connection  │
        │ select_schema(name)    → Switch the default schema     │
        │ execute(sql)           → StatementResult               │
        │ escape_string(value)   → Store-level escaped text      │
        │ close()                → Release the connection        │
        │ dialect                → SQL fragments for the store   │
        └────────────────────────────────────────────────────────┘

        StatementResult:
        ┌────────────────────────────────────────────────────────┐
        │ rows       list[dict]        (empty for writes)        │
        │ columns    list[ColumnMeta]  (name, kind, length)      │
        │ rowcount   affected rows                               │
        │ lastrowid  store-assigned id of the last insert        │
        └────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Import pymysql or sqlite3 outside ``core/adapters``
    ✅ DO: Go through the Driver protocol

Tags:
    protocol, driver, database, resource-spine, contracts
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from resource_spine.core.dialect import Dialect


class ColumnKind(str, Enum):
    """Driver-independent classification of a result column."""

    TINYINT = "tinyint"
    BIT = "bit"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    JSON = "json"
    TEXT = "text"
    OTHER = "other"


@dataclass(frozen=True)
class ColumnMeta:
    """Result column metadata consumed by type coercion."""

    name: str
    kind: ColumnKind = ColumnKind.OTHER
    length: int | None = None


@dataclass
class StatementResult:
    """Outcome of one executed statement."""

    rows: list[dict[str, Any]] = field(default_factory=list)
    columns: list[ColumnMeta] = field(default_factory=list)
    rowcount: int = 0
    lastrowid: int | None = None

    def first(self) -> dict[str, Any] | None:
        return self.rows[0] if self.rows else None


@runtime_checkable
class Driver(Protocol):
    """
    Minimal synchronous driver interface.

    Implementations raise :class:`~resource_spine.core.errors.ConnectionFailedError`
    from ``connect()``, :class:`~resource_spine.core.errors.SchemaSelectError`
    from ``select_schema()`` and :class:`~resource_spine.core.errors.StatementError`
    from ``execute()``.
    """

    @property
    def dialect(self) -> Dialect: ...

    def connect(self) -> None: ...

    def select_schema(self, name: str) -> None: ...

    def execute(self, sql: str) -> StatementResult: ...

    def escape_string(self, value: str) -> str: ...

    def close(self) -> None: ...


__all__ = [
    "ColumnKind",
    "ColumnMeta",
    "StatementResult",
    "Driver",
]
