"""Database driver base class.

Manifesto:
    Every driver shares the same lifecycle (connect, select schema,
    execute, close) and carries its dialect.  The abstract base class
    defines the contract so the connection never depends on a specific
    database library.

Features:
    - Abstract ``connect()``, ``select_schema()``, ``execute()``,
      ``escape_string()``, ``close()``
    - Property-based dialect and connection-state introspection
    - Config-driven construction from ``DatabaseConfig``

Tags:
    resource-spine, database, abstract-base, driver

Doc-Types:
    api-reference
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from resource_spine.core.dialect import Dialect, get_dialect
from resource_spine.core.protocols import StatementResult
from resource_spine.core.settings import DatabaseBackend

from .types import DatabaseConfig


class DatabaseDriver(ABC):
    """
    Abstract base class for database drivers.

    Subclasses translate their library's exceptions into
    ``ConnectionFailedError``, ``SchemaSelectError`` and ``StatementError``.
    """

    def __init__(self, config: DatabaseConfig):
        self._config = config
        self._connected = False
        self._dialect: Dialect = get_dialect(config.db_type.value)

    @property
    def dialect(self) -> Dialect:
        """SQL dialect for this driver's database type."""
        return self._dialect

    @property
    def db_type(self) -> DatabaseBackend:
        return self._config.db_type

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    def connect(self) -> None:
        """Open the physical connection."""
        ...

    @abstractmethod
    def select_schema(self, name: str) -> None:
        """Make ``name`` the default schema for unqualified table names."""
        ...

    @abstractmethod
    def execute(self, sql: str) -> StatementResult:
        """Run one complete SQL statement."""
        ...

    @abstractmethod
    def escape_string(self, value: str) -> str:
        """Escape ``value`` for use inside a single-quoted literal."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the physical connection."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._config.to_connection_string()!r})"


__all__ = [
    "DatabaseDriver",
]
