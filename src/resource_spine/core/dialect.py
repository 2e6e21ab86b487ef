"""SQL dialect abstraction for the data layer.

Every backend-specific SQL fragment the data layer emits lives here:
identifier quoting, transaction control, savepoints, the default-values
insert, advisory-lock statements and the session time-zone statement.
Drivers carry their dialect; the connection, query builder, transaction
controller and lock manager ask it for fragments instead of hard-coding
MySQL syntax.

Manifesto:
    CRUD code must be portable between MySQL (production) and SQLite
    (development and tests). Without a dialect layer the backtick quoting
    and ``GET_LOCK`` calls would leak into every module.

    - **One interface:** Dialect protocol for all backend-specific SQL
    - **Zero coupling:** Dialects never import database drivers
    - **Honest gaps:** Features a backend lacks raise UnsupportedFeatureError

Architecture::

    ┌──────────────────────┐        ┌──────────────────────────────┐
    │ MySQLDialect         │        │ SQLiteDialect                │
    │ `name`               │        │ "name"                       │
    │ START TRANSACTION    │        │ BEGIN                        │
    │ INSERT ... () ()     │        │ INSERT ... DEFAULT VALUES    │
    │ GET_LOCK/RELEASE_LOCK│        │ (no advisory locks)          │
    │ SET time_zone        │        │ (no session time zone)       │
    └──────────────────────┘        └──────────────────────────────┘

Examples:
    >>> from resource_spine.core.dialect import get_dialect
    >>> d = get_dialect("mysql")
    >>> d.quote_identifier("order")
    '`order`'

Guardrails:
    ❌ DON'T: Pass unvalidated names to ``quote_identifier``
    ✅ DO: Go through ``Escaper.escape_identifier``, which validates first

Tags:
    dialect, sql, abstraction, portability, database, resource-spine
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from resource_spine.core.errors import UnsupportedFeatureError


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract.

    Arguments named ``*_sql`` are already escaped SQL fragments; dialects
    only arrange them.
    """

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'mysql'``)."""
        ...

    @property
    def supports_advisory_locks(self) -> bool: ...

    def quote_identifier(self, name: str) -> str:
        """Wrap an already validated identifier in delimiter quotes."""
        ...

    # -- Transaction control -----------------------------------------------

    def begin(self) -> str: ...

    def commit(self) -> str: ...

    def rollback(self) -> str: ...

    def savepoint(self, name: str) -> str: ...

    def rollback_to_savepoint(self, name: str) -> str: ...

    def release_savepoint(self, name: str) -> str: ...

    # -- DML helpers -------------------------------------------------------

    def insert_defaults(self, table_sql: str) -> str:
        """``INSERT`` of a row made only of column defaults."""
        ...

    # -- Session helpers ---------------------------------------------------

    def get_lock(self, name_sql: str, timeout_sql: str) -> str:
        """Statement returning a single ``lock`` column (1 granted, 0 timed out)."""
        ...

    def release_lock(self, name_sql: str) -> str:
        """Statement returning a single ``lock`` column (1, 0 not owned, NULL unknown)."""
        ...

    def set_time_zone(self, offset_sql: str) -> str: ...


class MySQLDialect:
    """MySQL / MariaDB dialect with backtick identifiers, ``GET_LOCK`` locks."""

    @property
    def name(self) -> str:
        return "mysql"

    @property
    def supports_advisory_locks(self) -> bool:
        return True

    def quote_identifier(self, name: str) -> str:
        return f"`{name}`"

    def begin(self) -> str:
        return "START TRANSACTION"

    def commit(self) -> str:
        return "COMMIT"

    def rollback(self) -> str:
        return "ROLLBACK"

    def savepoint(self, name: str) -> str:
        return f"SAVEPOINT {self.quote_identifier(name)}"

    def rollback_to_savepoint(self, name: str) -> str:
        return f"ROLLBACK TO SAVEPOINT {self.quote_identifier(name)}"

    def release_savepoint(self, name: str) -> str:
        return f"RELEASE SAVEPOINT {self.quote_identifier(name)}"

    def insert_defaults(self, table_sql: str) -> str:
        return f"INSERT INTO {table_sql} () VALUES ()"

    def get_lock(self, name_sql: str, timeout_sql: str) -> str:
        return f"SELECT GET_LOCK({name_sql}, {timeout_sql}) AS `lock`"

    def release_lock(self, name_sql: str) -> str:
        return f"SELECT RELEASE_LOCK({name_sql}) AS `lock`"

    def set_time_zone(self, offset_sql: str) -> str:
        return f"SET time_zone = {offset_sql}"


class SQLiteDialect:
    """SQLite dialect with double-quoted identifiers, no advisory locks."""

    @property
    def name(self) -> str:
        return "sqlite"

    @property
    def supports_advisory_locks(self) -> bool:
        return False

    def quote_identifier(self, name: str) -> str:
        return f'"{name}"'

    def begin(self) -> str:
        return "BEGIN"

    def commit(self) -> str:
        return "COMMIT"

    def rollback(self) -> str:
        return "ROLLBACK"

    def savepoint(self, name: str) -> str:
        return f"SAVEPOINT {self.quote_identifier(name)}"

    def rollback_to_savepoint(self, name: str) -> str:
        return f"ROLLBACK TO SAVEPOINT {self.quote_identifier(name)}"

    def release_savepoint(self, name: str) -> str:
        return f"RELEASE SAVEPOINT {self.quote_identifier(name)}"

    def insert_defaults(self, table_sql: str) -> str:
        return f"INSERT INTO {table_sql} DEFAULT VALUES"

    def get_lock(self, name_sql: str, timeout_sql: str) -> str:
        raise UnsupportedFeatureError("SQLite has no advisory locks")

    def release_lock(self, name_sql: str) -> str:
        raise UnsupportedFeatureError("SQLite has no advisory locks")

    def set_time_zone(self, offset_sql: str) -> str:
        raise UnsupportedFeatureError("SQLite has no session time zone")


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
    "sqlite": SQLiteDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower() if isinstance(db_type, str) else db_type.value
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'mariadb'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (third-party drivers, test doubles)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
]
