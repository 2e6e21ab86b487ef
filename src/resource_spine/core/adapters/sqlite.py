"""SQLite database driver."""

from __future__ import annotations

import sqlite3
from typing import Any

from resource_spine.core.errors import (
    ConnectionFailedError,
    SchemaSelectError,
    StatementError,
)
from resource_spine.core.protocols import ColumnMeta, StatementResult
from resource_spine.core.settings import DatabaseBackend

from .base import DatabaseDriver
from .types import DatabaseConfig

# SQLITE_CONSTRAINT_PRIMARYKEY, SQLITE_CONSTRAINT_UNIQUE
_DUPLICATE_CODES = frozenset({1555, 2067})


def _is_duplicate(exc: sqlite3.Error) -> bool:
    code = getattr(exc, "sqlite_errorcode", None)
    if code is not None:
        return code in _DUPLICATE_CODES
    return "UNIQUE constraint failed" in str(exc)


class SQLiteDriver(DatabaseDriver):
    """
    SQLite database driver.

    Uses the built-in sqlite3 module. Suitable for:
    - Development and testing
    - Single-process tools

    The connection runs in autocommit mode (``isolation_level=None``) so that
    the transaction controller's explicit ``BEGIN``/``COMMIT`` are the only
    transaction boundaries. SQLite reports no column types for result sets;
    all columns come back as ``ColumnKind.OTHER``.
    """

    def __init__(
        self,
        path: str = ":memory:",
        *,
        timeout: float = 5.0,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseBackend.SQLITE,
            path=path,
            options=kwargs,
        )
        super().__init__(config)
        self._timeout = timeout
        self._conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Connect to SQLite database."""
        path = self._config.path or ":memory:"
        uri = path.startswith("file:") or "?" in path

        try:
            self._conn = sqlite3.connect(
                path,
                timeout=self._timeout,
                check_same_thread=False,
                uri=uri,
                isolation_level=None,
            )
            # Enable foreign keys
            self._conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            raise ConnectionFailedError(
                "Failed to connect to database.",
                cause=e,
            ).with_context(database_error=str(e)) from e
        self._connected = True

    def select_schema(self, name: str) -> None:
        """SQLite schemas are attached databases; accept any attached name."""
        attached = {row[1] for row in self._conn.execute("PRAGMA database_list")}
        if name not in attached:
            raise SchemaSelectError("Failed to select database.").with_context(
                identifier=name,
                database_error=f"no attached database named {name!r}",
            )

    def execute(self, sql: str) -> StatementResult:
        try:
            cursor = self._conn.execute(sql)
            if cursor.description is None:
                return StatementResult(
                    rowcount=max(cursor.rowcount, 0),
                    lastrowid=cursor.lastrowid or None,
                )
            columns = [ColumnMeta(name=d[0]) for d in cursor.description]
            names = [c.name for c in columns]
            rows = [dict(zip(names, row, strict=False)) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise StatementError(
                str(e),
                code=getattr(e, "sqlite_errorcode", None),
                duplicate=_is_duplicate(e),
                cause=e,
            ) from e
        return StatementResult(rows=rows, columns=columns, rowcount=len(rows))

    def escape_string(self, value: str) -> str:
        return value.replace("'", "''")

    def close(self) -> None:
        """Close SQLite connection."""
        if self._conn:
            self._conn.close()
            self._conn = None
            self._connected = False


__all__ = [
    "SQLiteDriver",
]
