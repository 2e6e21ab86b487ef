"""MySQL database driver.

Uses ``pymysql`` from the ``PyMySQL`` package. Statements arrive fully
escaped, so the cursor is always called without parameters and no
``%``-formatting takes place.

Column metadata keeps the type code and declared length from
``cursor.description``; type coercion needs both to tell ``tinyint(1)``
booleans from ordinary integers.

The session runs with ``autocommit=True``: transactions are opened
explicitly with ``START TRANSACTION`` by the transaction controller.
"""

from __future__ import annotations

from typing import Any

import pymysql
from pymysql.constants import ER, FIELD_TYPE
from pymysql.converters import escape_string as _escape_string

from resource_spine.core.errors import (
    ConnectionFailedError,
    SchemaSelectError,
    StatementError,
)
from resource_spine.core.logging import get_logger
from resource_spine.core.protocols import ColumnKind, ColumnMeta, StatementResult
from resource_spine.core.settings import DatabaseBackend

from .base import DatabaseDriver
from .types import DatabaseConfig

logger = get_logger(__name__)

_KIND_BY_TYPE_CODE: dict[int, ColumnKind] = {
    FIELD_TYPE.TINY: ColumnKind.TINYINT,
    FIELD_TYPE.BIT: ColumnKind.BIT,
    FIELD_TYPE.SHORT: ColumnKind.INTEGER,
    FIELD_TYPE.LONG: ColumnKind.INTEGER,
    FIELD_TYPE.INT24: ColumnKind.INTEGER,
    FIELD_TYPE.LONGLONG: ColumnKind.INTEGER,
    FIELD_TYPE.YEAR: ColumnKind.INTEGER,
    FIELD_TYPE.DECIMAL: ColumnKind.DECIMAL,
    FIELD_TYPE.NEWDECIMAL: ColumnKind.DECIMAL,
    FIELD_TYPE.FLOAT: ColumnKind.FLOAT,
    FIELD_TYPE.DOUBLE: ColumnKind.FLOAT,
    FIELD_TYPE.JSON: ColumnKind.JSON,
    FIELD_TYPE.VARCHAR: ColumnKind.TEXT,
    FIELD_TYPE.VAR_STRING: ColumnKind.TEXT,
    FIELD_TYPE.STRING: ColumnKind.TEXT,
    FIELD_TYPE.BLOB: ColumnKind.TEXT,
    FIELD_TYPE.TINY_BLOB: ColumnKind.TEXT,
    FIELD_TYPE.MEDIUM_BLOB: ColumnKind.TEXT,
    FIELD_TYPE.LONG_BLOB: ColumnKind.TEXT,
}


def column_meta(description: tuple[Any, ...]) -> ColumnMeta:
    """Translate one DB-API ``cursor.description`` entry."""
    name, type_code, _display_size, internal_size = description[:4]
    return ColumnMeta(
        name=name,
        kind=_KIND_BY_TYPE_CODE.get(type_code, ColumnKind.OTHER),
        length=internal_size,
    )


def _error_code(exc: pymysql.MySQLError) -> int | None:
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


def _is_duplicate(exc: pymysql.MySQLError, code: int | None) -> bool:
    if code is not None:
        return code == ER.DUP_ENTRY
    return "duplicate entry" in str(exc).lower()


class MySQLDriver(DatabaseDriver):
    """MySQL / MariaDB driver backed by a single PyMySQL connection."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 3306,
        username: str | None = None,
        password: str | None = None,
        *,
        charset: str = "utf8mb4",
        connect_timeout: int = 10,
        **kwargs: Any,
    ):
        config = DatabaseConfig(
            db_type=DatabaseBackend.MYSQL,
            host=host,
            port=port,
            username=username,
            password=password,
            charset=charset,
            connect_timeout=connect_timeout,
            options=kwargs,
        )
        super().__init__(config)
        self._conn: Any = None

    def connect(self) -> None:
        """Connect to the MySQL server."""
        try:
            self._conn = pymysql.connect(
                host=self._config.host,
                port=self._config.port,
                user=self._config.username,
                password=self._config.password or "",
                charset=self._config.charset,
                connect_timeout=self._config.connect_timeout,
                autocommit=True,
                **self._config.options,
            )
        except pymysql.MySQLError as e:
            raise ConnectionFailedError(
                "Failed to connect to database.",
                cause=e,
            ).with_context(database_error=str(e)) from e
        self._connected = True

    def select_schema(self, name: str) -> None:
        try:
            self._conn.select_db(name)
        except pymysql.MySQLError as e:
            raise SchemaSelectError(
                "Failed to select database.",
                cause=e,
            ).with_context(identifier=name, database_error=str(e)) from e

    def execute(self, sql: str) -> StatementResult:
        cursor = self._conn.cursor()
        try:
            try:
                cursor.execute(sql)
            except pymysql.MySQLError as e:
                code = _error_code(e)
                raise StatementError(
                    str(e),
                    code=code,
                    duplicate=_is_duplicate(e, code),
                    cause=e,
                ) from e

            if cursor.description is None:
                return StatementResult(
                    rowcount=cursor.rowcount,
                    lastrowid=cursor.lastrowid or None,
                )

            columns = [column_meta(d) for d in cursor.description]
            names = [c.name for c in columns]
            rows = [dict(zip(names, row, strict=False)) for row in cursor.fetchall()]
            return StatementResult(rows=rows, columns=columns, rowcount=len(rows))
        finally:
            cursor.close()

    def escape_string(self, value: str) -> str:
        if self._conn is None:
            return _escape_string(value)
        return self._conn.escape_string(value)

    def close(self) -> None:
        """Close the MySQL connection."""
        if self._conn is None:
            return
        try:
            self._conn.close()
        except pymysql.MySQLError as e:
            logger.warning("driver_close_failed", backend="mysql", error=str(e))
        finally:
            self._conn = None
            self._connected = False


__all__ = [
    "MySQLDriver",
    "column_meta",
]
