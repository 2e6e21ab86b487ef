"""
Shared pytest fixtures for resource-spine tests.

This module provides:
- An in-memory SQLite connection with the test schema for CRUD round trips
- A scripted driver speaking the MySQL dialect for locks and failure paths
- Settings-cache and logging isolation between tests

Usage:
    def test_something(sqlite_conn, scripted_driver):
        ...
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import pytest
import structlog
from pymysql.converters import escape_string

from resource_spine.core.adapters.sqlite import SQLiteDriver
from resource_spine.core.connection import Connection
from resource_spine.core.dialect import Dialect, MySQLDialect
from resource_spine.core.protocols import StatementResult
from resource_spine.core.resource import ResourceDescriptor, ResourceRegistry
from resource_spine.core.settings import clear_settings_cache

SCHEMA = [
    """
    CREATE TABLE thermostat (
        thermostat_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT UNIQUE,
        inactive INTEGER NOT NULL DEFAULT 0,
        alerts TEXT,
        json_settings TEXT,
        converged TEXT
    )
    """,
    """
    CREATE TABLE sensor (
        sensor_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT,
        temperature REAL
    )
    """,
]

SOFT_THERMOSTAT = ResourceDescriptor(
    "app.thermostat",
    {"nickname": "string", "floor": "int", "setpoint": "float"},
    json_columns=frozenset({"alerts"}),
)


def create_schema(driver) -> None:
    for statement in SCHEMA:
        driver.execute(statement)


# =============================================================================
# Scripted driver
# =============================================================================


@dataclass
class _Rule:
    match: str
    result: StatementResult
    error: Exception | None = None
    once: bool = False


class ScriptedDriver:
    """Records every statement; answers from rules matched by substring."""

    def __init__(
        self,
        dialect: Dialect | None = None,
        *,
        connect_error: Exception | None = None,
        schema_error: Exception | None = None,
    ):
        self.dialect = dialect or MySQLDialect()
        self.statements: list[str] = []
        self.rules: list[_Rule] = []
        self.connected = False
        self.closed = False
        self.schema: str | None = None
        self._connect_error = connect_error
        self._schema_error = schema_error

    def on(
        self,
        match: str,
        *,
        rows: list[dict] | None = None,
        rowcount: int = 0,
        lastrowid: int | None = None,
        error: Exception | None = None,
        once: bool = False,
    ) -> ScriptedDriver:
        result = StatementResult(rows=list(rows or []), rowcount=rowcount, lastrowid=lastrowid)
        self.rules.append(_Rule(match, result, error, once))
        return self

    def connect(self) -> None:
        if self._connect_error is not None:
            raise self._connect_error
        self.connected = True

    def select_schema(self, name: str) -> None:
        if self._schema_error is not None:
            raise self._schema_error
        self.schema = name

    def execute(self, sql: str) -> StatementResult:
        self.statements.append(sql)
        for rule in self.rules:
            if rule.match in sql:
                if rule.once:
                    self.rules.remove(rule)
                if rule.error is not None:
                    raise rule.error
                return rule.result
        return StatementResult()

    def escape_string(self, value: str) -> str:
        return escape_string(value)

    def close(self) -> None:
        self.closed = True


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_settings_and_logging() -> Iterator[None]:
    clear_settings_cache()
    yield
    clear_settings_cache()
    structlog.reset_defaults()


# =============================================================================
# Connections
# =============================================================================


@pytest.fixture
def soft_thermostat() -> ResourceDescriptor:
    return SOFT_THERMOSTAT


@pytest.fixture
def registry() -> ResourceRegistry:
    return ResourceRegistry([SOFT_THERMOSTAT])


@pytest.fixture
def sqlite_conn(registry: ResourceRegistry) -> Iterator[Connection]:
    conn = Connection(SQLiteDriver(":memory:"), registry=registry)
    create_schema(conn.driver)
    yield conn
    conn.close()


@pytest.fixture
def sqlite_file(tmp_path: Path) -> str:
    """Path of an SQLite file that already holds the test schema."""
    path = str(tmp_path / "resources.db")
    driver = SQLiteDriver(path)
    driver.connect()
    create_schema(driver)
    driver.close()
    return path


@pytest.fixture
def scripted_driver() -> ScriptedDriver:
    return ScriptedDriver()


@pytest.fixture
def make_scripted_driver():
    """Factory for drivers with connect/schema failures or another dialect."""
    return ScriptedDriver


@pytest.fixture
def mysql_conn(scripted_driver: ScriptedDriver) -> Iterator[Connection]:
    conn = Connection(scripted_driver, schema="beestat")
    yield conn
    conn.close()
