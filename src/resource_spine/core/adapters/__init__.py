"""Database drivers -- one narrow interface for MySQL and SQLite.

Manifesto:
    The data layer runs identically on MySQL (production) and SQLite
    (development and tests).  Drivers hide the database library behind
    five calls -- connect, select_schema, execute, escape_string, close --
    and translate library exceptions into the structured error hierarchy.

Architecture::

    DatabaseDriver (base.py)         Abstract base with dialect + lifecycle
        |-- SQLiteDriver             stdlib sqlite3
        |-- MySQLDriver              PyMySQL

    DriverRegistry (registry.py)     Singleton: backend name -> driver class
    DatabaseConfig (types.py)        Connection parameters

Modules
-------
base            Abstract DatabaseDriver base class
types           DatabaseConfig dataclass
registry        DriverRegistry singleton + get_driver() factory
sqlite          SQLite driver
mysql           MySQL / MariaDB driver

Guardrails:
    ❌ ``pymysql.connect(...)`` inside CRUD code
    ✅ ``Connection(get_driver("mysql", host=...))``

Tags:
    resource-spine, database, drivers, registry-pattern, mysql, sqlite

Doc-Types:
    package-overview, module-index
"""

from resource_spine.core.dialect import Dialect, get_dialect
from resource_spine.core.protocols import Driver

from .base import DatabaseDriver
from .mysql import MySQLDriver
from .registry import DriverRegistry, driver_from_settings, driver_registry, get_driver
from .sqlite import SQLiteDriver
from .types import DatabaseConfig

__all__ = [
    # Types
    "DatabaseConfig",
    # Protocols / Abstractions
    "Driver",
    "Dialect",
    "get_dialect",
    # Base class
    "DatabaseDriver",
    # Implementations
    "SQLiteDriver",
    "MySQLDriver",
    # Registry
    "DriverRegistry",
    "driver_registry",
    "get_driver",
    "driver_from_settings",
]
