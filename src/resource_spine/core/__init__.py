"""Resource Spine Core -- data access between resources and a relational store.

Manifesto:
    Application code talks about *resources* ("thermostat", "sensor") and
    attribute maps.  The core turns those into safe SQL, keeps every call's
    writes inside one transaction that is rolled back on failure, lets a
    resource grow optional fields without a migration (converged
    attributes), and offers named advisory locks on the same connection.

    - **Safe by construction:** Every value and identifier is escaped
    - **Explicit handles:** One Connection per call, no globals
    - **Typed failures:** One SpineError subclass per failure mode

Architecture::

    Layer 1 -- Errors, Logging, Settings
        errors.py          Structured error hierarchy (SpineError, ...)
        logging.py         structlog configuration + context binding
        settings.py        StoreSettings (pydantic-settings)
        protocols.py       Driver protocol, StatementResult, ColumnMeta

    Layer 2 -- SQL
        dialect.py         MySQL / SQLite SQL fragments
        adapters/          Drivers (PyMySQL, sqlite3) + registry
        escaping.py        Value escaping, identifier validation
        query.py           Predicates, assignments, statements

    Layer 3 -- Semantics
        transaction.py     IDLE/ACTIVE controller + savepoints
        coercion.py        Column-metadata driven type coercion
        converged.py       Soft-column merge/expand + codec
        resource.py        ResourceDescriptor + ResourceRegistry
        crud.py            read / create / update / delete
        locks.py           Advisory lock manager

    Layer 4 -- Session
        connection.py      Connection + open_connection()

Tags:
    resource-spine, data-access, sql, transactions, converged, locks

Doc-Types:
    package-overview, architecture-map, module-index
"""

from resource_spine.core.adapters import (
    DatabaseDriver,
    MySQLDriver,
    SQLiteDriver,
    get_driver,
)
from resource_spine.core.connection import Connection, open_connection
from resource_spine.core.converged import (
    ConvergedType,
    expand_converged,
    merge_converged,
)
from resource_spine.core.dialect import (
    Dialect,
    MySQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)
from resource_spine.core.errors import (
    ConnectionFailedError,
    ConvergedColumnCollisionError,
    DuplicateEntryError,
    EmptyUpdateError,
    ErrorCategory,
    ErrorContext,
    InvalidIdentifierError,
    InvalidOperatorError,
    LockNotFoundError,
    LockNotOwnedError,
    LockUnavailableError,
    MissingIdentifierError,
    QueryFailedError,
    RecordNotFoundError,
    SchemaSelectError,
    SpineError,
)
from resource_spine.core.logging import configure_logging, get_logger
from resource_spine.core.protocols import ColumnKind, ColumnMeta, Driver, StatementResult
from resource_spine.core.resource import ResourceDescriptor, ResourceRegistry
from resource_spine.core.settings import StoreSettings, get_settings

__all__ = [
    # Session
    "Connection",
    "open_connection",
    # Resources
    "ResourceDescriptor",
    "ResourceRegistry",
    "ConvergedType",
    "merge_converged",
    "expand_converged",
    # Drivers / dialects
    "Driver",
    "DatabaseDriver",
    "MySQLDriver",
    "SQLiteDriver",
    "get_driver",
    "Dialect",
    "MySQLDialect",
    "SQLiteDialect",
    "get_dialect",
    "register_dialect",
    "ColumnKind",
    "ColumnMeta",
    "StatementResult",
    # Errors
    "SpineError",
    "ErrorCategory",
    "ErrorContext",
    "ConnectionFailedError",
    "SchemaSelectError",
    "InvalidIdentifierError",
    "InvalidOperatorError",
    "DuplicateEntryError",
    "QueryFailedError",
    "MissingIdentifierError",
    "EmptyUpdateError",
    "RecordNotFoundError",
    "ConvergedColumnCollisionError",
    "LockUnavailableError",
    "LockNotOwnedError",
    "LockNotFoundError",
    # Ambient
    "configure_logging",
    "get_logger",
    "StoreSettings",
    "get_settings",
]
