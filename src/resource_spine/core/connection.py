"""Connection: the explicit per-call handle to the store.

One :class:`Connection` is created per logical call (an API request, a CLI
invocation, a sync job) and closed at its end. It owns the driver and wires
escaping, statement building, the transaction controller, CRUD and advisory
locks around it. Nothing here is global: the schema, the transaction mode
and the demo flag are passed in at construction.

Usage
-----
::

    from resource_spine.core.connection import Connection, open_connection
    from resource_spine.core.adapters import SQLiteDriver

    with Connection(SQLiteDriver("dev.db")) as conn:
        row = conn.create("thermostat", {"name": "Hallway"})
        conn.update("thermostat", {"thermostat_id": row["thermostat_id"], "name": "Hall"})

    # From settings (RESOURCE_SPINE_* environment variables)
    with open_connection() as conn:
        conn.read("thermostat", {"inactive": 0})

Transaction policy
------------------
- The first ``INSERT``/``UPDATE``/``DELETE`` starts a transaction when
  ``use_transactions`` is on.
- A failed statement rolls the open transaction back before the error is
  raised.
- ``close()`` commits a transaction that is still open. Leaving a ``with``
  block on an exception rolls back first.
- A connection that is garbage-collected without ``close()`` is finished the
  same way (commit, then driver close) by a ``weakref.finalize`` hook. Call
  ``close()`` or use ``with`` to control when that happens.

Tags:
    connection, session, transactions, crud, resource-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import time
import weakref
from collections.abc import Iterable, Mapping
from contextlib import AbstractContextManager
from typing import Any

from resource_spine.core.adapters.registry import driver_from_settings
from resource_spine.core.converged import DEFAULT_CODEC, ConvergedCodec
from resource_spine.core.crud import ResourceStore, Row
from resource_spine.core.dialect import Dialect
from resource_spine.core.errors import (
    DuplicateEntryError,
    QueryFailedError,
    RollbackError,
    SpineError,
    StatementError,
)
from resource_spine.core.escaping import Escaper
from resource_spine.core.locks import LockManager
from resource_spine.core.logging import get_logger
from resource_spine.core.protocols import Driver, StatementResult
from resource_spine.core.query import QueryBuilder
from resource_spine.core.resource import ResourceDescriptor, ResourceRegistry
from resource_spine.core.settings import StoreSettings, get_settings
from resource_spine.core.transaction import TransactionController

logger = get_logger(__name__)

WRITE_STATEMENTS = frozenset({"insert", "update", "delete"})


def is_write_statement(sql: str) -> bool:
    words = sql.split(None, 1)
    return bool(words) and words[0].lower() in WRITE_STATEMENTS


def format_time_zone(offset_minutes: int) -> str:
    """``-360`` → ``'-6:00'``, ``330`` → ``'+5:30'``."""
    sign = "-" if offset_minutes < 0 else "+"
    hours, minutes = divmod(abs(int(offset_minutes)), 60)
    return f"{sign}{hours}:{minutes:02d}"


class Connection:
    """A connected session: statements, transactions, CRUD and locks."""

    def __init__(
        self,
        driver: Driver,
        *,
        schema: str | None = None,
        use_transactions: bool = True,
        demo: bool = False,
        lock_namespace: str | None = None,
        registry: ResourceRegistry | None = None,
        codec: ConvergedCodec = DEFAULT_CODEC,
    ):
        self._driver = driver
        self._schema = schema
        self._use_transactions = use_transactions
        self._demo = demo
        self._registry = registry or ResourceRegistry()
        self._closed = False

        self._query_count = 0
        self._query_time = 0.0

        self._escaper = Escaper(driver)
        self._builder = QueryBuilder(self._escaper, driver.dialect)
        self._transactions = TransactionController(driver.execute, driver.dialect)
        self._locks = LockManager(self, lock_namespace if lock_namespace is not None else schema)
        self._store = ResourceStore(self, codec)

        driver.connect()
        if schema is not None:
            try:
                driver.select_schema(schema)
            except SpineError:
                driver.close()
                raise

        self._finalizer = weakref.finalize(self, _finish, self._transactions, driver)

        logger.info(
            "connection_opened",
            backend=driver.dialect.name,
            schema=schema,
            demo=demo,
        )

    # -- Collaborators -----------------------------------------------------

    @property
    def dialect(self) -> Dialect:
        return self._driver.dialect

    @property
    def driver(self) -> Driver:
        return self._driver

    @property
    def builder(self) -> QueryBuilder:
        return self._builder

    @property
    def transactions(self) -> TransactionController:
        return self._transactions

    @property
    def locks(self) -> LockManager:
        return self._locks

    @property
    def registry(self) -> ResourceRegistry:
        return self._registry

    @property
    def schema(self) -> str | None:
        return self._schema

    @property
    def demo(self) -> bool:
        return self._demo

    @property
    def closed(self) -> bool:
        return self._closed

    # -- Statistics --------------------------------------------------------

    @property
    def query_count(self) -> int:
        """Statements executed successfully through :meth:`query`."""
        return self._query_count

    @property
    def query_time(self) -> float:
        """Seconds spent in those statements."""
        return self._query_time

    # -- Escaping ----------------------------------------------------------

    def escape(self, value: Any, basic: bool = False) -> str:
        return self._escaper.escape(value, basic)

    def escape_identifier(self, name: str) -> str:
        return self._escaper.escape_identifier(name)

    # -- Statements --------------------------------------------------------

    def query(self, sql: str) -> StatementResult:
        """
        Execute one already-escaped statement.

        Raises:
            DuplicateEntryError: Uniqueness constraint violated.
            QueryFailedError: Any other statement failure.
        """
        if self._use_transactions and is_write_statement(sql):
            self._transactions.start()

        start = time.perf_counter()
        try:
            result = self._driver.execute(sql)
        except StatementError as e:
            logger.warning(
                "statement_failed",
                error=e.message,
                code=e.code,
                duplicate=e.duplicate,
            )
            self._force_rollback()
            error_class = DuplicateEntryError if e.duplicate else QueryFailedError
            message = "Duplicate database entry." if e.duplicate else "Database query failed."
            raise error_class(message, cause=e).with_context(
                query=sql,
                database_error=e.message,
            ) from e
        elapsed = time.perf_counter() - start

        self._query_count += 1
        self._query_time += elapsed
        logger.debug("statement_executed", elapsed_ms=round(elapsed * 1000, 3))
        return result

    def _force_rollback(self) -> None:
        try:
            self._transactions.rollback()
        except RollbackError as e:
            # The statement failure is what the caller needs to see
            logger.error("forced_rollback_failed", **e.to_dict())

    # -- Transactions ------------------------------------------------------

    def start_transaction(self) -> None:
        self._transactions.start()

    def commit_transaction(self) -> None:
        self._transactions.commit()

    def rollback_transaction(self) -> None:
        self._transactions.rollback()

    # -- CRUD --------------------------------------------------------------

    def read(
        self,
        resource: str | ResourceDescriptor,
        attributes: Mapping[str, Any] | None = None,
        columns: Iterable[str] | None = None,
    ) -> list[Row]:
        return self._store.read(resource, attributes, columns)

    def create(
        self,
        resource: str | ResourceDescriptor,
        attributes: Mapping[str, Any] | None = None,
        *,
        demo: bool | None = None,
    ) -> Row:
        return self._store.create(resource, attributes, demo=demo)

    def update(
        self,
        resource: str | ResourceDescriptor,
        attributes: Mapping[str, Any],
        *,
        demo: bool | None = None,
    ) -> Row:
        return self._store.update(resource, attributes, demo=demo)

    def delete(
        self,
        resource: str | ResourceDescriptor,
        id_: Any,
        *,
        demo: bool | None = None,
    ) -> int:
        return self._store.delete(resource, id_, demo=demo)

    # -- Locks -------------------------------------------------------------

    def acquire_lock(self, name: str, timeout: int = 0) -> None:
        self._locks.acquire(name, timeout)

    def release_lock(self, name: str) -> None:
        self._locks.release(name)

    def lock(self, name: str, timeout: int = 0) -> AbstractContextManager[str]:
        """``with conn.lock("sync"):`` acquires and always releases the lock."""
        return self._locks.hold(name, timeout)

    # -- Session -----------------------------------------------------------

    def set_time_zone(self, offset_minutes: int) -> None:
        """Make the store convert temporal values to a UTC offset in minutes."""
        self.query(self.dialect.set_time_zone(self.escape(format_time_zone(offset_minutes))))

    def close(self) -> None:
        """Commit a still-open transaction and release the driver."""
        if self._closed:
            return
        self._closed = True
        try:
            self._finalizer()
        finally:
            logger.info(
                "connection_closed",
                query_count=self._query_count,
                query_time_ms=round(self._query_time * 1000, 3),
            )

    def __enter__(self) -> Connection:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type is not None and not self._closed:
            self._force_rollback()
        self.close()

    def __repr__(self) -> str:
        return (
            f"Connection(backend={self.dialect.name!r}, schema={self._schema!r}, "
            f"demo={self._demo})"
        )


def _finish(transactions: TransactionController, driver: Driver) -> None:
    try:
        transactions.commit()
    finally:
        driver.close()


def open_connection(
    settings: StoreSettings | None = None,
    *,
    registry: ResourceRegistry | None = None,
    demo: bool | None = None,
) -> Connection:
    """Build the configured driver and open a :class:`Connection` on it."""
    settings = settings or get_settings()
    return Connection(
        driver_from_settings(settings),
        schema=None if settings.is_sqlite else settings.database_name,
        use_transactions=settings.use_transactions,
        demo=settings.demo if demo is None else demo,
        lock_namespace=settings.database_name,
        registry=registry,
    )


__all__ = [
    "Connection",
    "open_connection",
    "is_write_statement",
    "format_time_zone",
]
