"""Advisory lock manager.

Manifesto:
    Two processes must never run the same logical operation (a tenant's
    sync, a nightly rollup) at the same time.  The store already offers
    named mutexes scoped to a physical connection (MySQL ``GET_LOCK``), so
    the lock lives on the very connection that does the work and is freed
    by the server if the process dies.

Lock names are namespaced with the schema name so tenants sharing a server
do not collide::

    acquire("thermostat_sync_7")  →  GET_LOCK('beestat_thermostat_sync_7', 0)

Results of the store's lock functions::

    GET_LOCK      1 granted   0 timed out        NULL error
    RELEASE_LOCK  1 released  0 held elsewhere   NULL no such lock

Tags:
    locking, advisory-locks, concurrency, mysql, resource-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from resource_spine.core.errors import (
    LockNotFoundError,
    LockNotOwnedError,
    LockUnavailableError,
    UnsupportedFeatureError,
)
from resource_spine.core.logging import get_logger

if TYPE_CHECKING:
    from resource_spine.core.connection import Connection

logger = get_logger(__name__)


class LockManager:
    """Named advisory locks on one connection.

    Example:
        >>> locks = LockManager(conn, namespace="beestat")
        >>> with locks.hold("thermostat_sync_7"):
        ...     run_sync()
    """

    def __init__(self, conn: Connection, namespace: str | None = None):
        self._conn = conn
        self._namespace = namespace

    @property
    def namespace(self) -> str | None:
        return self._namespace

    def qualified_name(self, name: str) -> str:
        if not self._namespace:
            return name
        return f"{self._namespace}_{name}"

    def _require_support(self) -> None:
        if not self._conn.dialect.supports_advisory_locks:
            raise UnsupportedFeatureError(
                f"Advisory locks are not available on {self._conn.dialect.name}."
            )

    def acquire(self, name: str, timeout: int = 0) -> None:
        """
        Take the lock or raise.

        Args:
            name: Logical lock name (namespaced automatically).
            timeout: Seconds to wait; negative waits forever.

        Raises:
            LockUnavailableError: The lock was not granted (retryable).
        """
        self._require_support()
        lock_name = self.qualified_name(name)
        sql = self._conn.dialect.get_lock(
            self._conn.escape(lock_name),
            self._conn.escape(int(timeout)),
        )
        row = self._conn.query(sql).first()
        result = row.get("lock") if row else None

        if result != 1:
            logger.warning("lock_unavailable", lock_name=lock_name, timeout=timeout)
            raise LockUnavailableError("Could not get lock.").with_context(
                lock_name=lock_name,
                query=sql,
            )
        logger.info("lock_acquired", lock_name=lock_name)

    def release(self, name: str) -> None:
        """
        Release a lock held by this connection.

        Raises:
            LockNotOwnedError: The lock is held by another connection.
            LockNotFoundError: No lock with this name exists.
        """
        self._require_support()
        lock_name = self.qualified_name(name)
        sql = self._conn.dialect.release_lock(self._conn.escape(lock_name))
        row = self._conn.query(sql).first()
        result = row.get("lock") if row else None

        if result is None:
            raise LockNotFoundError("Lock does not exist.").with_context(
                lock_name=lock_name,
                query=sql,
            )
        if result == 0:
            raise LockNotOwnedError("Lock not established by this thread.").with_context(
                lock_name=lock_name,
                query=sql,
            )
        logger.info("lock_released", lock_name=lock_name)

    @contextmanager
    def hold(self, name: str, timeout: int = 0) -> Iterator[str]:
        """Acquire for the duration of a ``with`` block; yields the qualified name."""
        self.acquire(name, timeout)
        try:
            yield self.qualified_name(name)
        finally:
            self.release(name)


__all__ = [
    "LockManager",
]
