"""
Transaction controller for a single connection.

Tracks whether a transaction is open and issues the dialect's transaction
statements straight to the driver. ``Connection.query`` drives the policy
(auto-start on the first write, forced rollback on failure, commit on
close); this module only owns the state machine.

State machine::

    IDLE ──start()──► ACTIVE ──commit()/rollback()──► IDLE
      ▲                 │
      └─────────────────┘  (state flips before the statement is sent)

``start()`` is idempotent; ``commit()`` and ``rollback()`` are no-ops while
idle. Savepoints let demo-mode writes be undone inside an already open
transaction.

Tags:
    transactions, state-machine, savepoints, resource-spine
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from resource_spine.core.dialect import Dialect
from resource_spine.core.errors import (
    CommitError,
    RollbackError,
    StatementError,
    TransactionError,
    TransactionStartError,
)
from resource_spine.core.logging import get_logger
from resource_spine.core.protocols import StatementResult

logger = get_logger(__name__)


class TransactionState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class TransactionController:
    """
    At most one open transaction per connection.

    Args:
        execute: Raw driver execute; must not route back through
            ``Connection.query``.
        dialect: Source of the transaction statements.
    """

    def __init__(self, execute: Callable[[str], StatementResult], dialect: Dialect):
        self._execute = execute
        self._dialect = dialect
        self._state = TransactionState.IDLE

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def active(self) -> bool:
        return self._state is TransactionState.ACTIVE

    def start(self) -> None:
        if self.active:
            return
        self._run(self._dialect.begin(), TransactionStartError, "Failed to start transaction.")
        self._state = TransactionState.ACTIVE
        logger.debug("transaction_started")

    def commit(self) -> None:
        if not self.active:
            return
        self._state = TransactionState.IDLE
        self._run(self._dialect.commit(), CommitError, "Failed to commit transaction.")
        logger.debug("transaction_committed")

    def rollback(self) -> None:
        if not self.active:
            return
        self._state = TransactionState.IDLE
        self._run(self._dialect.rollback(), RollbackError, "Failed to rollback transaction.")
        logger.debug("transaction_rolled_back")

    # -- Savepoints --------------------------------------------------------

    def savepoint(self, name: str) -> None:
        self._run(self._dialect.savepoint(name), TransactionError, "Failed to create savepoint.")

    def rollback_to(self, name: str) -> None:
        self._run(
            self._dialect.rollback_to_savepoint(name),
            RollbackError,
            "Failed to rollback to savepoint.",
        )

    def release(self, name: str) -> None:
        self._run(
            self._dialect.release_savepoint(name),
            TransactionError,
            "Failed to release savepoint.",
        )

    def _run(self, sql: str, error_class: type[TransactionError], message: str) -> None:
        try:
            self._execute(sql)
        except StatementError as e:
            raise error_class(message, cause=e).with_context(
                query=sql,
                database_error=e.message,
            ) from e


__all__ = [
    "TransactionController",
    "TransactionState",
]
