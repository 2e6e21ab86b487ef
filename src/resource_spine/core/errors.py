"""
Structured error types for the resource-spine data layer.

Every failure raised by the data layer is a :class:`SpineError` subclass that
carries a category, a retry hint, and an :class:`ErrorContext` with the
offending identifier, statement, or raw store message. Callers get a typed
failure they can special-case (``DuplicateEntryError``) and enough context to
log or recover.

Manifesto:
    - **Typed Error Hierarchy:** One class per failure mode of the data layer
    - **Explicit Retry Semantics:** Each error knows if it's retryable
    - **Rich Context:** Errors carry the statement and store message
    - **Error Chaining:** Driver exceptions are kept as ``cause``

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────────┐
        │                       SpineError                                 │
        │  (category, retryable, retry_after, context, cause)             │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  TransientError         ValidationError        ConfigError      │
        │       │                      │                      │           │
        │  DatabaseConnection     InvalidIdentifier      ConvergedColumn  │
        │    ConnectionFailed     InvalidOperator          Collision      │
        │                         MissingIdentifier      UnsupportedFeat. │
        │                         EmptyUpdate                             │
        │                         InvalidConvergedValue                   │
        │                                                                  │
        │  DatabaseError                                                   │
        │    ├─ StatementError (raw driver failure)                       │
        │    ├─ QueryError ── QueryFailedError                            │
        │    ├─ IntegrityError ── DuplicateEntryError                     │
        │    ├─ SchemaSelectError                                         │
        │    ├─ RecordNotFoundError                                       │
        │    ├─ TransactionError ── Start / Commit / Rollback             │
        │    └─ LockError ── Unavailable / NotOwned / NotFound            │
        └─────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = QueryFailedError("Database query failed.")
    >>> error.with_context(query="select 1", database_error="gone away")
    QueryFailedError('Database query failed.', category=DATABASE)
    >>> error.context.query
    'select 1'

Guardrails:
    ❌ DON'T: Catch ``QueryFailedError`` to handle unique-key violations
    ✅ DO: Catch ``DuplicateEntryError``, a sibling, not a subclass

    ❌ DON'T: Swallow the driver exception
    ✅ DO: Pass it as cause= for error chaining

Tags:
    error-handling, exception-hierarchy, retry-logic, error-context,
    resource-spine, database
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and routing."""

    NETWORK = "NETWORK"
    DATABASE = "DATABASE"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    CONCURRENCY = "CONCURRENCY"
    INTERNAL = "INTERNAL"
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error for diagnostics.

    The typed fields cover what the data layer knows at the point of failure;
    anything else lands in ``metadata``. ``to_dict()`` drops unset fields so
    log lines stay short.
    """

    # Statement
    table: str | None = None
    identifier: str | None = None
    query: str | None = None
    database_error: str | None = None

    # Locking
    lock_name: str | None = None

    # Extensible
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for key in ("table", "identifier", "query", "database_error", "lock_name"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.metadata)
        return result


class SpineError(Exception):
    """
    Base class for all resource-spine errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers can
    override both per instance.

    Examples:
        >>> error = SpineError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>
        >>> error.retryable
        False
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> SpineError:
        """
        Attach extra diagnostic info and return self for chaining.

        Known fields go to the matching ``ErrorContext`` attribute, the rest
        to ``metadata``::

            raise QueryFailedError("Database query failed.").with_context(
                query=sql, database_error=str(exc)
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# TRANSIENT ERRORS (Usually Retryable)
# =============================================================================


class TransientError(SpineError):
    """Temporary failure; the same call may succeed later."""

    default_category = ErrorCategory.NETWORK
    default_retryable = True


class DatabaseConnectionError(TransientError):
    """Database connection error."""

    default_category = ErrorCategory.DATABASE


class ConnectionFailedError(DatabaseConnectionError):
    """The driver could not open the physical connection."""


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(SpineError):
    """
    Caller supplied something the data layer refuses to turn into SQL.

    Never retryable - the input must be fixed.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.field:
            result["field"] = self.field
        if self.value is not None:
            result["value"] = repr(self.value)
        return result


class InvalidIdentifierError(ValidationError):
    """A table or column name contains characters outside ``[A-Za-z0-9_]``."""


class InvalidOperatorError(ValidationError):
    """A predicate used an operator outside the supported set."""


class MissingIdentifierError(ValidationError):
    """An update was requested without the ``<table>_id`` attribute."""


class EmptyUpdateError(ValidationError):
    """An update carried no attribute besides the primary key."""


class InvalidConvergedValueError(ValidationError):
    """A converged attribute value cannot be coerced to its declared type."""


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================


class ConfigError(SpineError):
    """
    Configuration or schema-declaration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class ConvergedColumnCollisionError(ConfigError):
    """A declared converged column shadows a physical column of the table."""


class UnsupportedFeatureError(ConfigError):
    """The configured backend cannot provide the requested feature."""


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class DatabaseError(SpineError):
    """Database query or transaction error."""

    default_category = ErrorCategory.DATABASE
    default_retryable = False


class StatementError(DatabaseError):
    """
    Raw statement failure reported by a driver.

    Drivers translate their native exceptions into this type; the connection
    turns it into ``DuplicateEntryError`` or ``QueryFailedError``.
    """

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        duplicate: bool = False,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.code = code
        self.duplicate = duplicate


class QueryError(DatabaseError):
    """SQL query error."""


class QueryFailedError(QueryError):
    """A statement failed for any reason other than a duplicate entry."""


class IntegrityError(DatabaseError):
    """Database integrity constraint violation."""


class DuplicateEntryError(IntegrityError):
    """A write violated a uniqueness constraint."""


class SchemaSelectError(DatabaseError):
    """The configured schema could not be selected."""


class RecordNotFoundError(DatabaseError):
    """The row addressed by primary key does not exist."""


class TransactionError(DatabaseError):
    """Transaction control statement failed."""


class TransactionStartError(TransactionError):
    """``start transaction`` failed."""


class CommitError(TransactionError):
    """``commit`` failed."""


class RollbackError(TransactionError):
    """``rollback`` failed."""


class LockError(DatabaseError):
    """Advisory lock error."""

    default_category = ErrorCategory.CONCURRENCY


class LockUnavailableError(LockError):
    """The lock is held elsewhere and was not granted within the timeout."""

    default_retryable = True


class LockNotOwnedError(LockError):
    """The lock exists but this connection does not hold it."""


class LockNotFoundError(LockError):
    """The store has no record of a lock with this name."""


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, SpineError):
        return error.retryable
    return isinstance(error, (ConnectionError, BrokenPipeError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, SpineError):
        return error.category
    if isinstance(error, (ConnectionError, OSError)):
        return ErrorCategory.NETWORK
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.UNKNOWN


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "SpineError",
    # Transient
    "TransientError",
    "DatabaseConnectionError",
    "ConnectionFailedError",
    # Validation
    "ValidationError",
    "InvalidIdentifierError",
    "InvalidOperatorError",
    "MissingIdentifierError",
    "EmptyUpdateError",
    "InvalidConvergedValueError",
    # Config
    "ConfigError",
    "ConvergedColumnCollisionError",
    "UnsupportedFeatureError",
    # Database
    "DatabaseError",
    "StatementError",
    "QueryError",
    "QueryFailedError",
    "IntegrityError",
    "DuplicateEntryError",
    "SchemaSelectError",
    "RecordNotFoundError",
    "TransactionError",
    "TransactionStartError",
    "CommitError",
    "RollbackError",
    "LockError",
    "LockUnavailableError",
    "LockNotOwnedError",
    "LockNotFoundError",
    # Utilities
    "is_retryable",
    "categorize_error",
]
