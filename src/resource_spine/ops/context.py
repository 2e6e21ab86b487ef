"""
Call-scoped context for operations.

Every operation function receives a :class:`CallContext` as its first
argument. The context carries the call's connection, the caller identity,
a request id for log correlation and arbitrary metadata. It replaces any
notion of a process-wide database instance: a call that needs to write
outside its main transaction asks the context for a second connection.
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from resource_spine.core.connection import Connection
from resource_spine.core.errors import ConfigError
from resource_spine.core.logging import LogContext


@dataclass
class CallContext:
    """Context passed to every operation function.

    Attributes:
        conn: The call's primary connection.
        user_id: Authenticated user, if any; scopes per-user locks.
        request_id: Unique ID for this call (auto-generated).
        metadata: Arbitrary key/value pairs forwarded to logging.
        connection_factory: Opens an independent connection on demand.
    """

    conn: Connection
    user_id: int | str | None = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    metadata: dict[str, Any] = field(default_factory=dict)
    connection_factory: Callable[[], Connection] | None = None
    _second: Connection | None = field(default=None, init=False, repr=False)

    @property
    def demo(self) -> bool:
        return self.conn.demo

    def second_connection(self) -> Connection:
        """A lazily opened connection whose writes commit independently."""
        if self._second is None:
            if self.connection_factory is None:
                raise ConfigError("No connection factory configured for a second connection.")
            self._second = self.connection_factory()
        return self._second

    def log_context(self) -> LogContext:
        """Bind ``request_id`` and ``user_id`` to every log line in a block."""
        return LogContext(request_id=self.request_id, user_id=self.user_id, **self.metadata)

    def close(self) -> None:
        """Close the second connection (if opened), then the primary one."""
        try:
            if self._second is not None:
                self._second.close()
                self._second = None
        finally:
            self.conn.close()


__all__ = [
    "CallContext",
]
