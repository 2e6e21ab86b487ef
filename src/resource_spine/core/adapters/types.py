"""Database driver types and configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from resource_spine.core.errors import ConfigError
from resource_spine.core.settings import DatabaseBackend


@dataclass
class DatabaseConfig:
    """
    Configuration for one physical database connection.

    Different fields are used by different backends.
    """

    # Common
    db_type: DatabaseBackend = DatabaseBackend.SQLITE

    # SQLite
    path: str | None = None

    # MySQL
    host: str = "localhost"
    port: int = 3306
    username: str | None = None
    password: str | None = None
    charset: str = "utf8mb4"

    # Options
    connect_timeout: int = 10

    # Extra options (driver-specific)
    options: dict[str, Any] = field(default_factory=dict)

    def to_connection_string(self) -> str:
        """Connection string with the password masked, for logs."""
        match self.db_type:
            case DatabaseBackend.SQLITE:
                return self.path or ":memory:"
            case DatabaseBackend.MYSQL:
                user = self.username or ""
                return f"mysql://{user}:***@{self.host}:{self.port}"
            case _:
                raise ConfigError(f"Connection string not supported for: {self.db_type}")


__all__ = [
    "DatabaseConfig",
]
