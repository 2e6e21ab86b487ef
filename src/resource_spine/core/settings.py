"""
Centralized settings for resource-spine.

Manifesto:
    Connection endpoint, credentials, schema, transaction mode and the demo
    flag are read once, validated, and handed to the connection explicitly.
    Nothing inside the data layer consults global configuration.

All fields can be set via ``RESOURCE_SPINE_*`` environment variables (e.g.
``RESOURCE_SPINE_DATABASE_HOST=db.internal``) or a ``.env`` file.

Tags:
    resource-spine, configuration, settings, pydantic, caching

Doc-Types:
    api-reference
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseBackend(str, Enum):
    """Supported relational stores."""

    MYSQL = "mysql"
    SQLITE = "sqlite"


class StoreSettings(BaseSettings):
    """resource-spine configuration."""

    model_config = SettingsConfigDict(
        env_prefix="RESOURCE_SPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    database_backend: DatabaseBackend = Field(default=DatabaseBackend.MYSQL)
    database_host: str = Field(default="localhost")
    database_port: int = Field(default=3306)
    database_username: str | None = Field(default=None)
    database_password: str | None = Field(default=None)
    database_name: str | None = Field(
        default=None,
        description="Schema to select after connecting; also namespaces advisory locks",
    )
    database_path: str = Field(default=":memory:", description="SQLite file path")
    connect_timeout: int = Field(default=10)

    # ── Behaviour ────────────────────────────────────────────────
    use_transactions: bool = Field(
        default=True,
        description="Start a transaction automatically on the first write",
    )
    demo: bool = Field(default=False, description="Simulate writes without persisting them")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @model_validator(mode="after")
    def _validate_log_format(self) -> StoreSettings:
        if self.log_format not in ("json", "console"):
            raise ValueError(f"log_format must be 'json' or 'console', got {self.log_format!r}")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_backend == DatabaseBackend.SQLITE


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: dict[str, StoreSettings] = {}


def get_settings(*, _force_reload: bool = False) -> StoreSettings:
    """Load, validate, and cache a :class:`StoreSettings` instance."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]

    settings = StoreSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "DatabaseBackend",
    "StoreSettings",
    "get_settings",
    "clear_settings_cache",
]
