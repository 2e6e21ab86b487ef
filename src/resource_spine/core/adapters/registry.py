"""Database driver registry and factory.

Manifesto:
    Consumers should never hard-code driver class names.  The registry
    maps backend names to driver classes and the ``get_driver()`` factory
    creates a configured instance from keyword arguments or settings.

Features:
    - ``DriverRegistry`` singleton with pre-registered defaults
    - ``register()`` for custom drivers and test doubles
    - ``get_driver()`` factory: backend + kwargs → unconnected driver
    - ``driver_from_settings()``: ``StoreSettings`` → unconnected driver

Tags:
    resource-spine, database, registry, factory, singleton

Doc-Types:
    api-reference
"""

from __future__ import annotations

from typing import Any

from resource_spine.core.errors import ConfigError
from resource_spine.core.settings import DatabaseBackend, StoreSettings

from .base import DatabaseDriver
from .mysql import MySQLDriver
from .sqlite import SQLiteDriver


class DriverRegistry:
    """
    Registry for database driver factories.

    Pre-registered drivers:
    - ``sqlite``: :class:`SQLiteDriver`
    - ``mysql`` / ``mariadb``: :class:`MySQLDriver`
    """

    def __init__(self):
        self._factories: dict[str, type[DatabaseDriver]] = {}
        self._register_defaults()

    def _register_defaults(self) -> None:
        self._factories["sqlite"] = SQLiteDriver
        self._factories["mysql"] = MySQLDriver
        self._factories["mariadb"] = MySQLDriver  # Alias

    def register(self, name: str, driver_class: type[DatabaseDriver]) -> None:
        """Register a driver factory."""
        self._factories[name.lower()] = driver_class

    def create(self, name: str, **kwargs: Any) -> DatabaseDriver:
        """Create a driver by name."""
        name = name.lower()
        if name not in self._factories:
            raise ConfigError(f"Unknown database driver: {name}")
        return self._factories[name](**kwargs)

    def list_drivers(self) -> list[str]:
        """List registered driver names."""
        return sorted(self._factories.keys())


# Global registry
driver_registry = DriverRegistry()


def get_driver(db_type: DatabaseBackend | str, **kwargs: Any) -> DatabaseDriver:
    """
    Get an unconnected database driver by type.

    Usage:
        driver = get_driver(DatabaseBackend.SQLITE, path="dev.db")
        driver = get_driver("mysql", host="db.internal", username="app")
    """
    if isinstance(db_type, DatabaseBackend):
        name = db_type.value
    else:
        name = db_type

    return driver_registry.create(name, **kwargs)


def driver_from_settings(settings: StoreSettings) -> DatabaseDriver:
    """Build the driver described by ``settings`` (not yet connected)."""
    if settings.is_sqlite:
        return get_driver(DatabaseBackend.SQLITE, path=settings.database_path)
    return get_driver(
        settings.database_backend,
        host=settings.database_host,
        port=settings.database_port,
        username=settings.database_username,
        password=settings.database_password,
        connect_timeout=settings.connect_timeout,
    )


__all__ = [
    "DriverRegistry",
    "driver_registry",
    "get_driver",
    "driver_from_settings",
]
