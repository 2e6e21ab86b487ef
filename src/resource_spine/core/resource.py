"""
Static resource descriptors.

A resource is a named entity backed by one table. Its name may be dotted
(``"app.resource.thermostat"``); the table is the last segment and the
primary key column is ``<table>_id``. A descriptor also declares the soft
columns kept in the ``converged`` blob, and any JSON columns the store cannot
flag by type (SQLite reports no column types).

Descriptors are looked up explicitly through a :class:`ResourceRegistry`;
nothing is discovered by class loading or reflection.

Examples:
    >>> registry = ResourceRegistry()
    >>> registry.register(ResourceDescriptor("app.thermostat", {"nickname": "string"}))
    >>> registry.resolve("app.thermostat").primary_key
    'thermostat_id'
    >>> dict(registry.resolve("sensor").converged)
    {}

Tags:
    resources, registry, descriptors, resource-spine
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from resource_spine.core.converged import ConvergedType


@dataclass(frozen=True)
class ResourceDescriptor:
    """Table name and soft-column declaration of one resource type."""

    name: str
    converged: Mapping[str, ConvergedType] = field(default_factory=dict, hash=False)
    json_columns: frozenset[str] = frozenset()

    def __post_init__(self) -> None:
        normalized = {column: ConvergedType(kind) for column, kind in self.converged.items()}
        object.__setattr__(self, "converged", MappingProxyType(normalized))
        object.__setattr__(self, "json_columns", frozenset(self.json_columns))

    @property
    def table(self) -> str:
        return self.name.rsplit(".", 1)[-1]

    @property
    def primary_key(self) -> str:
        return f"{self.table}_id"


class ResourceRegistry:
    """Name → descriptor lookup. Unknown names resolve to a bare descriptor."""

    def __init__(self, descriptors: list[ResourceDescriptor] | None = None):
        self._descriptors: dict[str, ResourceDescriptor] = {}
        for descriptor in descriptors or []:
            self.register(descriptor)

    def register(self, descriptor: ResourceDescriptor) -> None:
        self._descriptors[descriptor.name] = descriptor

    def resolve(self, resource: str | ResourceDescriptor) -> ResourceDescriptor:
        if isinstance(resource, ResourceDescriptor):
            return resource
        descriptor = self._descriptors.get(resource)
        if descriptor is None:
            return ResourceDescriptor(resource)
        return descriptor

    def names(self) -> list[str]:
        return sorted(self._descriptors)

    def __contains__(self, name: Any) -> bool:
        return name in self._descriptors


__all__ = [
    "ResourceDescriptor",
    "ResourceRegistry",
]
