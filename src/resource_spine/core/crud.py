"""
Generic CRUD over resource tables.

:class:`ResourceStore` turns attribute maps into statements, runs them
through ``Connection.query`` (so the transaction policy applies) and
returns fully shaped rows: coerced types, parsed JSON, converged soft
columns expanded.

Write pipeline::

    attributes
        │ json_* values serialized
        │ soft columns merged over the current row → converged blob
        ▼
    INSERT / UPDATE ──► re-read by primary key ──► Row

Demo mode never persists a write but still answers with a result of the
same shape: ``create`` runs inside a transaction (or savepoint) that is
rolled back, ``update`` returns the current row, ``delete`` returns the
number of rows it would have removed.

Tags:
    crud, resources, converged, demo-mode, resource-spine

Doc-Types:
    api-reference
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any, TypeVar

from resource_spine.core.coercion import CONVERGED_COLUMN, JSON_PREFIX, CoercionPlan
from resource_spine.core.converged import (
    DEFAULT_CODEC,
    ConvergedCodec,
    encode_converged,
    expand_converged,
    merge_converged,
)
from resource_spine.core.errors import (
    EmptyUpdateError,
    MissingIdentifierError,
    RecordNotFoundError,
)
from resource_spine.core.escaping import to_json
from resource_spine.core.logging import get_logger
from resource_spine.core.resource import ResourceDescriptor

if TYPE_CHECKING:
    from resource_spine.core.connection import Connection

logger = get_logger(__name__)

Row = dict[str, Any]
T = TypeVar("T")

DEMO_SAVEPOINT = "resource_spine_demo"


def encode_json_attributes(attributes: Mapping[str, Any]) -> dict[str, Any]:
    """Serialize the values of ``json_*`` columns; ``None`` stays NULL."""
    return {
        column: to_json(value)
        if column.startswith(JSON_PREFIX) and value is not None
        else value
        for column, value in attributes.items()
    }


class ResourceStore:
    """CRUD operations bound to one connection."""

    def __init__(self, conn: Connection, codec: ConvergedCodec = DEFAULT_CODEC):
        self._conn = conn
        self._codec = codec

    def _resolve(self, resource: str | ResourceDescriptor) -> ResourceDescriptor:
        return self._conn.registry.resolve(resource)

    def _is_demo(self, demo: bool | None) -> bool:
        return self._conn.demo if demo is None else demo

    # -- Read --------------------------------------------------------------

    def read(
        self,
        resource: str | ResourceDescriptor,
        attributes: Mapping[str, Any] | None = None,
        columns: Iterable[str] | None = None,
    ) -> list[Row]:
        """Rows of ``resource`` matching every attribute predicate."""
        descriptor = self._resolve(resource)
        sql = self._conn.builder.select(descriptor.table, attributes, columns)
        result = self._conn.query(sql)

        # The converged blob is decoded by the codec, not the JSON rule.
        skip = (CONVERGED_COLUMN,) if descriptor.converged else ()
        plan = CoercionPlan.from_columns(result.columns, descriptor.json_columns, skip)
        return [
            expand_converged(descriptor.converged, plan.apply(dict(row)), self._codec)
            for row in result.rows
        ]

    def _read_one(self, descriptor: ResourceDescriptor, id_: Any) -> Row:
        rows = self.read(descriptor, {descriptor.primary_key: id_})
        if not rows:
            raise RecordNotFoundError(
                f"No {descriptor.table} with {descriptor.primary_key} {id_!r}."
            ).with_context(table=descriptor.table, identifier=str(id_))
        return rows[0]

    # -- Write helpers -----------------------------------------------------

    def _prepare(
        self,
        descriptor: ResourceDescriptor,
        existing: Mapping[str, Any] | None,
        attributes: Mapping[str, Any],
    ) -> dict[str, Any]:
        attributes = encode_json_attributes(attributes)
        if not descriptor.converged:
            return attributes
        physical, converged = merge_converged(descriptor.converged, existing, attributes)
        physical[CONVERGED_COLUMN] = encode_converged(converged, self._codec)
        return physical

    def _simulate(self, write: Callable[[], T]) -> T:
        """Run ``write`` and undo it, leaving any outer transaction intact."""
        transactions = self._conn.transactions
        if transactions.active:
            transactions.savepoint(DEMO_SAVEPOINT)
            try:
                return write()
            finally:
                # A failed statement already rolled the whole transaction back
                if transactions.active:
                    transactions.rollback_to(DEMO_SAVEPOINT)
                    transactions.release(DEMO_SAVEPOINT)

        transactions.start()
        try:
            return write()
        finally:
            transactions.rollback()

    # -- Create ------------------------------------------------------------

    def create(
        self,
        resource: str | ResourceDescriptor,
        attributes: Mapping[str, Any] | None = None,
        *,
        demo: bool | None = None,
    ) -> Row:
        """Insert one row and return it as stored."""
        descriptor = self._resolve(resource)
        physical = self._prepare(descriptor, None, dict(attributes or {}))
        sql = self._conn.builder.insert(descriptor.table, physical)

        def write() -> Row:
            result = self._conn.query(sql)
            id_ = physical.get(descriptor.primary_key)
            if id_ is None:
                id_ = result.lastrowid
            return self._read_one(descriptor, id_)

        if self._is_demo(demo):
            logger.info("demo_write_simulated", operation="create", table=descriptor.table)
            return self._simulate(write)
        return write()

    # -- Update ------------------------------------------------------------

    def update(
        self,
        resource: str | ResourceDescriptor,
        attributes: Mapping[str, Any],
        *,
        demo: bool | None = None,
    ) -> Row:
        """Update one row by primary key and return it as stored.

        Raises:
            MissingIdentifierError: ``<table>_id`` absent or null.
            EmptyUpdateError: Nothing to set besides the primary key.
            RecordNotFoundError: No row with that primary key.
        """
        descriptor = self._resolve(resource)
        key = descriptor.primary_key
        attributes = dict(attributes)

        if attributes.get(key) is None:
            raise MissingIdentifierError(
                "ID is required for update.",
                field=key,
            ).with_context(table=descriptor.table)
        id_ = attributes.pop(key)

        if not attributes:
            raise EmptyUpdateError(
                "Updates require at least one attribute.",
                field=key,
                value=id_,
            ).with_context(table=descriptor.table, identifier=str(id_))

        if self._is_demo(demo):
            logger.info("demo_write_simulated", operation="update", table=descriptor.table)
            return self._read_one(descriptor, id_)

        existing = self._read_one(descriptor, id_) if descriptor.converged else None
        physical = self._prepare(descriptor, existing, attributes)
        self._conn.query(self._conn.builder.update(descriptor.table, key, id_, physical))
        return self._read_one(descriptor, id_)

    # -- Delete ------------------------------------------------------------

    def delete(
        self,
        resource: str | ResourceDescriptor,
        id_: Any,
        *,
        demo: bool | None = None,
    ) -> int:
        """Delete by primary key; returns the affected row count (0 is fine)."""
        descriptor = self._resolve(resource)
        key = descriptor.primary_key

        if self._is_demo(demo):
            logger.info("demo_write_simulated", operation="delete", table=descriptor.table)
            if isinstance(id_, (list, tuple)) and not id_:
                return 0
            row = self._conn.query(
                self._conn.builder.count(descriptor.table, {key: id_})
            ).first()
            return int(row["count"]) if row else 0

        result = self._conn.query(self._conn.builder.delete(descriptor.table, key, id_))
        return result.rowcount


__all__ = [
    "Row",
    "ResourceStore",
    "encode_json_attributes",
]
