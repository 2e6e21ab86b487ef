"""
Converged attributes: sparse soft columns stored in one serialized blob.

A resource may declare soft columns (``{"nickname": "string", "floor":
"int"}``) that have no physical column. Their values live together in the
``converged`` column. On write, incoming soft values are merged over the
row's current soft values and collapsed into the blob; on read the blob is
expanded back into ordinary row keys and the ``converged`` key is removed.

Examples:
    >>> spec = {"nickname": ConvergedType.STRING, "floor": ConvergedType.INT}
    >>> merge_converged(spec, {"floor": 2, "nickname": "den"}, {"floor": "3", "name": "x"})
    ({'name': 'x'}, {'nickname': 'den', 'floor': 3})
    >>> merge_converged(spec, {"floor": 2}, {"floor": None})
    ({}, {})

Guardrails:
    ❌ DON'T: Declare a soft column with the same name as a physical column
    ✅ DO: Promote a soft column by adding the physical column and removing
       the declaration in the same release

Tags:
    converged, schema-evolution, json, resource-spine
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from enum import Enum
from typing import Any, Protocol

from resource_spine.core.coercion import CONVERGED_COLUMN
from resource_spine.core.errors import (
    ConvergedColumnCollisionError,
    InvalidConvergedValueError,
)
from resource_spine.core.logging import get_logger

logger = get_logger(__name__)


class ConvergedType(str, Enum):
    """Declared type of a soft column."""

    INT = "int"
    FLOAT = "float"
    STRING = "string"


ConvergedSpec = Mapping[str, ConvergedType]


class ConvergedCodec(Protocol):
    """Serialization of the converged map to and from the blob column."""

    def encode(self, converged: Mapping[str, Any]) -> str: ...

    def decode(self, blob: str) -> dict[str, Any]: ...


class JsonConvergedCodec:
    """Default codec: compact JSON object."""

    def encode(self, converged: Mapping[str, Any]) -> str:
        return json.dumps(dict(converged), separators=(",", ":"))

    def decode(self, blob: str) -> dict[str, Any]:
        return json.loads(blob)


DEFAULT_CODEC = JsonConvergedCodec()


def encode_converged(converged: Mapping[str, Any], codec: ConvergedCodec = DEFAULT_CODEC) -> str:
    return codec.encode(converged)


def decode_converged(blob: str, codec: ConvergedCodec = DEFAULT_CODEC) -> dict[str, Any]:
    return codec.decode(blob)


def coerce_converged(column: str, declared: ConvergedType | str, value: Any) -> Any:
    """Cast ``value`` to the declared soft-column type."""
    declared = ConvergedType(declared)
    try:
        if isinstance(value, (dict, list, tuple)):
            raise TypeError(f"cannot store {type(value).__name__} in a soft column")
        if declared is ConvergedType.INT:
            if isinstance(value, str):
                value = value.strip()
                try:
                    return int(value)
                except ValueError:
                    return int(float(value))
            return int(value)
        if declared is ConvergedType.FLOAT:
            return float(value)
        if isinstance(value, bool):
            return "1" if value else "0"
        return str(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidConvergedValueError(
            f"Value for converged column `{column}` is not a valid {declared.value}.",
            field=column,
            value=value,
            cause=e,
        ) from e


def merge_converged(
    spec: ConvergedSpec,
    existing: Mapping[str, Any] | None,
    attributes: Mapping[str, Any],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Split ``attributes`` into physical attributes and the merged soft map.

    Args:
        spec: Declared soft columns of the resource.
        existing: Current (expanded) row, or ``None`` when creating.
        attributes: Incoming write attributes.

    Returns:
        ``(physical_attributes, converged)``. ``converged`` holds the
        existing non-null soft values overlaid with the incoming ones; an
        incoming ``None`` removes the key.
    """
    physical = dict(attributes)
    converged: dict[str, Any] = {}
    existing = existing or {}

    for column, declared in spec.items():
        if existing.get(column) is not None:
            converged[column] = existing[column]
        if column in physical:
            value = physical.pop(column)
            if value is None:
                converged.pop(column, None)
            else:
                converged[column] = coerce_converged(column, declared, value)

    return physical, converged


def expand_converged(
    spec: ConvergedSpec,
    row: dict[str, Any],
    codec: ConvergedCodec = DEFAULT_CODEC,
) -> dict[str, Any]:
    """Replace the ``converged`` key of ``row`` with one key per soft column."""
    if not spec or CONVERGED_COLUMN not in row:
        return row

    blob = row.pop(CONVERGED_COLUMN)
    if isinstance(blob, (str, bytes, bytearray)):
        try:
            blob = codec.decode(blob)
        except ValueError as e:
            logger.warning("converged_blob_undecodable", error=str(e))
            blob = None
    blob = blob or {}

    for column in spec:
        if column in row:
            raise ConvergedColumnCollisionError(
                f"Column `{column}` exists; cannot be overwritten by converged column."
            ).with_context(identifier=column)
        row[column] = blob.get(column)
    return row


__all__ = [
    "ConvergedType",
    "ConvergedSpec",
    "ConvergedCodec",
    "JsonConvergedCodec",
    "DEFAULT_CODEC",
    "encode_converged",
    "decode_converged",
    "coerce_converged",
    "merge_converged",
    "expand_converged",
]
