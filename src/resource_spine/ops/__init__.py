"""
Operations layer.

Thin, typed functions on top of :mod:`resource_spine.core` that implement
application behaviour. Each takes a :class:`CallContext` first.
"""

from resource_spine.ops.context import CallContext
from resource_spine.ops.thermostat import (
    THERMOSTAT,
    dismiss_alert,
    get_thermostat,
    restore_alert,
    sync_thermostats,
)

__all__ = [
    "CallContext",
    "THERMOSTAT",
    "get_thermostat",
    "dismiss_alert",
    "restore_alert",
    "sync_thermostats",
]
