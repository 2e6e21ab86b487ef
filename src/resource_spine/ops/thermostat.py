"""
Thermostat operations.

Alerts live in the thermostat row's ``alerts`` JSON column as a list of
``{"guid": ..., "dismissed": bool, ...}`` objects. Dismissing or restoring
an alert flips its ``dismissed`` flag and writes the whole list back.

``sync_thermostats`` serializes syncs per user across processes with an
advisory lock; a sync that cannot get the lock (or fails) reports ``False``
instead of raising.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from resource_spine.core.crud import Row
from resource_spine.core.errors import RecordNotFoundError, SpineError
from resource_spine.core.logging import get_logger
from resource_spine.core.resource import ResourceDescriptor
from resource_spine.ops.context import CallContext

logger = get_logger(__name__)

THERMOSTAT = ResourceDescriptor("thermostat", json_columns=frozenset({"alerts"}))

SYNC_LOCK_PREFIX = "thermostat_sync"


def get_thermostat(ctx: CallContext, thermostat_id: int) -> Row:
    rows = ctx.conn.read(THERMOSTAT, {THERMOSTAT.primary_key: thermostat_id})
    if not rows:
        raise RecordNotFoundError(f"No thermostat {thermostat_id}.").with_context(
            table=THERMOSTAT.table,
            identifier=str(thermostat_id),
        )
    return rows[0]


def _set_alert_dismissed(
    ctx: CallContext,
    thermostat_id: int,
    guid: str,
    dismissed: bool,
) -> Row:
    thermostat = get_thermostat(ctx, thermostat_id)
    alerts: list[dict[str, Any]] = list(thermostat.get("alerts") or [])

    for alert in alerts:
        if alert.get("guid") == guid:
            alert["dismissed"] = dismissed
            break
    else:
        logger.info("alert_not_found", thermostat_id=thermostat_id, guid=guid)

    return ctx.conn.update(
        THERMOSTAT,
        {THERMOSTAT.primary_key: thermostat_id, "alerts": alerts},
    )


def dismiss_alert(ctx: CallContext, thermostat_id: int, guid: str) -> Row:
    """Mark the alert with ``guid`` as dismissed."""
    return _set_alert_dismissed(ctx, thermostat_id, guid, True)


def restore_alert(ctx: CallContext, thermostat_id: int, guid: str) -> Row:
    """Un-dismiss the alert with ``guid``."""
    return _set_alert_dismissed(ctx, thermostat_id, guid, False)


def sync_lock_name(user_id: int | str | None) -> str:
    return f"{SYNC_LOCK_PREFIX}_{user_id}"


def sync_thermostats(ctx: CallContext, syncer: Callable[[CallContext], None]) -> bool:
    """
    Run ``syncer`` while holding the caller's sync lock.

    Returns:
        ``True`` if the sync ran (or the connection is in demo mode),
        ``False`` if the lock was unavailable or the sync failed.
    """
    if ctx.demo:
        return True

    try:
        with ctx.conn.lock(sync_lock_name(ctx.user_id)):
            syncer(ctx)
    except SpineError as e:
        logger.warning("thermostat_sync_skipped", user_id=ctx.user_id, **e.to_dict())
        return False
    return True


__all__ = [
    "THERMOSTAT",
    "get_thermostat",
    "dismiss_alert",
    "restore_alert",
    "sync_lock_name",
    "sync_thermostats",
]
