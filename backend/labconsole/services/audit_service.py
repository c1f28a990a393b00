"""Audit ledger: one entry per actor-driven write, with before/after snapshots."""
import logging
from datetime import datetime
from typing import Any, Optional

from labconsole.models.audit_log import AuditAction, AuditLog, SYSTEM_ACTOR
from labconsole.models.inventory import CheckoutRecord
from labconsole.models.machine import Machine
from labconsole.models.member import Member
from labconsole.models.reservation import Reservation
from labconsole.store import LabStore
from labconsole.utils.timemath import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return ensure_utc(value).isoformat() if value else None


def _value(enum_value) -> Optional[str]:
    return getattr(enum_value, "value", enum_value)


def machine_snapshot(machine: Machine) -> dict[str, Any]:
    """Serialize a machine to a JSON-safe dict for the ledger."""
    return {
        "machine_id": machine.machine_id,
        "name": machine.name,
        "status": _value(machine.status),
        "job_member_id": machine.job_member_id,
        "job_started_at": _iso(machine.job_started_at),
        "job_completion_at": _iso(machine.job_completion_at),
        "retired_at": _iso(machine.retired_at),
    }


def reservation_snapshot(reservation: Reservation) -> dict[str, Any]:
    return {
        "reservation_id": reservation.reservation_id,
        "machine_id": reservation.machine_id,
        "member_id": reservation.member_id,
        "start_time_utc": _iso(reservation.start_time_utc),
        "end_time_utc": _iso(reservation.end_time_utc),
        "status": _value(reservation.status),
        "decided_by_member_id": reservation.decided_by_member_id,
        "job_released_at": _iso(reservation.job_released_at),
    }


def checkout_snapshot(checkout: CheckoutRecord) -> dict[str, Any]:
    return {
        "checkout_id": checkout.checkout_id,
        "item_id": checkout.item_id,
        "member_id": checkout.member_id,
        "quantity": checkout.quantity,
        "due_at": _iso(checkout.due_at),
        "returned_at": _iso(checkout.returned_at),
        "condition_on_return": _value(checkout.condition_on_return),
    }


def record(
    store: LabStore,
    action: AuditAction,
    actor: Optional[Member],
    entity_type: str,
    entity_id: str,
    details: str,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> AuditLog:
    """Append a ledger entry. The caller commits."""
    entry = AuditLog(
        action_type=action,
        actor_id=actor.member_id if actor is not None else SYSTEM_ACTOR,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details[:500],
        before_snapshot=before,
        after_snapshot=after,
        created_at=ensure_utc(now) if now is not None else utcnow(),
    )
    store.insert(entry)
    logger.info("Audit %s on %s %s by %s", action.value, entity_type, entity_id, entry.actor_id)
    return entry


def list_entries(
    store: LabStore,
    action_type: Optional[AuditAction] = None,
    actor_id: Optional[str] = None,
    entity_id: Optional[str] = None,
) -> list[AuditLog]:
    """Newest first, optionally filtered."""
    return store.list(
        AuditLog,
        order_by=AuditLog.created_at.desc(),
        action_type=action_type,
        actor_id=actor_id,
        entity_id=entity_id,
    )
