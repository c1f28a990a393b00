"""Reservation service: creation, approval lifecycle and availability queries.

Responsibilities:
- Actor resolution and authorization (members book for themselves, operators for anyone)
- Window validation and conflict detection via the availability calculator
- Status transitions via the status engine
- Audit ledger entry for every actor-driven write
- One commit per operation; a raised error leaves the session uncommitted
"""
import logging
from datetime import datetime
from typing import Any, Optional

from labconsole.config import settings
from labconsole.errors import Conflict, Unauthorized, ValidationError
from labconsole.models.audit_log import AuditAction
from labconsole.models.machine import MachineStatus
from labconsole.models.reservation import Reservation, ReservationStatus, BLOCKING_STATUSES
from labconsole.services import audit_service, status_engine
from labconsole.services.availability_service import check_availability, conflict_summary
from labconsole.services.lab_state import refresh_lab_state
from labconsole.store import LabStore
from labconsole.utils.timemath import ensure_utc, utcnow

logger = logging.getLogger(__name__)

UNBOOKABLE_STATUSES = frozenset({MachineStatus.maintenance, MachineStatus.offline})


def check_machine_availability(
    store: LabStore,
    machine_id: str,
    start: datetime,
    end: datetime,
) -> dict[str, Any]:
    """Availability of a stored machine against its stored reservations."""
    machine = store.machine(machine_id)
    existing = store.reservations_for_machine(machine.machine_id, BLOCKING_STATUSES)
    return check_availability(machine, start, end, existing)


def create_reservation(
    store: LabStore,
    machine_id: str,
    member_id: str,
    start: datetime,
    end: datetime,
    actor_id: str,
    purpose: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """Create a Pending reservation (Approved when auto-approval is on)."""
    actor = store.member(actor_id)
    member = store.member(member_id)
    if member.member_id != actor.member_id and not actor.is_operator:
        raise Unauthorized("Only operators may reserve on behalf of another member", actor_id=actor.member_id)

    machine = store.machine(machine_id)
    if machine.retired_at is not None:
        raise ValidationError("Machine has been retired and cannot be reserved", machine_id=machine.machine_id)
    if MachineStatus(machine.status) in UNBOOKABLE_STATUSES:
        raise ValidationError(
            f"Machine is {MachineStatus(machine.status).value} and cannot be reserved",
            machine_id=machine.machine_id,
        )

    # Competing Pending requests may coexist; an operator picks one on approval
    start, end = ensure_utc(start), ensure_utc(end)
    result = check_machine_availability(store, machine.machine_id, start, end)
    approved_overlaps = [
        r for r in result["conflicts"] if ReservationStatus(r.status) == ReservationStatus.approved
    ]
    if approved_overlaps:
        raise Conflict(
            "Requested window overlaps an approved booking",
            conflicts=conflict_summary(approved_overlaps),
        )

    now = ensure_utc(now) if now is not None else utcnow()
    reservation = Reservation(
        machine_id=machine.machine_id,
        member_id=member.member_id,
        start_time_utc=start,
        end_time_utc=end,
        purpose=(purpose or "").strip() or "General Use",
        status=ReservationStatus.pending,
        created_at=now,
    )
    store.insert(reservation)

    if settings.AUTO_APPROVE_RESERVATIONS and result["available"]:
        # Automatic rule: a free window is approved on creation
        reservation.status = ReservationStatus.approved
        reservation.decided_at = now

    audit_service.record(
        store,
        AuditAction.reservation_created,
        actor,
        "reservation",
        reservation.reservation_id,
        f"Reserved machine {machine.name} for member {member.display_name}",
        after=audit_service.reservation_snapshot(reservation),
        now=now,
    )
    store.commit()
    store.refresh(reservation)
    logger.info(
        "Created reservation %s on machine %s for member %s (%s)",
        reservation.reservation_id, machine.machine_id, member.member_id, reservation.status.value,
    )
    return reservation


def _transition(
    store: LabStore,
    reservation_id: str,
    actor_id: Optional[str],
    action: AuditAction,
    apply,
    now: Optional[datetime],
) -> Reservation:
    """Load, apply one status-engine step, write the ledger entry, commit."""
    actor = store.member(actor_id) if actor_id is not None else None
    reservation = store.reservation(reservation_id)
    before = audit_service.reservation_snapshot(reservation)

    apply(reservation, actor)

    audit_service.record(
        store,
        action,
        actor,
        "reservation",
        reservation.reservation_id,
        f"Reservation {reservation.reservation_id}: {before['status']} -> {reservation.status.value}",
        before=before,
        after=audit_service.reservation_snapshot(reservation),
        now=now,
    )
    store.commit()
    store.refresh(reservation)
    logger.info("Reservation %s is now %s", reservation.reservation_id, reservation.status.value)
    return reservation


def approve_reservation(
    store: LabStore,
    reservation_id: str,
    actor_id: str,
    now: Optional[datetime] = None,
) -> Reservation:
    """Operator approval; re-checks the window against the machine's other bookings."""

    def apply(reservation: Reservation, actor) -> None:
        machine = store.machine(reservation.machine_id)
        peers = store.reservations_for_machine(machine.machine_id, BLOCKING_STATUSES)
        status_engine.approve_reservation(reservation, actor, machine, peers, now=now)

    return _transition(store, reservation_id, actor_id, AuditAction.reservation_approved, apply, now)


def reject_reservation(
    store: LabStore,
    reservation_id: str,
    actor_id: str,
    now: Optional[datetime] = None,
) -> Reservation:
    return _transition(
        store,
        reservation_id,
        actor_id,
        AuditAction.reservation_rejected,
        lambda reservation, actor: status_engine.reject_reservation(reservation, actor, now=now),
        now,
    )


def complete_reservation(
    store: LabStore,
    reservation_id: str,
    actor_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Reservation:
    """Approved -> Completed; TooEarly before the end time."""
    return _transition(
        store,
        reservation_id,
        actor_id,
        AuditAction.reservation_completed,
        lambda reservation, actor: status_engine.complete_reservation(reservation, now=now),
        now,
    )


def cancel_reservation(
    store: LabStore,
    reservation_id: str,
    actor_id: str,
    now: Optional[datetime] = None,
) -> Reservation:
    return _transition(
        store,
        reservation_id,
        actor_id,
        AuditAction.reservation_cancelled,
        lambda reservation, actor: status_engine.cancel_reservation(reservation, actor, now=now),
        now,
    )


def list_reservations(
    store: LabStore,
    machine_id: Optional[str] = None,
    member_id: Optional[str] = None,
    status: Optional[ReservationStatus] = None,
    upcoming_only: bool = False,
    now: Optional[datetime] = None,
) -> list[Reservation]:
    """List reservations after converging time-based state, ordered by start."""
    now = ensure_utc(now) if now is not None else utcnow()
    refresh_lab_state(store, now)
    reservations = store.list(
        Reservation,
        order_by=Reservation.start_time_utc,
        machine_id=machine_id,
        member_id=member_id,
        status=status,
    )
    if upcoming_only:
        reservations = [r for r in reservations if ensure_utc(r.end_time_utc) > now]
    return reservations


def get_reservation(store: LabStore, reservation_id: str, now: Optional[datetime] = None) -> Reservation:
    refresh_lab_state(store, now)
    return store.reservation(reservation_id)
