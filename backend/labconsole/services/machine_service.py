"""Machine service: registration, status changes and the live console view."""
import logging
from datetime import datetime
from typing import Any, Optional

from labconsole.errors import InvalidTransition, Unauthorized, ValidationError
from labconsole.models.audit_log import AuditAction
from labconsole.models.machine import Machine, MachineCategory, MachineStatus
from labconsole.models.member import Member
from labconsole.models.reservation import BLOCKING_STATUSES, Reservation, ReservationStatus
from labconsole.services import audit_service, status_engine
from labconsole.services.lab_state import refresh_lab_state
from labconsole.store import LabStore
from labconsole.utils.timemath import ensure_utc, is_overdue, progress_percent, remaining_minutes, utcnow

logger = logging.getLogger(__name__)


def create_machine(
    store: LabStore,
    actor_id: str,
    name: str,
    category: MachineCategory,
    model: str = "",
    image_url: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Machine:
    """Register a machine; new machines start Idle with no job."""
    actor = store.member(actor_id)
    if not actor.is_operator:
        raise Unauthorized("Only operators may add machines", actor_id=actor.member_id)
    if not name or not name.strip():
        raise ValidationError("Machine name is required")

    machine = Machine(
        name=name.strip(),
        category=MachineCategory(category),
        model=(model or "").strip(),
        image_url=image_url,
        status=MachineStatus.idle,
    )
    store.insert(machine)
    audit_service.record(
        store,
        AuditAction.machine_created,
        actor,
        "machine",
        machine.machine_id,
        f"Added new machine: {machine.name}",
        after=audit_service.machine_snapshot(machine),
        now=now,
    )
    store.commit()
    store.refresh(machine)
    logger.info("Created machine '%s' (%s)", machine.name, machine.machine_id)
    return machine


def _current_reservations(store: LabStore, machine: Machine, now: datetime) -> list[Reservation]:
    """Approved reservations on ``machine`` whose window covers ``now``."""
    return [
        r
        for r in store.reservations_for_machine(machine.machine_id, frozenset({ReservationStatus.approved}))
        if ensure_utc(r.start_time_utc) <= now < ensure_utc(r.end_time_utc)
    ]


def _holds_current_reservation(store: LabStore, machine: Machine, member: Member, now: datetime) -> bool:
    return any(r.member_id == member.member_id for r in _current_reservations(store, machine, now))


def change_status(
    store: LabStore,
    machine_id: str,
    target: MachineStatus,
    actor_id: str,
    job_member_id: Optional[str] = None,
    estimated_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Machine:
    """Apply a requested status change on behalf of ``actor_id``.

    Beyond the engine's table, a non-operator may start a job only for
    themselves while holding an Approved reservation covering now, and may
    end only their own job.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    actor = store.member(actor_id)
    machine = store.machine(machine_id)
    if machine.retired_at is not None:
        raise InvalidTransition("Machine has been retired", machine_id=machine.machine_id)
    target = MachineStatus(target)
    current = MachineStatus(machine.status)

    if not actor.is_operator and status_engine.can_transition_machine(current, target):
        if target == MachineStatus.in_use:
            job_member_id = job_member_id or actor.member_id
            if job_member_id != actor.member_id or not _holds_current_reservation(store, machine, actor, now):
                raise Unauthorized(
                    "Members may only start a job during their own approved reservation",
                    actor_id=actor.member_id,
                )
        elif current == MachineStatus.in_use and target == MachineStatus.idle:
            if machine.job_member_id != actor.member_id:
                raise Unauthorized("Only the job owner or an operator may end this job", actor_id=actor.member_id)

    if job_member_id is not None:
        store.member(job_member_id)

    before = audit_service.machine_snapshot(machine)
    status_engine.transition_machine(
        machine,
        target,
        actor,
        job_member_id=job_member_id,
        estimated_minutes=estimated_minutes,
        now=now,
    )
    if current == MachineStatus.in_use and target != MachineStatus.in_use:
        # Keep read-time convergence from restarting the job just ended
        for reservation in _current_reservations(store, machine, now):
            reservation.job_released_at = now

    audit_service.record(
        store,
        AuditAction.machine_status_changed,
        actor,
        "machine",
        machine.machine_id,
        f"Machine {machine.name}: {current.value} -> {target.value}",
        before=before,
        after=audit_service.machine_snapshot(machine),
        now=now,
    )
    store.commit()
    store.refresh(machine)
    return machine


def retire_machine(
    store: LabStore,
    machine_id: str,
    actor_id: str,
    now: Optional[datetime] = None,
) -> Machine:
    """Take a machine out of service (operators only).

    The machine goes Offline with its job cleared and drops out of the
    console grid. Its Pending and Approved reservations are cancelled,
    each with its own ledger entry.
    """
    now = ensure_utc(now) if now is not None else utcnow()
    actor = store.member(actor_id)
    if not actor.is_operator:
        raise Unauthorized("Only operators may remove machines", actor_id=actor.member_id)
    machine = store.machine(machine_id)
    if machine.retired_at is not None:
        raise InvalidTransition("Machine has already been retired", machine_id=machine.machine_id)

    before = audit_service.machine_snapshot(machine)
    cancelled = []
    for reservation in store.reservations_for_machine(machine.machine_id, BLOCKING_STATUSES):
        reservation_before = audit_service.reservation_snapshot(reservation)
        status_engine.cancel_reservation(reservation, actor, now=now)
        audit_service.record(
            store,
            AuditAction.reservation_cancelled,
            actor,
            "reservation",
            reservation.reservation_id,
            f"Reservation {reservation.reservation_id} cancelled: machine {machine.name} removed",
            before=reservation_before,
            after=audit_service.reservation_snapshot(reservation),
            now=now,
        )
        cancelled.append(reservation.reservation_id)

    machine.clear_job()
    machine.status = MachineStatus.offline
    machine.retired_at = now
    audit_service.record(
        store,
        AuditAction.machine_retired,
        actor,
        "machine",
        machine.machine_id,
        f"Removed machine: {machine.name} ({len(cancelled)} reservations cancelled)",
        before=before,
        after=audit_service.machine_snapshot(machine),
        now=now,
    )
    store.commit()
    store.refresh(machine)
    logger.info("Retired machine %s, cancelled %d reservations", machine.machine_id, len(cancelled))
    return machine


def list_machines(store: LabStore, now: Optional[datetime] = None) -> list[Machine]:
    refresh_lab_state(store, now)
    return store.machines()


def get_machine(store: LabStore, machine_id: str, now: Optional[datetime] = None) -> Machine:
    refresh_lab_state(store, now)
    return store.machine(machine_id)


def machine_view(machine: Machine, now: Optional[datetime] = None) -> dict[str, Any]:
    """Console card data: the machine plus derived job timing."""
    view: dict[str, Any] = {
        "machine_id": machine.machine_id,
        "name": machine.name,
        "category": machine.category,
        "model": machine.model,
        "image_url": machine.image_url,
        "status": machine.status,
        "current_job": None,
        "retired_at": machine.retired_at,
        "created_at": machine.created_at,
    }
    if machine.has_job:
        view["current_job"] = {
            **machine.current_job,
            "remaining_minutes": remaining_minutes(machine.job_completion_at, now),
            "progress_percent": progress_percent(
                machine.job_started_at,
                machine.job_completion_at,
                machine.job_estimated_minutes,
                now,
            ),
            "overdue": is_overdue(machine.job_completion_at, now),
        }
    return view
