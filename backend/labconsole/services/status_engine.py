"""Status transition engine for machines and reservations.

Pure functions over model instances: they validate the requested change,
mutate the instance in place, and return it. Persistence, audit entries
and commits belong to the calling service.
"""
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

from labconsole.errors import Conflict, InvalidTransition, TooEarly, Unauthorized, ValidationError
from labconsole.models.machine import Machine, MachineStatus
from labconsole.models.member import Member
from labconsole.models.reservation import Reservation, ReservationStatus, BLOCKING_STATUSES
from labconsole.services.availability_service import check_availability, conflict_summary
from labconsole.utils.timemath import ensure_utc, utcnow

logger = logging.getLogger(__name__)

MACHINE_TRANSITIONS: dict[MachineStatus, frozenset[MachineStatus]] = {
    MachineStatus.idle: frozenset({MachineStatus.in_use, MachineStatus.maintenance, MachineStatus.offline}),
    MachineStatus.in_use: frozenset({MachineStatus.idle, MachineStatus.maintenance, MachineStatus.offline}),
    MachineStatus.maintenance: frozenset({MachineStatus.idle, MachineStatus.offline}),
    MachineStatus.offline: frozenset({MachineStatus.idle}),
}

# Entering or leaving these states needs operator capability
OPERATOR_STATES = frozenset({MachineStatus.maintenance, MachineStatus.offline})


def _is_operator(actor: Optional[Member]) -> bool:
    return actor is not None and actor.is_operator


def _actor_id(actor: Optional[Member]) -> Optional[str]:
    return actor.member_id if actor is not None else None


# ---------------------------------------------------------------------------
# Machines
# ---------------------------------------------------------------------------

def can_transition_machine(current: MachineStatus, target: MachineStatus) -> bool:
    return target in MACHINE_TRANSITIONS.get(current, frozenset())


def assign_job(
    machine: Machine,
    member_id: str,
    started_at: datetime,
    completion_at: datetime,
    estimated_minutes: Optional[int] = None,
) -> Machine:
    """Attach a job to ``machine``; the estimate defaults to the window length."""
    started_at, completion_at = ensure_utc(started_at), ensure_utc(completion_at)
    if completion_at <= started_at:
        raise ValidationError("Job must complete after it starts")
    if estimated_minutes is None:
        estimated_minutes = int(round((completion_at - started_at).total_seconds() / 60))
    machine.job_member_id = member_id
    machine.job_started_at = started_at
    machine.job_estimated_minutes = estimated_minutes
    machine.job_completion_at = completion_at
    return machine


def transition_machine(
    machine: Machine,
    target: MachineStatus,
    actor: Optional[Member],
    job_member_id: Optional[str] = None,
    estimated_minutes: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Machine:
    """Move ``machine`` to ``target`` or raise.

    InvalidTransition is checked before Unauthorized. Offline -> In Use
    must go through Idle.
    """
    target = MachineStatus(target)
    current = MachineStatus(machine.status)

    if not can_transition_machine(current, target):
        raise InvalidTransition(
            f"Machine cannot go from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )

    if (current in OPERATOR_STATES or target in OPERATOR_STATES) and not _is_operator(actor):
        raise Unauthorized(
            f"Only operators may move a machine from {current.value} to {target.value}",
            actor_id=_actor_id(actor),
        )

    if target == MachineStatus.in_use:
        if not job_member_id or not estimated_minutes or estimated_minutes <= 0:
            raise ValidationError("Starting a job needs a member and a positive estimated duration")
        started = ensure_utc(now) if now is not None else utcnow()
        assign_job(
            machine,
            member_id=job_member_id,
            started_at=started,
            completion_at=started + timedelta(minutes=estimated_minutes),
            estimated_minutes=estimated_minutes,
        )
    elif current == MachineStatus.in_use:
        machine.clear_job()

    machine.status = target
    logger.info(
        "Machine %s: %s -> %s (actor %s)",
        machine.machine_id, current.value, target.value, _actor_id(actor),
    )
    return machine


# ---------------------------------------------------------------------------
# Reservations
# ---------------------------------------------------------------------------

def _require_status(reservation: Reservation, allowed: Iterable[ReservationStatus], target: ReservationStatus) -> None:
    current = ReservationStatus(reservation.status)
    if current not in allowed:
        raise InvalidTransition(
            f"Reservation cannot go from {current.value} to {target.value}",
            current=current.value,
            target=target.value,
        )


def _require_operator(actor: Optional[Member], action: str) -> None:
    if not _is_operator(actor):
        raise Unauthorized(f"Only operators may {action} reservations", actor_id=_actor_id(actor))


def _decide(reservation: Reservation, status: ReservationStatus, actor: Optional[Member], now: Optional[datetime]) -> Reservation:
    reservation.status = status
    reservation.decided_at = ensure_utc(now) if now is not None else utcnow()
    reservation.decided_by_member_id = _actor_id(actor)
    return reservation


def approve_reservation(
    reservation: Reservation,
    actor: Optional[Member],
    machine: Machine,
    peers: Iterable[Reservation],
    now: Optional[datetime] = None,
    max_duration: Optional[timedelta] = None,
) -> Reservation:
    """Pending -> Approved, provided no other Pending/Approved booking overlaps."""
    _require_status(reservation, {ReservationStatus.pending}, ReservationStatus.approved)
    _require_operator(actor, "approve")

    result = check_availability(
        machine,
        reservation.start_time_utc,
        reservation.end_time_utc,
        peers,
        max_duration=max_duration,
        exclude_reservation_id=reservation.reservation_id,
    )
    if not result["available"]:
        raise Conflict(
            "Reservation overlaps another booking on this machine",
            conflicts=conflict_summary(result["conflicts"]),
        )
    return _decide(reservation, ReservationStatus.approved, actor, now)


def reject_reservation(
    reservation: Reservation,
    actor: Optional[Member],
    now: Optional[datetime] = None,
) -> Reservation:
    """Pending -> Rejected."""
    _require_status(reservation, {ReservationStatus.pending}, ReservationStatus.rejected)
    _require_operator(actor, "reject")
    return _decide(reservation, ReservationStatus.rejected, actor, now)


def complete_reservation(reservation: Reservation, now: Optional[datetime] = None) -> Reservation:
    """Approved -> Completed once the window has ended."""
    _require_status(reservation, {ReservationStatus.approved}, ReservationStatus.completed)
    current = ensure_utc(now) if now is not None else utcnow()
    end = ensure_utc(reservation.end_time_utc)
    if current < end:
        raise TooEarly(
            "Reservation cannot be completed before it ends",
            end=end.isoformat(),
        )
    reservation.status = ReservationStatus.completed
    return reservation


def cancel_reservation(
    reservation: Reservation,
    actor: Optional[Member],
    now: Optional[datetime] = None,
) -> Reservation:
    """Pending/Approved -> Cancelled, by the requesting member or an operator."""
    _require_status(reservation, BLOCKING_STATUSES, ReservationStatus.cancelled)
    if not _is_operator(actor) and _actor_id(actor) != reservation.member_id:
        raise Unauthorized(
            "Only the requesting member or an operator may cancel a reservation",
            actor_id=_actor_id(actor),
        )
    return _decide(reservation, ReservationStatus.cancelled, actor, now)
