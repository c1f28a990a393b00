"""Read-time convergence for the lab console.

Time-driven transitions are not scheduled. They are applied here, when
machine or reservation state is read:

1. Approved reservations whose end has passed become Completed.
2. In Use machines whose job completion has passed become Idle.
3. Idle machines with an Approved reservation covering now become In Use,
   with the job taken from that reservation, unless the job under that
   reservation was already ended by hand.

Between reads the stored state can lag the clock; every read converges it.
These automatic changes are not written to the audit ledger.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from labconsole.models.machine import MachineStatus
from labconsole.models.reservation import ReservationStatus
from labconsole.services.status_engine import assign_job
from labconsole.store import LabStore
from labconsole.utils.timemath import ensure_utc, utcnow

logger = logging.getLogger(__name__)


def _job_finished(machine, now: datetime) -> bool:
    return not machine.has_job or ensure_utc(machine.job_completion_at) <= now


def refresh_lab_state(store: LabStore, now: Optional[datetime] = None, commit: bool = True) -> dict[str, Any]:
    """Apply every elapsed time-based transition and report what changed."""
    now = ensure_utc(now) if now is not None else utcnow()
    changes: dict[str, Any] = {"completed_reservations": [], "freed_machines": [], "started_machines": []}

    approved = store.approved_reservations()
    for reservation in approved:
        if ensure_utc(reservation.end_time_utc) <= now:
            reservation.status = ReservationStatus.completed
            changes["completed_reservations"].append(reservation.reservation_id)

    current = {
        r.machine_id: r
        for r in approved
        if r.status == ReservationStatus.approved
        and r.job_released_at is None
        and ensure_utc(r.start_time_utc) <= now < ensure_utc(r.end_time_utc)
    }

    for machine in store.machines():
        status = MachineStatus(machine.status)
        if status == MachineStatus.in_use and _job_finished(machine, now):
            machine.clear_job()
            machine.status = MachineStatus.idle
            status = MachineStatus.idle
            changes["freed_machines"].append(machine.machine_id)

        reservation = current.get(machine.machine_id)
        if status == MachineStatus.idle and reservation is not None:
            assign_job(
                machine,
                member_id=reservation.member_id,
                started_at=reservation.start_time_utc,
                completion_at=reservation.end_time_utc,
            )
            machine.status = MachineStatus.in_use
            changes["started_machines"].append(machine.machine_id)

    if any(changes.values()):
        store.db.flush()
        if commit:
            store.commit()
        logger.info(
            "Lab state converged: %d completed, %d freed, %d started",
            len(changes["completed_reservations"]),
            len(changes["freed_machines"]),
            len(changes["started_machines"]),
        )
    return changes
