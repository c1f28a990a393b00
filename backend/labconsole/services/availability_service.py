"""Availability calculator: conflict detection for a candidate machine window."""
import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Optional

from labconsole.config import settings
from labconsole.errors import ValidationError
from labconsole.models.machine import Machine
from labconsole.models.reservation import Reservation, ReservationStatus, BLOCKING_STATUSES
from labconsole.utils.timemath import ensure_utc, intervals_overlap

logger = logging.getLogger(__name__)


def max_reservation_duration() -> timedelta:
    return timedelta(minutes=settings.MAX_RESERVATION_MINUTES)


def validate_window(
    start: datetime,
    end: datetime,
    max_duration: Optional[timedelta] = None,
) -> None:
    """Raise ValidationError for an empty/inverted window or one over the maximum."""
    start, end = ensure_utc(start), ensure_utc(end)
    if end <= start:
        raise ValidationError(
            "Reservation must end after it starts",
            start=start.isoformat(),
            end=end.isoformat(),
        )
    limit = max_duration if max_duration is not None else max_reservation_duration()
    if end - start > limit:
        raise ValidationError(
            f"Reservation exceeds the maximum duration of {int(limit.total_seconds() // 60)} minutes",
            requested_minutes=(end - start).total_seconds() / 60,
            max_minutes=limit.total_seconds() / 60,
        )


def check_availability(
    machine: Machine,
    candidate_start: datetime,
    candidate_end: datetime,
    existing_reservations: Iterable[Reservation],
    max_duration: Optional[timedelta] = None,
    exclude_reservation_id: Optional[str] = None,
) -> dict[str, Any]:
    """Report whether ``machine`` is free for [candidate_start, candidate_end).

    Only Pending and Approved reservations on the same machine can conflict.
    Pure: reads its arguments, touches nothing else.
    """
    validate_window(candidate_start, candidate_end, max_duration)

    conflicts = [
        r for r in existing_reservations
        if r.machine_id == machine.machine_id
        and ReservationStatus(r.status) in BLOCKING_STATUSES
        and (exclude_reservation_id is None or r.reservation_id != exclude_reservation_id)
        and intervals_overlap(r.start_time_utc, r.end_time_utc, candidate_start, candidate_end)
    ]
    conflicts.sort(key=lambda r: ensure_utc(r.start_time_utc))

    logger.debug(
        "Availability for machine %s %s-%s: %d conflict(s)",
        machine.machine_id, candidate_start, candidate_end, len(conflicts),
    )
    return {"available": not conflicts, "conflicts": conflicts}


def conflict_summary(conflicts: Iterable[Reservation]) -> list[dict[str, Any]]:
    """JSON-safe description of conflicting reservations for error payloads."""
    return [
        {
            "reservation_id": r.reservation_id,
            "member_id": r.member_id,
            "status": ReservationStatus(r.status).value,
            "start": ensure_utc(r.start_time_utc).isoformat(),
            "end": ensure_utc(r.end_time_utc).isoformat(),
        }
        for r in conflicts
    ]
