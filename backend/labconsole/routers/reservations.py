"""Reservation API routes: booking, availability and the approval workflow."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query, status

from labconsole.deps import get_store
from labconsole.models.reservation import ReservationStatus
from labconsole.schemas.reservation import (
    AvailabilityOut,
    AvailabilityQuery,
    ReservationCreate,
    ReservationOut,
)
from labconsole.services import reservation_service
from labconsole.store import LabStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/availability", response_model=AvailabilityOut)
def check_availability(payload: AvailabilityQuery, store: LabStore = Depends(get_store)):
    """Check a candidate window against the machine's Pending/Approved bookings."""
    result = reservation_service.check_machine_availability(
        store,
        machine_id=payload.machine_id,
        start=payload.start_time_utc,
        end=payload.end_time_utc,
    )
    return AvailabilityOut(
        machine_id=payload.machine_id,
        available=result["available"],
        conflicts=[ReservationOut.model_validate(r) for r in result["conflicts"]],
    )


@router.post("/", response_model=ReservationOut, status_code=status.HTTP_201_CREATED)
def create_reservation(
    payload: ReservationCreate,
    actor_id: str = Query(..., description="ID of the member making the booking"),
    store: LabStore = Depends(get_store),
):
    """Book a machine window. Members book for themselves, operators for anyone."""
    return reservation_service.create_reservation(
        store,
        machine_id=payload.machine_id,
        member_id=payload.member_id or actor_id,
        start=payload.start_time_utc,
        end=payload.end_time_utc,
        actor_id=actor_id,
        purpose=payload.purpose,
    )


@router.get("/", response_model=list[ReservationOut])
def list_reservations(
    machine_id: Optional[str] = Query(None),
    member_id: Optional[str] = Query(None),
    status_filter: Optional[ReservationStatus] = Query(None),
    upcoming_only: bool = Query(False),
    store: LabStore = Depends(get_store),
):
    """List reservations with optional filters, ordered by start time."""
    return reservation_service.list_reservations(
        store,
        machine_id=machine_id,
        member_id=member_id,
        status=status_filter,
        upcoming_only=upcoming_only,
    )


@router.get("/{reservation_id}", response_model=ReservationOut)
def get_reservation(reservation_id: str, store: LabStore = Depends(get_store)):
    return reservation_service.get_reservation(store, reservation_id)


@router.post("/{reservation_id}/approve", response_model=ReservationOut)
def approve_reservation(
    reservation_id: str,
    actor_id: str = Query(...),
    store: LabStore = Depends(get_store),
):
    """Approve a Pending reservation (operators only; 409 on overlap)."""
    return reservation_service.approve_reservation(store, reservation_id, actor_id)


@router.post("/{reservation_id}/reject", response_model=ReservationOut)
def reject_reservation(
    reservation_id: str,
    actor_id: str = Query(...),
    store: LabStore = Depends(get_store),
):
    return reservation_service.reject_reservation(store, reservation_id, actor_id)


@router.post("/{reservation_id}/complete", response_model=ReservationOut)
def complete_reservation(
    reservation_id: str,
    actor_id: Optional[str] = Query(None),
    store: LabStore = Depends(get_store),
):
    """Mark an Approved reservation Completed (425 before its end time)."""
    return reservation_service.complete_reservation(store, reservation_id, actor_id)


@router.post("/{reservation_id}/cancel", response_model=ReservationOut)
def cancel_reservation(
    reservation_id: str,
    actor_id: str = Query(...),
    store: LabStore = Depends(get_store),
):
    return reservation_service.cancel_reservation(store, reservation_id, actor_id)
