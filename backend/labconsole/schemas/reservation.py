"""Pydantic schemas for Reservations and availability checks."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from labconsole.models.reservation import ReservationStatus


class ReservationCreate(BaseModel):
    machine_id: str
    member_id: Optional[str] = None  # defaults to the acting member
    start_time_utc: datetime
    end_time_utc: datetime
    purpose: Optional[str] = None


class AvailabilityQuery(BaseModel):
    machine_id: str
    start_time_utc: datetime
    end_time_utc: datetime


class ReservationOut(BaseModel):
    reservation_id: str
    machine_id: str
    member_id: str
    start_time_utc: datetime
    end_time_utc: datetime
    purpose: str
    status: ReservationStatus
    decided_at: Optional[datetime] = None
    decided_by_member_id: Optional[str] = None
    job_released_at: Optional[datetime] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AvailabilityOut(BaseModel):
    machine_id: str
    available: bool
    conflicts: list[ReservationOut] = []
