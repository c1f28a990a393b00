"""Pydantic schemas for lab machines."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from labconsole.models.machine import MachineCategory, MachineStatus


class MachineCreate(BaseModel):
    name: str
    category: MachineCategory
    model: str = ""
    image_url: Optional[str] = None


class MachineStatusChange(BaseModel):
    status: MachineStatus
    job_member_id: Optional[str] = None
    estimated_minutes: Optional[int] = Field(default=None, gt=0)


class CurrentJobOut(BaseModel):
    member_id: str
    started_at: datetime
    estimated_minutes: int
    completion_at: datetime
    remaining_minutes: int
    progress_percent: float
    overdue: bool


class MachineOut(BaseModel):
    machine_id: str
    name: str
    category: MachineCategory
    model: str
    image_url: Optional[str] = None
    status: MachineStatus
    current_job: Optional[CurrentJobOut] = None
    retired_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
