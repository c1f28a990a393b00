"""Reservation ORM model: a request to use a machine during a time window."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, Enum as SAEnum
from sqlalchemy.sql import func
from labconsole.database import Base


class ReservationStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"
    completed = "Completed"
    cancelled = "Cancelled"


# Statuses that hold the machine's time window
BLOCKING_STATUSES = frozenset({ReservationStatus.pending, ReservationStatus.approved})
TERMINAL_STATUSES = frozenset({
    ReservationStatus.rejected,
    ReservationStatus.completed,
    ReservationStatus.cancelled,
})


class Reservation(Base):
    __tablename__ = "reservations"
    __table_args__ = (Index("ix_reservations_machine_start", "machine_id", "start_time_utc"),)

    reservation_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    machine_id = Column(String(36), ForeignKey("machines.machine_id"), nullable=False)
    member_id = Column(String(36), ForeignKey("members.member_id"), nullable=False)
    start_time_utc = Column(DateTime(timezone=True), nullable=False)
    end_time_utc = Column(DateTime(timezone=True), nullable=False)
    purpose = Column(String(500), nullable=False, default="General Use")
    status = Column(SAEnum(ReservationStatus), nullable=False, default=ReservationStatus.pending)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    decided_by_member_id = Column(String(36), ForeignKey("members.member_id"), nullable=True)
    # Set when the job running under this booking was ended by hand;
    # read-time convergence does not restart it
    job_released_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
