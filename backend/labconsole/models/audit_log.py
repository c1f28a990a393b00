"""AuditLog ORM model: append-only ledger of actor-driven writes."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, JSON, Enum as SAEnum
from sqlalchemy.sql import func
from labconsole.database import Base


class AuditAction(str, enum.Enum):
    member_created = "MEMBER_CREATED"
    machine_created = "LAB_MACHINE_CREATED"
    machine_status_changed = "LAB_MACHINE_STATUS_CHANGED"
    machine_retired = "LAB_MACHINE_RETIRED"
    reservation_created = "LAB_RESERVATION_CREATED"
    reservation_approved = "LAB_RESERVATION_APPROVED"
    reservation_rejected = "LAB_RESERVATION_REJECTED"
    reservation_completed = "LAB_RESERVATION_COMPLETED"
    reservation_cancelled = "LAB_RESERVATION_CANCELLED"
    inventory_created = "INVENTORY_CREATED"
    inventory_checkout = "INVENTORY_CHECKOUT"
    inventory_checkin = "INVENTORY_CHECKIN"


SYSTEM_ACTOR = "system"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    log_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    action_type = Column(SAEnum(AuditAction), nullable=False)
    actor_id = Column(String(36), nullable=False, default=SYSTEM_ACTOR)
    entity_type = Column(String(50), nullable=False)
    entity_id = Column(String(36), nullable=False)
    details = Column(String(500), nullable=False, default="")
    before_snapshot = Column(JSON, nullable=True)
    after_snapshot = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
