"""LabMachine ORM model: a schedulable physical resource with an optional current job."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from labconsole.database import Base


class MachineCategory(str, enum.Enum):
    printer = "3D Printer"
    cnc = "CNC"
    laser_cutter = "Laser Cutter"
    workstation = "Workstation"


class MachineStatus(str, enum.Enum):
    idle = "Idle"
    in_use = "In Use"
    maintenance = "Maintenance"
    offline = "Offline"


class Machine(Base):
    __tablename__ = "machines"

    machine_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    category = Column(SAEnum(MachineCategory), nullable=False)
    model = Column(String(150), nullable=False, default="")
    image_url = Column(String(500), nullable=True)
    status = Column(SAEnum(MachineStatus), nullable=False, default=MachineStatus.idle)

    # Current job; all four are set together or all are NULL
    job_member_id = Column(String(36), ForeignKey("members.member_id"), nullable=True)
    job_started_at = Column(DateTime(timezone=True), nullable=True)
    job_estimated_minutes = Column(Integer, nullable=True)
    job_completion_at = Column(DateTime(timezone=True), nullable=True)

    # Set when an operator removes the machine; retired machines keep their history
    retired_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def has_job(self) -> bool:
        return self.job_completion_at is not None

    @property
    def current_job(self):
        if not self.has_job:
            return None
        return {
            "member_id": self.job_member_id,
            "started_at": self.job_started_at,
            "estimated_minutes": self.job_estimated_minutes,
            "completion_at": self.job_completion_at,
        }

    def clear_job(self) -> None:
        self.job_member_id = None
        self.job_started_at = None
        self.job_estimated_minutes = None
        self.job_completion_at = None
