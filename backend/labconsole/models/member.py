"""Member ORM model: the actors of the lab console."""
import enum
import uuid
from sqlalchemy import Column, String, DateTime, Enum as SAEnum
from sqlalchemy.sql import func
from labconsole.database import Base


class MemberRole(str, enum.Enum):
    member = "member"
    admin = "admin"
    superadmin = "superadmin"


OPERATOR_ROLES = frozenset({MemberRole.admin, MemberRole.superadmin})


class Member(Base):
    __tablename__ = "members"

    member_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    display_name = Column(String(100), nullable=False)
    role = Column(SAEnum(MemberRole), nullable=False, default=MemberRole.member)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_operator(self) -> bool:
        return self.role is not None and MemberRole(self.role) in OPERATOR_ROLES
