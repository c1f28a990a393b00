"""Pydantic schemas for Members."""
from datetime import datetime
from pydantic import BaseModel

from labconsole.models.member import MemberRole


class MemberCreate(BaseModel):
    display_name: str
    role: MemberRole = MemberRole.member


class MemberOut(BaseModel):
    member_id: str
    display_name: str
    role: MemberRole
    is_operator: bool
    created_at: datetime

    model_config = {"from_attributes": True}
