"""Pydantic schemas for audit log entries."""
from datetime import datetime
from typing import Any, Optional
from pydantic import BaseModel

from labconsole.models.audit_log import AuditAction


class AuditLogOut(BaseModel):
    log_id: str
    action_type: AuditAction
    actor_id: str
    entity_type: str
    entity_id: str
    details: str
    before_snapshot: Optional[dict[str, Any]] = None
    after_snapshot: Optional[dict[str, Any]] = None
    created_at: datetime

    model_config = {"from_attributes": True}
