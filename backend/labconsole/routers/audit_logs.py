"""Audit log API routes (read-only)."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, Query

from labconsole.deps import get_store
from labconsole.models.audit_log import AuditAction
from labconsole.schemas.audit_log import AuditLogOut
from labconsole.services import audit_service
from labconsole.store import LabStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=list[AuditLogOut])
def list_audit_logs(
    action_type: Optional[AuditAction] = Query(None),
    actor_id: Optional[str] = Query(None),
    entity_id: Optional[str] = Query(None),
    store: LabStore = Depends(get_store),
):
    """Newest entries first, optionally filtered by action, actor or entity."""
    return audit_service.list_entries(store, action_type=action_type, actor_id=actor_id, entity_id=entity_id)
