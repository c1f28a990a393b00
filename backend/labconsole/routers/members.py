"""Member API routes."""
import logging
from fastapi import APIRouter, Depends, status

from labconsole.deps import get_store
from labconsole.models.audit_log import AuditAction
from labconsole.models.member import Member
from labconsole.schemas.member import MemberCreate, MemberOut
from labconsole.services import audit_service
from labconsole.store import LabStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=MemberOut, status_code=status.HTTP_201_CREATED)
def create_member(payload: MemberCreate, store: LabStore = Depends(get_store)):
    """Create a member. Roles admin/superadmin carry operator capability."""
    member = store.insert(Member(**payload.model_dump()))
    audit_service.record(
        store,
        AuditAction.member_created,
        None,
        "member",
        member.member_id,
        f"Created member: {member.display_name} ({member.role.value})",
    )
    store.commit()
    store.refresh(member)
    logger.info("Created member %s (%s)", member.member_id, member.display_name)
    return member


@router.get("/", response_model=list[MemberOut])
def list_members(store: LabStore = Depends(get_store)):
    """List all members."""
    return store.list(Member, order_by=Member.display_name)


@router.get("/{member_id}", response_model=MemberOut)
def get_member(member_id: str, store: LabStore = Depends(get_store)):
    """Fetch a single member by ID."""
    return store.member(member_id)
