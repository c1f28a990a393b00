"""Inventory API routes: items, checkouts and the overdue banner."""
import logging
from fastapi import APIRouter, Depends, Query, status

from labconsole.deps import get_store
from labconsole.models.inventory import InventoryItem
from labconsole.schemas.inventory import (
    CheckInRequest,
    CheckoutCreate,
    CheckoutOut,
    InventoryItemCreate,
    InventoryItemOut,
)
from labconsole.services import inventory_service
from labconsole.store import LabStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/items", response_model=InventoryItemOut, status_code=status.HTTP_201_CREATED)
def create_item(
    payload: InventoryItemCreate,
    actor_id: str = Query(...),
    store: LabStore = Depends(get_store),
):
    return inventory_service.create_item(
        store,
        actor_id=actor_id,
        name=payload.name,
        quantity=payload.quantity,
        location=payload.location,
        condition=payload.condition,
    )


@router.get("/items", response_model=list[InventoryItemOut])
def list_items(store: LabStore = Depends(get_store)):
    return store.list(InventoryItem, order_by=InventoryItem.name)


@router.post("/checkouts", response_model=CheckoutOut, status_code=status.HTTP_201_CREATED)
def checkout_item(
    payload: CheckoutCreate,
    actor_id: str = Query(...),
    store: LabStore = Depends(get_store),
):
    """Check items out to a member; 422 when more than available is requested."""
    return inventory_service.checkout_item(
        store,
        item_id=payload.item_id,
        member_id=payload.member_id,
        actor_id=actor_id,
        quantity=payload.quantity,
        due_at=payload.due_at,
        notes=payload.notes,
    )


@router.get("/checkouts/overdue", response_model=list[CheckoutOut])
def overdue_checkouts(store: LabStore = Depends(get_store)):
    """Unreturned checkouts past their due time."""
    return inventory_service.list_overdue_checkouts(store)


@router.post("/checkouts/{checkout_id}/checkin", response_model=CheckoutOut)
def check_in(
    checkout_id: str,
    payload: CheckInRequest,
    actor_id: str = Query(...),
    store: LabStore = Depends(get_store),
):
    return inventory_service.check_in(
        store,
        checkout_id,
        actor_id=actor_id,
        notes=payload.notes,
        condition=payload.condition,
    )
