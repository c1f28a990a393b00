"""Inventory checkout ledger and the overdue list."""
import logging
from datetime import datetime
from typing import Optional

from labconsole.errors import InvalidTransition, Unauthorized, ValidationError
from labconsole.models.audit_log import AuditAction
from labconsole.models.inventory import CheckoutRecord, InventoryItem, ItemCondition
from labconsole.services import audit_service
from labconsole.store import LabStore
from labconsole.utils.timemath import ensure_utc, is_overdue, utcnow

logger = logging.getLogger(__name__)


def create_item(
    store: LabStore,
    actor_id: str,
    name: str,
    quantity: int,
    location: Optional[str] = None,
    condition: ItemCondition = ItemCondition.excellent,
) -> InventoryItem:
    actor = store.member(actor_id)
    if not actor.is_operator:
        raise Unauthorized("Only operators may add inventory", actor_id=actor.member_id)
    if not name or not name.strip():
        raise ValidationError("Item name is required")
    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", quantity=quantity)

    item = InventoryItem(
        name=name.strip(),
        quantity=quantity,
        available=quantity,
        condition=ItemCondition(condition),
        location=location,
    )
    store.insert(item)
    audit_service.record(
        store,
        AuditAction.inventory_created,
        actor,
        "inventory_item",
        item.item_id,
        f"Added inventory item: {item.name}",
    )
    store.commit()
    store.refresh(item)
    logger.info("Created inventory item '%s' (%s) x%d", item.name, item.item_id, quantity)
    return item


def checkout_item(
    store: LabStore,
    item_id: str,
    member_id: str,
    actor_id: str,
    quantity: int = 1,
    due_at: Optional[datetime] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> CheckoutRecord:
    """Hand ``quantity`` units to a member, decrementing availability."""
    actor = store.member(actor_id)
    member = store.member(member_id)
    item = store.require(InventoryItem, item_id, "Inventory item")

    if quantity < 1:
        raise ValidationError("Quantity must be at least 1", quantity=quantity)
    if quantity > item.available:
        raise ValidationError(
            f"Cannot checkout {quantity} items. Only {item.available} available.",
            quantity=quantity,
            available=item.available,
        )

    now = ensure_utc(now) if now is not None else utcnow()
    checkout = CheckoutRecord(
        item_id=item.item_id,
        member_id=member.member_id,
        quantity=quantity,
        checked_out_at=now,
        due_at=ensure_utc(due_at) if due_at is not None else None,
        condition_on_checkout=item.condition,
        notes=notes,
    )
    store.insert(checkout)
    store.update(item, {"available": item.available - quantity})

    audit_service.record(
        store,
        AuditAction.inventory_checkout,
        actor,
        "checkout",
        checkout.checkout_id,
        f"Checked out {quantity}x item {item.item_id} to member {member.member_id}",
        after=audit_service.checkout_snapshot(checkout),
        now=now,
    )
    store.commit()
    store.refresh(checkout)
    return checkout


def check_in(
    store: LabStore,
    checkout_id: str,
    actor_id: str,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    condition: Optional[ItemCondition] = None,
) -> CheckoutRecord:
    """Mark a checkout returned and restore the item's availability.

    The condition reported on return becomes the item's condition; when none
    is given the item's current condition is recorded.
    """
    actor = store.member(actor_id)
    checkout = store.require(CheckoutRecord, checkout_id, "Checkout")
    if checkout.returned_at is not None:
        raise InvalidTransition("Checkout has already been returned", checkout_id=checkout.checkout_id)

    now = ensure_utc(now) if now is not None else utcnow()
    item = store.get(InventoryItem, checkout.item_id)
    if condition is None and item is not None:
        condition = item.condition

    before = audit_service.checkout_snapshot(checkout)
    patch = {
        "returned_at": now,
        "condition_on_return": ItemCondition(condition) if condition is not None else None,
    }
    if notes:
        patch["notes"] = f"{checkout.notes} | {notes}" if checkout.notes else notes
    store.update(checkout, patch)

    if item is not None:
        item_patch = {"available": min(item.quantity, item.available + checkout.quantity)}
        if condition is not None:
            item_patch["condition"] = ItemCondition(condition)
        store.update(item, item_patch)

    audit_service.record(
        store,
        AuditAction.inventory_checkin,
        actor,
        "checkout",
        checkout.checkout_id,
        f"Checked in item {checkout.item_id} from member {checkout.member_id}",
        before=before,
        after=audit_service.checkout_snapshot(checkout),
        now=now,
    )
    store.commit()
    store.refresh(checkout)
    return checkout


def list_overdue_checkouts(store: LabStore, now: Optional[datetime] = None) -> list[CheckoutRecord]:
    """Unreturned checkouts whose due time has passed, oldest due first."""
    return [c for c in store.open_checkouts() if c.due_at is not None and is_overdue(c.due_at, now)]
