"""Pydantic schemas for inventory items and checkouts."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from labconsole.models.inventory import ItemCondition


class InventoryItemCreate(BaseModel):
    name: str
    quantity: int = Field(default=1, ge=1)
    condition: ItemCondition = ItemCondition.excellent
    location: Optional[str] = None


class InventoryItemOut(BaseModel):
    item_id: str
    name: str
    quantity: int
    available: int
    condition: ItemCondition
    location: Optional[str] = None

    model_config = {"from_attributes": True}


class CheckoutCreate(BaseModel):
    item_id: str
    member_id: str
    quantity: int = 1
    due_at: Optional[datetime] = None
    notes: Optional[str] = None


class CheckInRequest(BaseModel):
    condition: Optional[ItemCondition] = None  # defaults to the item's current condition
    notes: Optional[str] = None


class CheckoutOut(BaseModel):
    checkout_id: str
    item_id: str
    member_id: str
    quantity: int
    checked_out_at: datetime
    due_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None
    condition_on_checkout: Optional[ItemCondition] = None
    condition_on_return: Optional[ItemCondition] = None
    notes: Optional[str] = None

    model_config = {"from_attributes": True}
