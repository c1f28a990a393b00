"""Inventory item and checkout ledger ORM models."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Integer, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from labconsole.database import Base


class ItemCondition(str, enum.Enum):
    excellent = "Excellent"
    good = "Good"
    fair = "Fair"
    needs_repair = "Needs Repair"


class InventoryItem(Base):
    __tablename__ = "inventory_items"

    item_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    available = Column(Integer, nullable=False, default=1)
    condition = Column(SAEnum(ItemCondition), nullable=False, default=ItemCondition.excellent)
    location = Column(String(150), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    checkouts = relationship("CheckoutRecord", back_populates="item")


class CheckoutRecord(Base):
    __tablename__ = "checkout_records"

    checkout_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    item_id = Column(String(36), ForeignKey("inventory_items.item_id"), nullable=False)
    member_id = Column(String(36), ForeignKey("members.member_id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    checked_out_at = Column(DateTime(timezone=True), nullable=False)
    due_at = Column(DateTime(timezone=True), nullable=True)
    returned_at = Column(DateTime(timezone=True), nullable=True)
    condition_on_checkout = Column(SAEnum(ItemCondition), nullable=True)
    condition_on_return = Column(SAEnum(ItemCondition), nullable=True)
    notes = Column(String(500), nullable=True)

    item = relationship("InventoryItem", back_populates="checkouts")
