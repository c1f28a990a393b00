"""LabStore: the explicit record store every lab operation receives.

Wraps one SQLAlchemy session. Services never touch a module-level session
or global state: they are handed a store, read and mutate records through
it, and commit once at the end of the operation. Tests can build as many
independent stores as they like.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

from sqlalchemy.orm import Session

from labconsole.errors import NotFound
from labconsole.models.inventory import CheckoutRecord
from labconsole.models.machine import Machine
from labconsole.models.member import Member
from labconsole.models.reservation import Reservation, ReservationStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _primary_key(model: Type[Any]):
    return model.__mapper__.primary_key[0]


class LabStore:
    """Generic list/insert/update persistence plus the lab's domain queries."""

    def __init__(self, db: Session):
        self.db = db

    # -- generic persistence contract ---------------------------------------

    def list(self, model: Type[T], order_by=None, **filters: Any) -> list[T]:
        query = self.db.query(model)
        for field, value in filters.items():
            if value is None:
                continue
            column = getattr(model, field)
            if isinstance(value, (list, tuple, set, frozenset)):
                query = query.filter(column.in_(list(value)))
            else:
                query = query.filter(column == value)
        if order_by is not None:
            query = query.order_by(order_by)
        return query.all()

    def get(self, model: Type[T], record_id: Optional[str]) -> Optional[T]:
        if record_id is None:
            return None
        return self.db.query(model).filter(_primary_key(model) == str(record_id)).first()

    def require(self, model: Type[T], record_id: Optional[str], entity: str) -> T:
        record = self.get(model, record_id)
        if record is None:
            raise NotFound(entity, str(record_id) if record_id is not None else None)
        return record

    def insert(self, record: T) -> T:
        self.db.add(record)
        self.db.flush()
        return record

    def update(self, record: T, patch: dict[str, Any]) -> T:
        for field, value in patch.items():
            if not hasattr(record, field):
                raise AttributeError(f"{type(record).__name__} has no field {field!r}")
            setattr(record, field, value)
        self.db.flush()
        return record

    def commit(self) -> None:
        self.db.commit()

    def refresh(self, record: T) -> T:
        self.db.refresh(record)
        return record

    # -- domain queries -----------------------------------------------------

    def member(self, member_id: Optional[str]) -> Member:
        return self.require(Member, member_id, "Member")

    def machine(self, machine_id: Optional[str]) -> Machine:
        return self.require(Machine, machine_id, "Machine")

    def reservation(self, reservation_id: Optional[str]) -> Reservation:
        return self.require(Reservation, reservation_id, "Reservation")

    def machines(self) -> list[Machine]:
        """Machines in service (retired ones excluded), ordered by name."""
        return (
            self.db.query(Machine)
            .filter(Machine.retired_at.is_(None))
            .order_by(Machine.name)
            .all()
        )

    def reservations_for_machine(
        self,
        machine_id: str,
        statuses: Optional[frozenset] = None,
    ) -> list[Reservation]:
        return self.list(
            Reservation,
            order_by=Reservation.start_time_utc,
            machine_id=machine_id,
            status=statuses,
        )

    def approved_reservations(self) -> list[Reservation]:
        return self.list(
            Reservation,
            order_by=Reservation.start_time_utc,
            status=ReservationStatus.approved,
        )

    def open_checkouts(self) -> list[CheckoutRecord]:
        return (
            self.db.query(CheckoutRecord)
            .filter(CheckoutRecord.returned_at.is_(None))
            .order_by(CheckoutRecord.due_at)
            .all()
        )
