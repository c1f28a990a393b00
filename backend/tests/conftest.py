"""Pytest fixtures: SQLite-backed database, store and API client for isolated tests."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test_labconsole.db")

from datetime import datetime, timedelta

import pytest
import pytz
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from labconsole.database import Base, get_db
from labconsole.main import app
from labconsole.models.machine import Machine, MachineCategory, MachineStatus
from labconsole.models.member import Member, MemberRole
from labconsole.models.reservation import Reservation, ReservationStatus
from labconsole.store import LabStore

# Import all models so they register with Base.metadata
from labconsole.models.inventory import InventoryItem, CheckoutRecord   # noqa: F401
from labconsole.models.audit_log import AuditLog                        # noqa: F401

SQLITE_URL = "sqlite:///./test.db"

# A fixed Monday morning for clock-pinned tests
BASE_TIME = pytz.utc.localize(datetime(2026, 3, 2, 8, 0))


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session, closed after the test."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(db):
    return LabStore(db)


@pytest.fixture(scope="function")
def client(db_engine):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# API helpers
# ---------------------------------------------------------------------------
def create_test_member(client: TestClient, name: str = "Test Member", role: str = "member") -> dict:
    """Helper: POST /api/members and return response JSON."""
    resp = client.post("/api/members/", json={"display_name": name, "role": role})
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_machine(client: TestClient, operator_id: str, name: str = "Prusa MK4",
                        category: str = "3D Printer") -> dict:
    """Helper: POST /api/machines as an operator and return response JSON."""
    resp = client.post(f"/api/machines/?actor_id={operator_id}", json={
        "name": name,
        "category": category,
        "model": "Mk4",
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def reservation_payload(machine_id: str, start: datetime, hours: float = 1, member_id: str = None,
                        purpose: str = "Senior Project") -> dict:
    end = start + timedelta(hours=hours)
    payload = {
        "machine_id": machine_id,
        "start_time_utc": start.isoformat(),
        "end_time_utc": end.isoformat(),
        "purpose": purpose,
    }
    if member_id:
        payload["member_id"] = member_id
    return payload


def lab_setup(client: TestClient):
    """Create an operator, a regular member and one printer."""
    operator = create_test_member(client, name="Lab Admin", role="admin")
    member = create_test_member(client, name="Student")
    machine = create_test_machine(client, operator["member_id"])
    return operator, member, machine


def future(hours: float) -> datetime:
    """Whole-hour UTC time ``hours`` from now, so windows line up exactly."""
    now = datetime.now(pytz.utc).replace(minute=0, second=0, microsecond=0)
    return now + timedelta(hours=hours)


# ---------------------------------------------------------------------------
# Store helpers (no HTTP)
# ---------------------------------------------------------------------------
def add_member(store: LabStore, name: str = "Member", role: MemberRole = MemberRole.member) -> Member:
    member = store.insert(Member(display_name=name, role=role))
    store.commit()
    return member


def add_machine(store: LabStore, name: str = "Epilog Fusion", status: MachineStatus = MachineStatus.idle) -> Machine:
    machine = store.insert(Machine(name=name, category=MachineCategory.laser_cutter, model="Fusion Pro", status=status))
    store.commit()
    return machine


def add_reservation(store: LabStore, machine: Machine, member: Member, start: datetime, end: datetime,
                    status: ReservationStatus = ReservationStatus.pending) -> Reservation:
    """Insert a reservation directly, bypassing booking checks."""
    reservation = store.insert(Reservation(
        machine_id=machine.machine_id,
        member_id=member.member_id,
        start_time_utc=start,
        end_time_utc=end,
        status=status,
        created_at=start - timedelta(days=1),
    ))
    store.commit()
    return reservation
