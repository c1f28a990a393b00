"""FastAPI application entry point."""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from labconsole.config import settings
from labconsole.database import Base, engine

# Import routers
from labconsole.routers import members, machines, reservations, inventory, audit_logs

# Import all models so Base.metadata knows about them
from labconsole.models.member import Member                                # noqa: F401
from labconsole.models.machine import Machine                              # noqa: F401
from labconsole.models.reservation import Reservation                      # noqa: F401
from labconsole.models.inventory import InventoryItem, CheckoutRecord      # noqa: F401
from labconsole.models.audit_log import AuditLog                           # noqa: F401

logging.getLogger("labconsole").setLevel(settings.LOG_LEVEL.upper())

app = FastAPI(
    title="RoboSphere Lab Console",
    description="Lab machine reservations, status console and inventory checkouts for the club dashboard",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(members.router, prefix="/api/members", tags=["Members"])
app.include_router(machines.router, prefix="/api/machines", tags=["Machines"])
app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
app.include_router(inventory.router, prefix="/api/inventory", tags=["Inventory"])
app.include_router(audit_logs.router, prefix="/api/audit-logs", tags=["AuditLogs"])


@app.on_event("startup")
def on_startup():
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
