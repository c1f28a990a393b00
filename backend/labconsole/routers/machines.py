"""Lab machine API routes: the console grid and operator status controls."""
import logging
from fastapi import APIRouter, Depends, Query, status

from labconsole.deps import get_store
from labconsole.schemas.machine import MachineCreate, MachineOut, MachineStatusChange
from labconsole.schemas.reservation import ReservationOut
from labconsole.services import machine_service, reservation_service
from labconsole.store import LabStore

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=MachineOut, status_code=status.HTTP_201_CREATED)
def create_machine(
    payload: MachineCreate,
    actor_id: str = Query(..., description="ID of the operator adding the machine"),
    store: LabStore = Depends(get_store),
):
    """Register a new machine (operators only)."""
    machine = machine_service.create_machine(
        store,
        actor_id=actor_id,
        name=payload.name,
        category=payload.category,
        model=payload.model,
        image_url=payload.image_url,
    )
    return machine_service.machine_view(machine)


@router.get("/", response_model=list[MachineOut])
def list_machines(store: LabStore = Depends(get_store)):
    """Live status of every machine, after converging time-based state."""
    return [machine_service.machine_view(m) for m in machine_service.list_machines(store)]


@router.get("/{machine_id}", response_model=MachineOut)
def get_machine(machine_id: str, store: LabStore = Depends(get_store)):
    return machine_service.machine_view(machine_service.get_machine(store, machine_id))


@router.get("/{machine_id}/schedule", response_model=list[ReservationOut])
def machine_schedule(machine_id: str, store: LabStore = Depends(get_store)):
    """Upcoming (not yet ended) reservations for one machine, earliest first."""
    store.machine(machine_id)
    return reservation_service.list_reservations(store, machine_id=machine_id, upcoming_only=True)


@router.delete("/{machine_id}", response_model=MachineOut)
def retire_machine(
    machine_id: str,
    actor_id: str = Query(..., description="ID of the operator removing the machine"),
    store: LabStore = Depends(get_store),
):
    """Remove a machine from service and cancel its open reservations."""
    machine = machine_service.retire_machine(store, machine_id=machine_id, actor_id=actor_id)
    return machine_service.machine_view(machine)


@router.post("/{machine_id}/status", response_model=MachineOut)
def change_machine_status(
    machine_id: str,
    payload: MachineStatusChange,
    actor_id: str = Query(..., description="ID of the member requesting the change"),
    store: LabStore = Depends(get_store),
):
    """Request a status transition (e.g. Idle -> Maintenance)."""
    machine = machine_service.change_status(
        store,
        machine_id=machine_id,
        target=payload.status,
        actor_id=actor_id,
        job_member_id=payload.job_member_id,
        estimated_minutes=payload.estimated_minutes,
    )
    return machine_service.machine_view(machine)
