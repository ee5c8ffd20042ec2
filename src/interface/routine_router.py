"""Routine endpoints: template CRUD, due routines and task generation."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from src.domain.create_models import GenerateTaskRequest, RoutineCreate
from src.domain.routine import Routine
from src.domain.task import Task
from src.domain.update_models import RoutineUpdate
from src.domain.user import RequestIdentity
from src.interface.auth import require_identity
from src.services import routine_service


router = APIRouter(prefix="/routines", tags=["routines"])


@router.get("")
async def list_routines(identity: RequestIdentity = Depends(require_identity)) -> list[Routine]:
    """List routines, newest first."""
    return await routine_service.list_routines(identity=identity)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_routine(payload: RoutineCreate, identity: RequestIdentity = Depends(require_identity)) -> Routine:
    return await routine_service.create_routine(identity=identity, payload=payload)


# Declared before /{routine_id} so "due" is not read as an id
@router.get("/due")
async def list_due_routines(
    on_date: date = Query(alias="date"),
    identity: RequestIdentity = Depends(require_identity),
) -> list[Routine]:
    """Active routines whose cadence falls on the given date."""
    return await routine_service.list_due_routines(identity=identity, on_date=on_date)


@router.get("/{routine_id}")
async def get_routine(routine_id: str, identity: RequestIdentity = Depends(require_identity)) -> Routine:
    return await routine_service.get_routine(identity=identity, routine_id=routine_id)


@router.put("/{routine_id}")
async def update_routine(
    routine_id: str,
    payload: RoutineUpdate,
    identity: RequestIdentity = Depends(require_identity),
) -> Routine:
    return await routine_service.update_routine(identity=identity, routine_id=routine_id, payload=payload)


@router.delete("/{routine_id}")
async def delete_routine(routine_id: str, identity: RequestIdentity = Depends(require_identity)) -> dict[str, str]:
    await routine_service.delete_routine(identity=identity, routine_id=routine_id)
    return {"message": "Routine deleted successfully"}


@router.post("/{routine_id}/generate-task", status_code=status.HTTP_201_CREATED)
async def generate_task(
    routine_id: str,
    payload: GenerateTaskRequest,
    identity: RequestIdentity = Depends(require_identity),
) -> Task:
    """Create the routine's task for a date; 409 if it already exists."""
    return await routine_service.generate_task(
        identity=identity, routine_id=routine_id, planned_date=payload.planned_date
    )
