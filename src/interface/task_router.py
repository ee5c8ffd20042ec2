"""Task endpoints: CRUD, lifecycle actions, timer progress and daily stats."""

from datetime import date

from fastapi import APIRouter, Depends, Query, status

from src.domain.create_models import CompleteTaskRequest, TaskCreate
from src.domain.task import Task
from src.domain.update_models import TaskUpdate
from src.domain.user import RequestIdentity
from src.interface.auth import require_identity
from src.models.service_models import DailyStats, TimerProgress
from src.services import stats_service, task_service


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(
    planned_date: date | None = Query(default=None, alias="date"),
    task_status: str | None = Query(default=None, alias="status"),
    identity: RequestIdentity = Depends(require_identity),
) -> list[Task]:
    """List tasks, optionally for one day and one status."""
    return await task_service.list_tasks(identity=identity, planned_date=planned_date, status=task_status)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, identity: RequestIdentity = Depends(require_identity)) -> Task:
    return await task_service.create_task(identity=identity, payload=payload)


@router.get("/stats")
async def get_daily_stats(
    planned_date: date = Query(alias="date"),
    identity: RequestIdentity = Depends(require_identity),
) -> DailyStats:
    """Completion and time statistics for one day."""
    return await stats_service.get_daily_stats(identity=identity, planned_date=planned_date)


@router.get("/{task_id}")
async def get_task(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> Task:
    """Return a task with its work sessions."""
    return await task_service.get_task(identity=identity, task_id=task_id)


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    identity: RequestIdentity = Depends(require_identity),
) -> Task:
    """Partially update a task; only fields present in the body change."""
    return await task_service.update_task(identity=identity, task_id=task_id, payload=payload)


@router.delete("/{task_id}")
async def delete_task(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> dict[str, str]:
    await task_service.delete_task(identity=identity, task_id=task_id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/start")
async def start_task(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> Task:
    return await task_service.start_task(identity=identity, task_id=task_id)


@router.post("/{task_id}/pause")
async def pause_task(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> Task:
    return await task_service.pause_task(identity=identity, task_id=task_id)


@router.post("/{task_id}/complete")
async def complete_task(
    task_id: str,
    payload: CompleteTaskRequest,
    identity: RequestIdentity = Depends(require_identity),
) -> Task:
    return await task_service.complete_task(identity=identity, task_id=task_id, actual_minutes=payload.actual_minutes)


@router.post("/{task_id}/cancel")
async def cancel_task(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> Task:
    return await task_service.cancel_task(identity=identity, task_id=task_id)


@router.post("/{task_id}/postpone")
async def postpone_task(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> Task:
    return await task_service.postpone_task(identity=identity, task_id=task_id)


@router.get("/{task_id}/progress")
async def get_task_progress(task_id: str, identity: RequestIdentity = Depends(require_identity)) -> TimerProgress:
    """Elapsed time and progress of a running task."""
    return await task_service.get_task_progress(identity=identity, task_id=task_id)
