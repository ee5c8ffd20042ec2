"""Task service for CRUD operations and lifecycle actions."""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any

from src.core import db_client
from src.core.errors import ConflictError, DomainValidationError, InvalidTransitionError, NotFoundError
from src.core.logging import log_with_user_context, span
from src.domain.create_models import TaskCreate
from src.domain.task import Task, TaskStatus
from src.domain.update_models import TaskUpdate
from src.domain.user import RequestIdentity
from src.models.service_models import TimerProgress
from src.services import task_state_machine, time_record_service, time_tracking


logger = logging.getLogger(__name__)


def to_storage(value: Any) -> Any:
    """Convert enums and dates into the string form stored in the database."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime | date):
        return value.isoformat()
    return value


def _parse_status(status: str | TaskStatus | None) -> TaskStatus | None:
    if status is None or isinstance(status, TaskStatus):
        return status
    try:
        return TaskStatus(status.upper())
    except ValueError as e:
        msg = f"Invalid task status: {status}"
        raise DomainValidationError(msg) from e


async def get_owned_task_record(*, identity: RequestIdentity, task_id: str) -> dict[str, Any]:
    """Fetch a task record, treating tasks owned by other users as missing.

    Raises:
        NotFoundError: If the task does not exist or belongs to someone else
    """
    try:
        record = await db_client.get_record(collection="tasks", record_id=task_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"Task not found: {task_id}") from e

    if str(record["user_id"]) != identity.user_id:
        logger.warning("task_access_denied", extra={"task_id": task_id, "user_id": identity.user_id})
        raise NotFoundError(f"Task not found: {task_id}")
    return record


async def _to_task(record: dict[str, Any]) -> Task:
    records = await time_record_service.list_time_records(task_id=record["id"])
    return Task(**record, records=records)


async def create_task(*, identity: RequestIdentity, payload: TaskCreate) -> Task:
    """Create a task owned by the caller.

    Args:
        identity: Caller identity
        payload: Validated task fields

    Returns:
        Created task

    Raises:
        NotFoundError: If routine_id points at a routine the caller does not own
        ConflictError: If the routine already has a task on that date
    """
    with span("task_service.create_task"):
        if payload.routine_id:
            # Imported lazily: routine_service depends on this module
            from src.services import routine_service

            await routine_service.get_owned_routine_record(identity=identity, routine_id=payload.routine_id)

        data = {key: to_storage(value) for key, value in payload.model_dump().items()}
        data["user_id"] = identity.user_id
        data["status"] = TaskStatus.PENDING.value
        data["interruptions"] = 0

        try:
            record = await db_client.create_record(collection="tasks", data=data)
        except db_client.DuplicateRecordError as e:
            raise ConflictError(f"Routine {payload.routine_id} already has a task on {payload.planned_date}") from e

        log_with_user_context(logger, "info", "Created task", user_id=identity.user_id, task_id=record["id"])
        return Task(**record)


async def list_tasks(
    *,
    identity: RequestIdentity,
    planned_date: date | None = None,
    status: str | TaskStatus | None = None,
) -> list[Task]:
    """List the caller's tasks, optionally filtered by day and status.

    Results are ordered by planned start time, then creation time.
    """
    with span("task_service.list_tasks"):
        parsed_status = _parse_status(status)

        filters = [f'user_id = "{db_client.sanitize_param(identity.user_id)}"']
        if planned_date:
            filters.append(f'planned_date = "{planned_date.isoformat()}"')
        if parsed_status:
            filters.append(f'status = "{parsed_status.value}"')

        records = await db_client.list_records(
            collection="tasks",
            filter_query=" && ".join(filters),
            sort="+planned_start_time,+created",
            per_page=500,
        )

        logger.debug("Retrieved %d tasks", len(records))
        return [await _to_task(record) for record in records]


async def get_task(*, identity: RequestIdentity, task_id: str) -> Task:
    """Get one of the caller's tasks with its work sessions."""
    with span("task_service.get_task"):
        record = await get_owned_task_record(identity=identity, task_id=task_id)
        return await _to_task(record)


async def update_task(*, identity: RequestIdentity, task_id: str, payload: TaskUpdate) -> Task:
    """Apply a partial update; fields absent from the payload are left untouched.

    Setting ``status`` here bypasses the lifecycle guards; it is how finished
    tasks are re-opened. Moving a running task to another status still
    closes its open work session.

    Raises:
        NotFoundError: If the task is missing or not owned
        DomainValidationError: If a required field is sent as null
    """
    with span("task_service.update_task"):
        record = await get_owned_task_record(identity=identity, task_id=task_id)

        cleared = payload.cleared_required_fields()
        if cleared:
            raise DomainValidationError(f"Fields cannot be null: {', '.join(cleared)}")

        changes = {key: to_storage(value) for key, value in payload.present_fields().items()}
        if not changes:
            return await _to_task(record)

        try:
            updated = await db_client.update_record(collection="tasks", record_id=task_id, data=changes)
        except db_client.DuplicateRecordError as e:
            raise ConflictError(f"Routine task already exists for {changes.get('planned_date')}") from e

        # Work stops when an edit moves a running task to any other status
        new_status = changes.get("status", record["status"])
        if record["status"] == TaskStatus.IN_PROGRESS and new_status != TaskStatus.IN_PROGRESS:
            await time_record_service.close_open_session(task_id=task_id, ended_at=task_state_machine.utcnow())

        log_with_user_context(
            logger, "info", "Updated task", user_id=identity.user_id, task_id=task_id, fields=sorted(changes)
        )
        return await _to_task(updated)


async def delete_task(*, identity: RequestIdentity, task_id: str) -> None:
    """Delete one of the caller's tasks together with its work sessions."""
    with span("task_service.delete_task"):
        await get_owned_task_record(identity=identity, task_id=task_id)

        for time_record in await time_record_service.list_time_records(task_id=task_id):
            await db_client.delete_record(collection="time_records", record_id=time_record.id)
        await db_client.delete_record(collection="tasks", record_id=task_id)

        log_with_user_context(logger, "info", "Deleted task", user_id=identity.user_id, task_id=task_id)


async def start_task(*, identity: RequestIdentity, task_id: str) -> Task:
    """Start (or resume) a task.

    Raises:
        InvalidTransitionError: If the task is not PENDING or PAUSED
    """
    record = await get_owned_task_record(identity=identity, task_id=task_id)
    updated = await task_state_machine.transition_to_in_progress(task=record)
    return await _to_task(updated)


async def pause_task(*, identity: RequestIdentity, task_id: str) -> Task:
    """Pause a running task.

    Raises:
        InvalidTransitionError: If the task is not IN_PROGRESS
    """
    record = await get_owned_task_record(identity=identity, task_id=task_id)
    updated = await task_state_machine.transition_to_paused(task=record)
    return await _to_task(updated)


async def complete_task(*, identity: RequestIdentity, task_id: str, actual_minutes: int) -> Task:
    """Complete a running task with caller-supplied focused minutes.

    Raises:
        InvalidTransitionError: If the task is not IN_PROGRESS
    """
    if actual_minutes < 0:
        raise DomainValidationError("actual_minutes must not be negative")
    record = await get_owned_task_record(identity=identity, task_id=task_id)
    updated = await task_state_machine.transition_to_completed(task=record, actual_minutes=actual_minutes)
    return await _to_task(updated)


async def cancel_task(*, identity: RequestIdentity, task_id: str) -> Task:
    """Cancel an active task."""
    record = await get_owned_task_record(identity=identity, task_id=task_id)
    updated = await task_state_machine.transition_to_cancelled(task=record)
    return await _to_task(updated)


async def postpone_task(*, identity: RequestIdentity, task_id: str) -> Task:
    """Postpone an active task."""
    record = await get_owned_task_record(identity=identity, task_id=task_id)
    updated = await task_state_machine.transition_to_postponed(task=record)
    return await _to_task(updated)


async def get_task_progress(
    *,
    identity: RequestIdentity,
    task_id: str,
    current_time: datetime | None = None,
) -> TimerProgress:
    """Compute timer progress for a running task.

    Raises:
        InvalidTransitionError: If the task is not IN_PROGRESS
    """
    task = Task(**await get_owned_task_record(identity=identity, task_id=task_id))
    if task.status != TaskStatus.IN_PROGRESS or task.actual_start_time is None:
        msg = f"Task {task_id} is not in progress ({task.status})"
        raise InvalidTransitionError(msg)

    return time_tracking.compute_progress(
        actual_start_time=task.actual_start_time,
        current_time=current_time or task_state_machine.utcnow(),
        estimated_minutes=task.estimated_minutes,
    )
