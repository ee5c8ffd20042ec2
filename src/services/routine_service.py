"""Routine service: template CRUD and expansion of routines into dated tasks."""

import logging
from datetime import date
from typing import Any

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from src.core import db_client
from src.core.errors import ConflictError, DomainValidationError, NotFoundError
from src.core.logging import log_with_user_context, span
from src.domain.create_models import RoutineCreate
from src.domain.routine import RepeatType, Routine
from src.domain.task import Importance, Priority, Task, TaskStatus
from src.domain.update_models import RoutineUpdate
from src.domain.user import RequestIdentity
from src.services.task_service import to_storage


logger = logging.getLogger(__name__)


async def get_owned_routine_record(*, identity: RequestIdentity, routine_id: str) -> dict[str, Any]:
    """Fetch a routine record, treating routines owned by other users as missing.

    Raises:
        NotFoundError: If the routine does not exist or belongs to someone else
    """
    try:
        record = await db_client.get_record(collection="routines", record_id=routine_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError(f"Routine not found: {routine_id}") from e

    if str(record["user_id"]) != identity.user_id:
        logger.warning("routine_access_denied", extra={"routine_id": routine_id, "user_id": identity.user_id})
        raise NotFoundError(f"Routine not found: {routine_id}")
    return record


async def create_routine(*, identity: RequestIdentity, payload: RoutineCreate) -> Routine:
    """Create a routine template owned by the caller."""
    with span("routine_service.create_routine"):
        data = {key: to_storage(value) for key, value in payload.model_dump().items()}
        data["user_id"] = identity.user_id

        record = await db_client.create_record(collection="routines", data=data)
        log_with_user_context(logger, "info", "Created routine", user_id=identity.user_id, routine_id=record["id"])
        return Routine(**record)


async def list_routines(*, identity: RequestIdentity) -> list[Routine]:
    """List the caller's routines, newest first."""
    with span("routine_service.list_routines"):
        records = await db_client.list_records(
            collection="routines",
            filter_query=f'user_id = "{db_client.sanitize_param(identity.user_id)}"',
            sort="-created,-id",
            per_page=500,
        )
        return [Routine(**record) for record in records]


async def get_routine(*, identity: RequestIdentity, routine_id: str) -> Routine:
    """Get one of the caller's routines."""
    return Routine(**await get_owned_routine_record(identity=identity, routine_id=routine_id))


async def update_routine(*, identity: RequestIdentity, routine_id: str, payload: RoutineUpdate) -> Routine:
    """Apply a partial update to a routine; absent fields are left untouched."""
    with span("routine_service.update_routine"):
        record = await get_owned_routine_record(identity=identity, routine_id=routine_id)

        cleared = payload.cleared_required_fields()
        if cleared:
            raise DomainValidationError(f"Fields cannot be null: {', '.join(cleared)}")

        changes = {key: to_storage(value) for key, value in payload.present_fields().items()}
        if not changes:
            return Routine(**record)

        updated = await db_client.update_record(collection="routines", record_id=routine_id, data=changes)
        log_with_user_context(logger, "info", "Updated routine", user_id=identity.user_id, routine_id=routine_id)
        return Routine(**updated)


async def delete_routine(*, identity: RequestIdentity, routine_id: str) -> None:
    """Delete a routine. Tasks generated from it are kept."""
    with span("routine_service.delete_routine"):
        await get_owned_routine_record(identity=identity, routine_id=routine_id)
        await db_client.delete_record(collection="routines", record_id=routine_id)
        log_with_user_context(logger, "info", "Deleted routine", user_id=identity.user_id, routine_id=routine_id)


async def generate_task(*, identity: RequestIdentity, routine_id: str, planned_date: date) -> Task:
    """Expand a routine into a task for one day.

    Args:
        identity: Caller identity
        routine_id: Routine to expand
        planned_date: Day the new task is planned for

    Returns:
        The created task

    Raises:
        NotFoundError: If the routine is missing or not owned
        ConflictError: If a task for this routine already exists on that day
    """
    with span("routine_service.generate_task"):
        routine = await get_owned_routine_record(identity=identity, routine_id=routine_id)

        existing = await db_client.get_first_record(
            collection="tasks",
            filter_query=(
                f'routine_id = "{db_client.sanitize_param(routine_id)}" && planned_date = "{planned_date.isoformat()}"'
            ),
        )
        if existing:
            raise ConflictError(f"Routine {routine_id} already has a task on {planned_date}")

        task_data = {
            "user_id": identity.user_id,
            "routine_id": routine_id,
            "title": routine["title"],
            "description": routine.get("description"),
            "estimated_minutes": routine["estimated_minutes"],
            "priority": Priority.MEDIUM.value,
            "importance": Importance.MEDIUM.value,
            "status": TaskStatus.PENDING.value,
            "planned_date": planned_date.isoformat(),
            "interruptions": 0,
            "tags": [],
        }

        try:
            record = await db_client.create_record(collection="tasks", data=task_data)
        except db_client.DuplicateRecordError as e:
            # A concurrent request passed the check first; the unique index caught it
            raise ConflictError(f"Routine {routine_id} already has a task on {planned_date}") from e

        log_with_user_context(
            logger,
            "info",
            "Generated task from routine",
            user_id=identity.user_id,
            routine_id=routine_id,
            task_id=record["id"],
            planned_date=planned_date.isoformat(),
        )
        return Task(**record)


def is_due(*, routine: Routine, on_date: date) -> bool:
    """Whether the routine's cadence, counted from its creation day, falls on a date.

    Inactive routines are never due. Monthly cadences anchored on a day the
    target month lacks fall on that month's last day.
    """
    if not routine.is_active:
        return False

    anchor = isoparse(routine.created).date()
    if on_date < anchor:
        return False

    days = (on_date - anchor).days
    if routine.repeat_type == RepeatType.DAILY:
        return days % routine.repeat_interval == 0
    if routine.repeat_type == RepeatType.WEEKLY:
        return days % (7 * routine.repeat_interval) == 0

    months = (on_date.year - anchor.year) * 12 + (on_date.month - anchor.month)
    if months % routine.repeat_interval:
        return False
    return anchor + relativedelta(months=months) == on_date


async def list_due_routines(*, identity: RequestIdentity, on_date: date) -> list[Routine]:
    """Return the caller's active routines whose cadence falls on a date."""
    with span("routine_service.list_due_routines"):
        routines = await list_routines(identity=identity)
        return [routine for routine in routines if is_due(routine=routine, on_date=on_date)]
