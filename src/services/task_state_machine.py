"""State transition functions for task lifecycle management."""

import logging
from datetime import UTC, datetime
from typing import Any

from src.core import db_client
from src.core.errors import InvalidTransitionError
from src.core.logging import span
from src.domain.task import TaskStatus
from src.services import time_record_service


logger = logging.getLogger(__name__)


# Allowed transitions; terminal statuses are re-opened only through an explicit edit
TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED, TaskStatus.POSTPONED},
    TaskStatus.IN_PROGRESS: {
        TaskStatus.PAUSED,
        TaskStatus.COMPLETED,
        TaskStatus.CANCELLED,
        TaskStatus.POSTPONED,
    },
    TaskStatus.PAUSED: {TaskStatus.IN_PROGRESS, TaskStatus.CANCELLED, TaskStatus.POSTPONED},
    TaskStatus.COMPLETED: set(),
    TaskStatus.CANCELLED: set(),
    TaskStatus.POSTPONED: set(),
}


def utcnow() -> datetime:
    """Current time; patched in tests to freeze the clock."""
    return datetime.now(UTC)


def can_transition(*, current: TaskStatus, target: TaskStatus) -> bool:
    """Return True if the lifecycle allows moving from current to target."""
    return target in TRANSITIONS[current]


def _guard(*, task: dict[str, Any], target: TaskStatus, action: str) -> None:
    current = TaskStatus(task["status"])
    if not can_transition(current=current, target=target):
        msg = f"Cannot {action}: task {task['id']} is in {current} state"
        raise InvalidTransitionError(msg)


async def transition_to_in_progress(*, task: dict[str, Any]) -> dict[str, Any]:
    """Start or resume a task and open a new work session."""
    with span("task_state_machine.transition_to_in_progress"):
        _guard(task=task, target=TaskStatus.IN_PROGRESS, action="start")

        now = utcnow()
        update_data: dict[str, Any] = {"status": TaskStatus.IN_PROGRESS.value}
        if not task.get("actual_start_time"):
            update_data["actual_start_time"] = now.isoformat()

        updated_record = await db_client.update_record(collection="tasks", record_id=task["id"], data=update_data)
        await time_record_service.open_session(task_id=task["id"], started_at=now)

        logger.info("Transitioned task %s to IN_PROGRESS", task["id"])
        return updated_record


async def transition_to_paused(*, task: dict[str, Any]) -> dict[str, Any]:
    """Pause a running task, counting the interruption."""
    with span("task_state_machine.transition_to_paused"):
        _guard(task=task, target=TaskStatus.PAUSED, action="pause")

        now = utcnow()
        updated_record = await db_client.update_record(
            collection="tasks",
            record_id=task["id"],
            data={
                "status": TaskStatus.PAUSED.value,
                "interruptions": int(task.get("interruptions") or 0) + 1,
            },
        )
        await time_record_service.close_open_session(task_id=task["id"], ended_at=now)

        logger.info("Transitioned task %s to PAUSED", task["id"])
        return updated_record


async def transition_to_completed(*, task: dict[str, Any], actual_minutes: int) -> dict[str, Any]:
    """Complete a running task with the caller-reported focused minutes.

    actual_minutes is stored as given; it is not derived from wall time.
    """
    with span("task_state_machine.transition_to_completed"):
        _guard(task=task, target=TaskStatus.COMPLETED, action="complete")

        now = utcnow()
        updated_record = await db_client.update_record(
            collection="tasks",
            record_id=task["id"],
            data={
                "status": TaskStatus.COMPLETED.value,
                "actual_end_time": now.isoformat(),
                "actual_minutes": actual_minutes,
            },
        )
        await time_record_service.close_open_session(task_id=task["id"], ended_at=now)

        logger.info("Transitioned task %s to COMPLETED (%d min)", task["id"], actual_minutes)
        return updated_record


async def _transition_to_closed(*, task: dict[str, Any], target: TaskStatus, action: str) -> dict[str, Any]:
    _guard(task=task, target=target, action=action)

    updated_record = await db_client.update_record(
        collection="tasks",
        record_id=task["id"],
        data={"status": target.value},
    )
    await time_record_service.close_open_session(task_id=task["id"], ended_at=utcnow())

    logger.info("Transitioned task %s to %s", task["id"], target)
    return updated_record


async def transition_to_cancelled(*, task: dict[str, Any]) -> dict[str, Any]:
    """Cancel an active task."""
    with span("task_state_machine.transition_to_cancelled"):
        return await _transition_to_closed(task=task, target=TaskStatus.CANCELLED, action="cancel")


async def transition_to_postponed(*, task: dict[str, Any]) -> dict[str, Any]:
    """Postpone an active task."""
    with span("task_state_machine.transition_to_postponed"):
        return await _transition_to_closed(task=task, target=TaskStatus.POSTPONED, action="postpone")
