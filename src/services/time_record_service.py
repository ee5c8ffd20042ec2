"""Work-session log for tasks."""

import logging
from datetime import datetime

from src.core import db_client
from src.domain.task import TimeRecord


logger = logging.getLogger(__name__)

COLLECTION = "time_records"


async def list_time_records(*, task_id: str) -> list[TimeRecord]:
    """Return all sessions for a task ordered by start time."""
    records = await db_client.list_records(
        collection=COLLECTION,
        filter_query=f'task_id = "{db_client.sanitize_param(task_id)}"',
        sort="+start_time",
        per_page=500,
    )
    return [TimeRecord(**record) for record in records]


async def open_session(*, task_id: str, started_at: datetime) -> TimeRecord:
    """Append a new open session to the task's log.

    Any session still open is closed at ``started_at`` first, so a task never
    has more than one open session.
    """
    await close_open_session(task_id=task_id, ended_at=started_at)
    record = await db_client.create_record(
        collection=COLLECTION,
        data={"task_id": task_id, "start_time": started_at.isoformat(), "end_time": None},
    )
    logger.debug("Opened work session", extra={"task_id": task_id, "time_record_id": record["id"]})
    return TimeRecord(**record)


async def close_open_session(*, task_id: str, ended_at: datetime) -> TimeRecord | None:
    """Close every session of the task that is still open.

    Returns:
        The most recently started closed record, or None when no session was open
    """
    closed = None
    for time_record in await list_time_records(task_id=task_id):
        if time_record.end_time is not None:
            continue
        updated = await db_client.update_record(
            collection=COLLECTION,
            record_id=time_record.id,
            data={"end_time": ended_at.isoformat()},
        )
        logger.debug("Closed work session", extra={"task_id": task_id, "time_record_id": updated["id"]})
        closed = TimeRecord(**updated)
    return closed
