"""Daily task statistics for the dashboard.

Key Concepts:
- Completion rate: completed tasks as a rounded percentage of all tasks.
- Time efficiency: estimated minutes of completed tasks over the minutes
  actually reported for them. Above 100 means work went faster than planned.
- In progress: tasks being worked on, paused ones included.
"""

import logging
from collections.abc import Iterable
from datetime import date

from src.core.logging import span
from src.domain.task import Task, TaskStatus
from src.domain.user import RequestIdentity
from src.models.service_models import DailyStats
from src.services import task_service
from src.services.ci_statistics import round_half_up


logger = logging.getLogger(__name__)


def compute_daily_stats(tasks: Iterable[Task], planned_date: date | None = None) -> DailyStats:
    """Aggregate counts, minutes and interruptions over a set of tasks.

    Empty input yields zero rates rather than a division error.
    """
    tasks = list(tasks)
    total = len(tasks)
    completed = [task for task in tasks if task.status == TaskStatus.COMPLETED]
    in_progress = sum(1 for task in tasks if task.status in (TaskStatus.IN_PROGRESS, TaskStatus.PAUSED))
    pending = sum(1 for task in tasks if task.status == TaskStatus.PENDING)

    total_estimated = sum(task.estimated_minutes for task in tasks)
    completed_estimated = sum(task.estimated_minutes for task in completed)
    total_actual = sum(task.actual_minutes or 0 for task in completed)
    total_interruptions = sum(task.interruptions for task in tasks)

    return DailyStats(
        planned_date=planned_date,
        total_tasks=total,
        completed_tasks=len(completed),
        in_progress_tasks=in_progress,
        pending_tasks=pending,
        total_estimated_minutes=total_estimated,
        total_actual_minutes=total_actual,
        completion_rate=int(round_half_up(len(completed) / total * 100)) if total else 0,
        time_efficiency=int(round_half_up(completed_estimated / total_actual * 100)) if total_actual else 0,
        total_interruptions=total_interruptions,
        avg_interruptions=round_half_up(total_interruptions / total, 1) if total else 0.0,
    )


async def get_daily_stats(*, identity: RequestIdentity, planned_date: date) -> DailyStats:
    """Statistics for the caller's tasks planned on one day."""
    with span("stats_service.get_daily_stats"):
        tasks = await task_service.list_tasks(identity=identity, planned_date=planned_date)
        stats = compute_daily_stats(tasks, planned_date)
        logger.debug(
            "Computed daily stats",
            extra={"user_id": identity.user_id, "planned_date": planned_date.isoformat(), "total": stats.total_tasks},
        )
        return stats
