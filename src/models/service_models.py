"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries and raw computations into typed objects.
"""

from datetime import date

from pydantic import BaseModel


class TimerProgress(BaseModel):
    """Snapshot of a running task timer at one sampling tick."""

    elapsed_seconds: int
    elapsed_minutes: int
    estimated_minutes: int
    progress_percent: float  # Capped at 100 for display
    raw_ratio: float  # elapsed / estimated, not capped
    is_overrun: bool
    over_minutes: int
    display: str  # M:SS or H:MM:SS


class DailyStats(BaseModel):
    """Aggregate statistics for a set of tasks (usually one day)."""

    planned_date: date | None = None
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    pending_tasks: int
    total_estimated_minutes: int
    total_actual_minutes: int
    completion_rate: int  # Percent, rounded
    time_efficiency: int  # estimated / actual, percent, rounded
    total_interruptions: int
    avg_interruptions: float
