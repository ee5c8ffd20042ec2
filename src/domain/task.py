"""Task domain models and enums."""

from datetime import date, datetime
from enum import StrEnum

from pydantic import BaseModel, Field


class TaskStatus(StrEnum):
    """Task lifecycle status."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    POSTPONED = "POSTPONED"


class Priority(StrEnum):
    """How urgently a task should be done."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class Importance(StrEnum):
    """How much a task matters."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TimeRecord(BaseModel):
    """One logged work session against a task."""

    id: str = Field(..., description="Unique time record ID")
    task_id: str = Field(..., description="Task the session belongs to")
    start_time: datetime = Field(..., description="Session start")
    end_time: datetime | None = Field(default=None, description="Session end, None while still running")


class Task(BaseModel):
    """Task data transfer object."""

    id: str = Field(..., description="Unique task ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Task title")
    description: str | None = Field(default=None, description="Detailed task description")
    category: str | None = Field(default=None, description="Free-form category")
    planned_date: date = Field(..., description="Day the task is planned for")
    planned_start_time: datetime | None = Field(default=None, description="Planned start time")
    estimated_minutes: int = Field(..., gt=0, description="Estimated duration in minutes")
    priority: Priority = Field(default=Priority.MEDIUM)
    importance: Importance = Field(default=Importance.MEDIUM)
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="Current lifecycle status")
    notes: str | None = Field(default=None)
    actual_start_time: datetime | None = Field(default=None, description="When work first started")
    actual_end_time: datetime | None = Field(default=None, description="When the task was completed")
    actual_minutes: int | None = Field(default=None, description="Focused minutes reported at completion")
    interruptions: int = Field(default=0, description="Number of times the task was paused")
    tags: list[str] = Field(default_factory=list)
    routine_id: str | None = Field(default=None, description="Routine this task was generated from")
    records: list[TimeRecord] = Field(default_factory=list, description="Work sessions ordered by start time")
