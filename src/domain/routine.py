"""Routine domain models and enums."""

from enum import StrEnum

from pydantic import BaseModel, Field

from src.core.config import constants


class RepeatType(StrEnum):
    """Cadence unit of a routine."""

    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


class Routine(BaseModel):
    """Recurring task template."""

    id: str = Field(..., description="Unique routine ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    user_id: str = Field(..., description="Owner user ID")
    title: str = Field(..., description="Title copied onto generated tasks")
    description: str | None = Field(default=None)
    repeat_type: RepeatType = Field(..., description="Cadence unit")
    repeat_interval: int = Field(default=constants.DEFAULT_REPEAT_INTERVAL, gt=0, description="Every N cadence units")
    estimated_minutes: int = Field(
        default=constants.DEFAULT_ROUTINE_ESTIMATED_MINUTES, gt=0, description="Estimate copied onto generated tasks"
    )
    is_active: bool = Field(default=True)
