"""Pydantic models for creating records in database."""

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator

from src.core.config import constants
from src.domain.routine import RepeatType
from src.domain.task import Importance, Priority
from src.domain.user import MAX_NAME_LENGTH


EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def clean_title(title: str) -> str:
    """Strip a title and reject it when nothing is left."""
    title = title.strip()
    if not title:
        raise ValueError("Title cannot be empty")
    return title


def dedupe_tags(tags: list[str]) -> list[str]:
    """Strip tags, drop empties and duplicates, keep first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags:
        cleaned = tag.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class TaskCreate(BaseModel):
    """Payload for creating a task directly."""

    title: str = Field(..., min_length=1, description="Task title")
    description: str | None = Field(default=None)
    category: str | None = Field(default=None)
    planned_date: date = Field(..., description="Day the task is planned for")
    planned_start_time: datetime | None = Field(default=None)
    estimated_minutes: int = Field(..., gt=0, description="Estimated duration in minutes")
    priority: Priority = Field(default=Priority.MEDIUM)
    importance: Importance = Field(default=Importance.MEDIUM)
    tags: list[str] = Field(default_factory=list)
    routine_id: str | None = Field(default=None)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject whitespace-only titles."""
        return clean_title(v)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        """Tags behave as a set."""
        return dedupe_tags(v)


class RoutineCreate(BaseModel):
    """Payload for creating a routine template."""

    title: str = Field(..., min_length=1)
    description: str | None = Field(default=None)
    repeat_type: RepeatType = Field(..., description="DAILY, WEEKLY or MONTHLY")
    repeat_interval: int = Field(default=constants.DEFAULT_REPEAT_INTERVAL, gt=0)
    estimated_minutes: int = Field(default=constants.DEFAULT_ROUTINE_ESTIMATED_MINUTES, gt=0)
    is_active: bool = Field(default=True)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return clean_title(v)


class UserCreate(BaseModel):
    """Pydantic model for creating a user record on first sign-in."""

    email: str = Field(..., description="Sign-in email address")
    name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    image: str | None = Field(default=None)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Normalize and validate the email address."""
        v = v.strip().lower()
        if not EMAIL_PATTERN.match(v):
            msg = "Invalid email address"
            raise ValueError(msg)
        return v


class SignInRequest(UserCreate):
    """Demo credentials sign-in payload."""


class GenerateTaskRequest(BaseModel):
    """Payload for expanding a routine into a task."""

    planned_date: date


class CompleteTaskRequest(BaseModel):
    """Payload for completing a task with the focused minutes reported by the caller."""

    actual_minutes: int = Field(..., ge=0)
