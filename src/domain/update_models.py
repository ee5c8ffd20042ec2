"""Update models for partial edits.

Every field is optional. Only fields present in the incoming payload are
applied (see ``model_fields_set``); a field sent as ``null`` clears the
stored value where the column allows it.
"""

from datetime import date, datetime
from typing import ClassVar

from pydantic import BaseModel, Field, field_validator

from src.domain.create_models import clean_title, dedupe_tags
from src.domain.routine import RepeatType
from src.domain.task import Importance, Priority, TaskStatus
from src.domain.user import MAX_NAME_LENGTH


class PartialUpdate(BaseModel):
    """Base for update payloads with present/absent field semantics."""

    # Fields that may not be cleared with an explicit null
    REQUIRED_FIELDS: ClassVar[frozenset[str]] = frozenset()

    def present_fields(self) -> dict[str, object]:
        """Return only the fields the caller actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def cleared_required_fields(self) -> list[str]:
        """Names of required fields explicitly sent as null."""
        present = self.present_fields()
        return sorted(name for name in self.REQUIRED_FIELDS if name in present and present[name] is None)


class TaskUpdate(PartialUpdate):
    """Partial update payload for a task."""

    REQUIRED_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"title", "planned_date", "estimated_minutes", "priority", "importance", "status", "interruptions", "tags"}
    )

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    category: str | None = None
    planned_date: date | None = None
    planned_start_time: datetime | None = None
    estimated_minutes: int | None = Field(default=None, gt=0)
    priority: Priority | None = None
    importance: Importance | None = None
    status: TaskStatus | None = None
    tags: list[str] | None = None
    notes: str | None = None
    actual_start_time: datetime | None = None
    actual_end_time: datetime | None = None
    actual_minutes: int | None = Field(default=None, ge=0)
    interruptions: int | None = Field(default=None, ge=0)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return clean_title(v) if v is not None else None

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str] | None) -> list[str] | None:
        """Tags behave as a set."""
        return dedupe_tags(v) if v is not None else None


class RoutineUpdate(PartialUpdate):
    """Partial update payload for a routine."""

    REQUIRED_FIELDS: ClassVar[frozenset[str]] = frozenset(
        {"title", "repeat_type", "repeat_interval", "estimated_minutes", "is_active"}
    )

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    repeat_type: RepeatType | None = None
    repeat_interval: int | None = Field(default=None, gt=0)
    estimated_minutes: int | None = Field(default=None, gt=0)
    is_active: bool | None = None

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str | None) -> str | None:
        return clean_title(v) if v is not None else None


class ProfileUpdate(PartialUpdate):
    """Profile fields a user may change after sign-in."""

    name: str | None = Field(default=None, max_length=MAX_NAME_LENGTH)
    image: str | None = None
