"""Pytest configuration and fixtures for unit tests."""

from datetime import UTC, date, datetime

import pytest

from src.domain.create_models import RoutineCreate, TaskCreate
from src.domain.routine import RepeatType
from src.domain.user import RequestIdentity
from tests.unit.mocks import InMemoryDBClient


FROZEN_NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient with the production unique constraints."""
    return InMemoryDBClient(
        unique_constraints={
            "users": [("email",)],
            "tasks": [("routine_id", "planned_date")],
        }
    )


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)

    return in_memory_db


@pytest.fixture
def frozen_now(monkeypatch):
    """Freezes the lifecycle clock at FROZEN_NOW."""
    monkeypatch.setattr("src.services.task_state_machine.utcnow", lambda: FROZEN_NOW)
    return FROZEN_NOW


@pytest.fixture
async def identity(patched_db):
    """A signed-in user that exists in the in-memory store."""
    user = await patched_db.create_record("users", {"email": "alice@example.com", "name": "Alice"})
    return RequestIdentity(user_id=user["id"], email=user["email"])


@pytest.fixture
async def other_identity(patched_db):
    """A second user, for ownership checks."""
    user = await patched_db.create_record("users", {"email": "bob@example.com", "name": "Bob"})
    return RequestIdentity(user_id=user["id"], email=user["email"])


@pytest.fixture
def sample_task_create():
    """Returns a sample task payload."""
    return TaskCreate(
        title="Write report",
        description="Quarterly summary",
        planned_date=date(2026, 3, 2),
        estimated_minutes=30,
        tags=["work", "writing"],
    )


@pytest.fixture
def sample_routine_create():
    """Returns a sample routine payload."""
    return RoutineCreate(
        title="Morning review",
        description="Plan the day",
        repeat_type=RepeatType.DAILY,
        estimated_minutes=15,
    )
