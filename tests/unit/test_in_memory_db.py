"""Tests for the in-memory database used by the service tests."""

import pytest

from src.core.db_client import DatabaseError, DuplicateRecordError, RecordNotFoundError
from tests.unit.mocks import InMemoryDBClient


@pytest.fixture
def db():
    return InMemoryDBClient(unique_constraints={"tasks": [("routine_id", "planned_date")]})


@pytest.mark.unit
class TestInMemoryDBClient:
    """Behavior the services rely on."""

    async def test_create_and_get(self, db):
        record = await db.create_record("users", {"email": "a@example.com"})

        fetched = await db.get_record("users", record["id"])

        assert fetched == record
        assert record["id"] == "1000"

    async def test_returned_records_are_copies(self, db):
        record = await db.create_record("tasks", {"tags": ["a"]})
        record["tags"].append("b")

        assert (await db.get_record("tasks", record["id"]))["tags"] == ["a"]

    async def test_update_refreshes_timestamp(self, db):
        record = await db.create_record("users", {"email": "a@example.com"})

        updated = await db.update_record("users", record["id"], {"name": "A"})

        assert updated["name"] == "A"
        assert updated["updated"] > record["updated"]

    async def test_missing_records(self, db):
        with pytest.raises(RecordNotFoundError):
            await db.get_record("users", "1")
        with pytest.raises(RecordNotFoundError):
            await db.delete_record("users", "1")

    async def test_unique_constraint_ignores_null_columns(self, db):
        await db.create_record("tasks", {"routine_id": "1", "planned_date": "2026-03-02"})
        await db.create_record("tasks", {"routine_id": None, "planned_date": "2026-03-02"})
        await db.create_record("tasks", {"routine_id": None, "planned_date": "2026-03-02"})

        with pytest.raises(DuplicateRecordError):
            await db.create_record("tasks", {"routine_id": "1", "planned_date": "2026-03-02"})

    async def test_filters(self, db):
        await db.create_record("routines", {"user_id": "1", "title": "Morning run"})
        await db.create_record("routines", {"user_id": "1", "title": "Evening read"})
        await db.create_record("routines", {"user_id": "2", "title": "Morning tea"})

        run = await db.list_records("routines", filter_query='user_id = "1" && title = "Morning run"')
        others = await db.list_records("routines", filter_query='user_id != "1"')

        assert [r["title"] for r in run] == ["Morning run"]
        assert [r["title"] for r in others] == ["Morning tea"]

    async def test_filter_values_with_escaped_quotes(self, db):
        await db.create_record("users", {"email": "o'brien@example.com"})
        await db.create_record("users", {"email": 'a"b&&c@example.com'})

        single = await db.get_first_record("users", filter_query='email = "o\'brien@example.com"')
        double = await db.get_first_record("users", filter_query='email = "a\\"b&&c@example.com"')

        assert single["email"] == "o'brien@example.com"
        assert double["email"] == 'a"b&&c@example.com'

    async def test_invalid_filter(self, db):
        await db.create_record("users", {"email": "a@example.com"})

        with pytest.raises(DatabaseError):
            await db.list_records("users", filter_query="email")

    async def test_multi_key_sort_with_nulls_first(self, db):
        await db.create_record("tasks", {"title": "late", "planned_start_time": "2026-03-02T15:00:00"})
        await db.create_record("tasks", {"title": "unscheduled", "planned_start_time": None})
        await db.create_record("tasks", {"title": "early", "planned_start_time": "2026-03-02T08:00:00"})

        records = await db.list_records("tasks", sort="+planned_start_time,+created")

        assert [r["title"] for r in records] == ["unscheduled", "early", "late"]

    async def test_pagination(self, db):
        for i in range(5):
            await db.create_record("users", {"email": f"{i}@example.com"})

        page = await db.list_records("users", page=2, per_page=2)

        assert [r["email"] for r in page] == ["2@example.com", "3@example.com"]
