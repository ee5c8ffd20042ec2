"""HTTP-level tests for the auth, task, routine and CI routers."""

import pytest
from fastapi.testclient import TestClient

from src.core.config import constants, settings
from src.main import app


@pytest.fixture
def client(patched_db) -> TestClient:
    """Unauthenticated client backed by the in-memory database."""
    return TestClient(app, raise_server_exceptions=False)


@pytest.fixture
def signed_in(client: TestClient) -> TestClient:
    """Client holding a session cookie for alice@example.com."""
    response = client.post("/auth/signin", json={"email": "alice@example.com", "name": "Alice"})
    assert response.status_code == 200
    return client


def create_task(client: TestClient, **overrides) -> dict:
    payload = {"title": "Write report", "planned_date": "2026-03-02", "estimated_minutes": 30, **overrides}
    response = client.post("/tasks", json=payload)
    assert response.status_code == 201
    return response.json()


@pytest.mark.unit
class TestAuth:
    """Tests for the session cookie flow."""

    def test_health_needs_no_session(self, client):
        assert client.get("/health").json() == {"status": "healthy"}

    def test_missing_cookie_is_unauthorized(self, client):
        response = client.get("/tasks")

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "ERR_UNAUTHORIZED"

    def test_tampered_cookie_is_unauthorized(self, client):
        client.cookies.set(constants.SESSION_COOKIE_NAME, "forged.value.sig")

        assert client.get("/auth/me").status_code == 401

    def test_signin_sets_cookie_and_me_returns_user(self, signed_in):
        me = signed_in.get("/auth/me")

        assert me.status_code == 200
        assert me.json()["email"] == "alice@example.com"

    def test_profile_update(self, signed_in):
        response = signed_in.patch("/auth/me", json={"name": "Alice B."})

        assert response.status_code == 200
        assert response.json()["name"] == "Alice B."

    def test_signout_clears_session(self, signed_in):
        assert signed_in.post("/auth/signout").json() == {"message": "Signed out"}

        assert signed_in.get("/auth/me").status_code == 401

    def test_invalid_email_is_validation_error(self, client):
        response = client.post("/auth/signin", json={"email": "nope"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "ERR_VALIDATION"


@pytest.mark.unit
class TestTaskRoutes:
    """Tests for /tasks endpoints."""

    def test_create_and_list(self, signed_in):
        task = create_task(signed_in)

        listed = signed_in.get("/tasks", params={"date": "2026-03-02"})

        assert listed.status_code == 200
        assert [t["id"] for t in listed.json()] == [task["id"]]

    def test_missing_required_field(self, signed_in):
        response = signed_in.post("/tasks", json={"title": "No date", "estimated_minutes": 10})

        assert response.status_code == 400

    def test_unknown_status_filter(self, signed_in):
        response = signed_in.get("/tasks", params={"status": "DONE"})

        assert response.status_code == 400

    def test_unknown_task_is_not_found(self, signed_in):
        response = signed_in.get("/tasks/999999")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "ERR_NOT_FOUND"

    def test_lifecycle_over_http(self, signed_in):
        task = create_task(signed_in)

        rejected = signed_in.post(f"/tasks/{task['id']}/complete", json={"actual_minutes": 10})
        assert rejected.status_code == 409
        assert rejected.json()["error"]["code"] == "ERR_INVALID_STATE_TRANSITION"

        assert signed_in.post(f"/tasks/{task['id']}/start").json()["status"] == "IN_PROGRESS"
        assert signed_in.get(f"/tasks/{task['id']}/progress").status_code == 200
        assert signed_in.post(f"/tasks/{task['id']}/pause").json()["interruptions"] == 1
        assert signed_in.post(f"/tasks/{task['id']}/start").status_code == 200

        completed = signed_in.post(f"/tasks/{task['id']}/complete", json={"actual_minutes": 25})
        assert completed.json()["status"] == "COMPLETED"
        assert completed.json()["actual_minutes"] == 25

    def test_partial_update_and_delete(self, signed_in):
        task = create_task(signed_in, description="Draft")

        updated = signed_in.put(f"/tasks/{task['id']}", json={"description": None})
        assert updated.status_code == 200
        assert updated.json()["description"] is None
        assert updated.json()["title"] == "Write report"

        deleted = signed_in.delete(f"/tasks/{task['id']}")
        assert deleted.json() == {"message": "Task deleted successfully"}
        assert signed_in.get(f"/tasks/{task['id']}").status_code == 404

    def test_daily_stats(self, signed_in):
        create_task(signed_in)
        create_task(signed_in, title="Review")

        stats = signed_in.get("/tasks/stats", params={"date": "2026-03-02"})

        assert stats.status_code == 200
        assert stats.json()["total_tasks"] == 2
        assert stats.json()["pending_tasks"] == 2

    def test_unexpected_failure_is_generic_500(self, signed_in, monkeypatch):
        async def broken(**_kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr("src.services.task_service.list_tasks", broken)

        response = signed_in.get("/tasks")

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "ERR_INTERNAL"
        assert "disk on fire" not in response.text


@pytest.mark.unit
class TestRoutineRoutes:
    """Tests for /routines endpoints."""

    def test_generate_task_conflict(self, signed_in):
        routine = signed_in.post("/routines", json={"title": "Stretch", "repeat_type": "DAILY"})
        assert routine.status_code == 201
        routine_id = routine.json()["id"]

        first = signed_in.post(f"/routines/{routine_id}/generate-task", json={"planned_date": "2026-03-02"})
        second = signed_in.post(f"/routines/{routine_id}/generate-task", json={"planned_date": "2026-03-02"})

        assert first.status_code == 201
        assert first.json()["routine_id"] == routine_id
        assert second.status_code == 409
        assert second.json()["error"]["code"] == "ERR_CONFLICT"
        assert len(signed_in.get("/tasks", params={"date": "2026-03-02"}).json()) == 1

    def test_invalid_repeat_type(self, signed_in):
        response = signed_in.post("/routines", json={"title": "Bad", "repeat_type": "HOURLY"})

        assert response.status_code == 400

    def test_delete_routine(self, signed_in):
        routine_id = signed_in.post("/routines", json={"title": "Read", "repeat_type": "WEEKLY"}).json()["id"]

        assert signed_in.delete(f"/routines/{routine_id}").json() == {"message": "Routine deleted successfully"}
        assert signed_in.get(f"/routines/{routine_id}").status_code == 404


@pytest.mark.unit
class TestCIRoutes:
    """Tests for /ci-performance endpoints."""

    def test_requires_session(self, client):
        assert client.get("/ci-performance/summary").status_code == 401

    def test_placeholder_before_first_analysis(self, signed_in, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "ci_data_dir", str(tmp_path))

        summary = signed_in.get("/ci-performance/summary")
        detailed = signed_in.get("/ci-performance/detailed")

        assert summary.status_code == 200
        assert summary.json()["totalRuns"] == 20
        assert summary.json()["avgDuration"] == 141
        assert detailed.status_code == 200
        assert len(detailed.json()) == 20
        assert "runId" in detailed.json()[0]

    def test_corrupt_report_is_internal_error(self, signed_in, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "ci_data_dir", str(tmp_path))
        (tmp_path / "latest-summary.json").write_text("{broken")

        response = signed_in.get("/ci-performance/summary")

        assert response.status_code == 500
