"""End-to-end flows through the HTTP API on a real SQLite database."""

import pytest
from fastapi.testclient import TestClient


pytestmark = pytest.mark.integration

DAY = "2026-03-02"


def sign_in(client: TestClient, email: str) -> None:
    response = client.post("/auth/signin", json={"email": email})
    assert response.status_code == 200


def test_task_lifecycle_persists(app_client: TestClient) -> None:
    sign_in(app_client, "alice@example.com")
    task = app_client.post(
        "/tasks",
        json={"title": "Write report", "planned_date": DAY, "estimated_minutes": 30, "tags": ["work", "work"]},
    ).json()

    assert task["tags"] == ["work"]

    for action in ("start", "pause", "start"):
        assert app_client.post(f"/tasks/{task['id']}/{action}").status_code == 200
    completed = app_client.post(f"/tasks/{task['id']}/complete", json={"actual_minutes": 28}).json()

    assert completed["status"] == "COMPLETED"
    assert completed["interruptions"] == 1
    assert len(completed["records"]) == 2
    assert all(record["end_time"] is not None for record in completed["records"])

    stats = app_client.get("/tasks/stats", params={"date": DAY}).json()
    assert stats["completed_tasks"] == 1
    assert stats["completion_rate"] == 100
    assert stats["time_efficiency"] == 107


def test_routine_generation_is_unique_per_day(app_client: TestClient) -> None:
    sign_in(app_client, "alice@example.com")
    routine = app_client.post(
        "/routines", json={"title": "Stretch", "repeat_type": "DAILY", "estimated_minutes": 10}
    ).json()

    first = app_client.post(f"/routines/{routine['id']}/generate-task", json={"planned_date": DAY})
    second = app_client.post(f"/routines/{routine['id']}/generate-task", json={"planned_date": DAY})

    assert first.status_code == 201
    assert second.status_code == 409
    assert len(app_client.get("/tasks", params={"date": DAY}).json()) == 1


def test_users_cannot_see_each_other(app_client: TestClient) -> None:
    sign_in(app_client, "alice@example.com")
    task = app_client.post("/tasks", json={"title": "Private", "planned_date": DAY, "estimated_minutes": 5}).json()

    app_client.post("/auth/signout")
    sign_in(app_client, "bob@example.com")

    assert app_client.get(f"/tasks/{task['id']}").status_code == 404
    assert app_client.delete(f"/tasks/{task['id']}").status_code == 404
    assert app_client.get("/tasks").json() == []


def test_deleting_task_removes_sessions(app_client: TestClient) -> None:
    sign_in(app_client, "alice@example.com")
    task = app_client.post("/tasks", json={"title": "Short", "planned_date": DAY, "estimated_minutes": 5}).json()
    app_client.post(f"/tasks/{task['id']}/start")

    assert app_client.delete(f"/tasks/{task['id']}").status_code == 200
    assert app_client.get(f"/tasks/{task['id']}").status_code == 404


@pytest.mark.parametrize("email", ["o'brien@example.com", 'a"b@example.com'])
def test_repeat_sign_in_with_quoted_email(app_client: TestClient, email: str) -> None:
    first = app_client.post("/auth/signin", json={"email": email})
    app_client.post("/auth/signout")
    second = app_client.post("/auth/signin", json={"email": email})

    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["id"] == second.json()["id"]
