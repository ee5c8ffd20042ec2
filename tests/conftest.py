"""Pytest configuration and shared fixtures."""

import logging
from collections.abc import Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.core.config import settings
from src.main import app


logger = logging.getLogger(__name__)


@pytest.fixture
def sqlite_db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the application at an empty SQLite file for this test."""
    path = tmp_path / "task_scheduler.db"
    monkeypatch.setattr(settings, "sqlite_db_path", str(path))
    monkeypatch.setattr(settings, "environment", "test")
    return path


@pytest.fixture
def app_client(sqlite_db_path: Path) -> Generator[TestClient]:
    """Client running the full application lifespan against a temporary database.

    The schema is created on startup and the connection closed on shutdown.
    """
    with TestClient(app) as client:
        logger.info("Started test application", extra={"db_path": str(sqlite_db_path)})
        yield client
