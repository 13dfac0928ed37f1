import os
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend so importing todo_api.main has no filesystem side effects
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from todo_api.main import create_app  # noqa: E402
from todo_api.repositories import InMemoryRepository  # noqa: E402
from todo_api.service import TodoService  # noqa: E402
from todo_api.settings import Settings  # noqa: E402

T0 = datetime(2025, 1, 1, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Deterministic clock; every reading advances by `step`."""

    def __init__(self, start=T0, step=timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self):
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def settings():
    return Settings(persistence_backend="memory", session_secret="test-secret")


@pytest.fixture
def app(settings, repo, clock):
    application = create_app(settings, repository=repo)
    application.state.todo_service = TodoService(repo, clock=clock)
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client):
    res = client.post("/api/register", json={"username": "alice", "password": "wonderland"})
    assert res.status_code == 201
    return client


def create_todo_payload(title="Test Task", description="Do something", category="work"):
    payload = {"title": title, "category": category}
    if description is not None:
        payload["description"] = description
    return payload


def make_todo(todo_id, title="t", category="work", created_at=T0, completed_at=None):
    return {
        "id": todo_id,
        "title": title,
        "description": None,
        "category": category,
        "created_at": created_at,
        "updated_at": created_at,
        "completed_at": completed_at,
    }


def parse_ts(value):
    """Parse an ISO-8601 timestamp from the API, accepting a trailing 'Z'."""
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)
