from datetime import timedelta

import pytest

from conftest import T0, FakeClock
from todo_api.errors import NotFound, ValidationError
from todo_api.models import Category
from todo_api.repositories import InMemoryRepository
from todo_api.service import TodoService, next_stamp, toggle_completion


@pytest.fixture
def service(clock):
    return TodoService(InMemoryRepository(), clock=clock)


def test_create_then_get(service):
    created = service.create({"title": "  Buy milk ", "category": "personal"})
    fetched = service.get(created["id"])
    assert fetched["title"] == "Buy milk"
    assert fetched["description"] is None
    assert fetched["category"] is Category.PERSONAL
    assert fetched["created_at"] == fetched["updated_at"] == T0
    assert fetched["completed_at"] is None


def test_create_collects_every_error(service):
    with pytest.raises(ValidationError) as excinfo:
        service.create({"title": "", "category": "errands", "description": 3})
    assert set(excinfo.value.fields) == {"title", "category", "description"}
    assert excinfo.value.message.startswith("Validation error: ")


def test_create_empty_title_names_title(service):
    with pytest.raises(ValidationError) as excinfo:
        service.create({"title": "", "category": "work"})
    assert excinfo.value.fields == ["title"]


def test_get_missing(service):
    with pytest.raises(NotFound):
        service.get(99)


def test_update_merges_and_stamps(service):
    created = service.create({"title": "a", "category": "work", "description": "keep"})
    updated = service.update(created["id"], {"title": "b"})
    assert updated["title"] == "b"
    assert updated["description"] == "keep"
    assert updated["created_at"] == created["created_at"]
    assert updated["updated_at"] > created["updated_at"]
    assert updated["completed_at"] is None


def test_update_can_clear_description(service):
    created = service.create({"title": "a", "category": "work", "description": "x"})
    assert service.update(created["id"], {"description": None})["description"] is None


def test_update_with_no_known_fields_is_noop(service):
    created = service.create({"title": "a", "category": "work"})
    assert service.update(created["id"], {"colour": "blue"}) == created


def test_update_missing(service):
    with pytest.raises(NotFound):
        service.update(123, {"title": "x"})


def test_update_validates_before_lookup(service):
    with pytest.raises(ValidationError):
        service.update(123, {"category": "hobby"})


def test_update_completed_at_path(service):
    created = service.create({"title": "a", "category": "work"})
    done = service.update(created["id"], {"completedAt": (T0 + timedelta(days=1)).isoformat()})
    assert done["completed_at"] == T0 + timedelta(days=1)
    with pytest.raises(ValidationError) as excinfo:
        service.update(created["id"], {"completed_at": T0 - timedelta(days=1)})
    assert excinfo.value.fields == ["completedAt"]


def test_delete_reports_outcome(service):
    created = service.create({"title": "a", "category": "work"})
    assert service.delete(created["id"]) is True
    assert service.delete(created["id"]) is False
    assert service.delete(424242) is False


def test_toggle_round_trip(service):
    created = service.create({"title": "Buy milk", "category": "personal"})
    first = service.toggle_completion(created["id"])
    assert first["completed_at"] is not None
    assert first["completed_at"] >= first["created_at"]
    second = service.toggle_completion(created["id"])
    assert second["completed_at"] is None
    assert second["updated_at"] > first["updated_at"] > created["updated_at"]


def test_toggle_missing(service):
    with pytest.raises(NotFound):
        service.toggle_completion(7)


def test_updated_at_strictly_increases_with_frozen_clock():
    frozen = FakeClock(step=timedelta(0))
    service = TodoService(InMemoryRepository(), clock=frozen)
    created = service.create({"title": "a", "category": "work"})
    first = service.toggle_completion(created["id"])
    second = service.toggle_completion(created["id"])
    assert created["updated_at"] < first["updated_at"] < second["updated_at"]


def test_list_filters_and_orders(service):
    a = service.create({"title": "a", "category": "work"})
    b = service.create({"title": "b", "category": "personal"})
    c = service.create({"title": "c", "category": "work"})
    assert [t["id"] for t in service.list()] == [c["id"], b["id"], a["id"]]
    assert [t["id"] for t in service.list("work")] == [c["id"], a["id"]]
    with pytest.raises(ValidationError):
        service.list("errands")


class TestTogglePolicy:
    def test_pure_and_involutive(self):
        todo = {
            "id": 1, "title": "t", "description": None, "category": Category.WORK,
            "created_at": T0, "updated_at": T0, "completed_at": None,
        }
        done = toggle_completion(todo, T0 + timedelta(seconds=5))
        assert todo["completed_at"] is None
        assert done["completed_at"] == T0 + timedelta(seconds=5)
        reopened = toggle_completion(done, T0 + timedelta(seconds=9))
        assert reopened["completed_at"] is None
        assert reopened["updated_at"] == T0 + timedelta(seconds=9)

    def test_next_stamp(self):
        assert next_stamp(T0, None) == T0
        assert next_stamp(T0, T0) == T0 + timedelta(microseconds=1)
        assert next_stamp(T0 + timedelta(seconds=1), T0) == T0 + timedelta(seconds=1)
