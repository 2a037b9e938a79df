# tests/unit/services/test_todo_service.py
from __future__ import annotations

from datetime import UTC, datetime

import pytest
from fancy_todo.services._shared.errors import NotFoundError
from fancy_todo.services.todos.service import TodoService
from tests.factories.todo import TodoFactory
from tests.factories.user import UserFactory


@pytest.fixture()
def service() -> TodoService:
    return TodoService()


@pytest.fixture()
def owner():
    return UserFactory(username="johndoe", email="john@doe.com")


def test_create_persists_for_owner(service, owner):
    due = datetime(2030, 5, 1, 9, 0, tzinfo=UTC)
    todo = service.create("johndoe", {"name": "Create client using Vue.js", "due_date": due})

    assert todo.id is not None
    assert todo.username == "johndoe"
    assert todo.name == "Create client using Vue.js"
    assert todo.completed is False
    assert [t.id for t in service.list_for_owner("johndoe")] == [todo.id]


def test_list_orders_by_due_date_with_undated_last(service, owner):
    undated = TodoFactory(username="johndoe", name="Someday")
    later = TodoFactory(username="johndoe", due_date=datetime(2030, 2, 1, tzinfo=UTC))
    sooner = TodoFactory(username="johndoe", due_date=datetime(2030, 1, 1, tzinfo=UTC))
    TodoFactory()  # someone else's

    ids = [t.id for t in service.list_for_owner("johndoe")]

    assert ids == [sooner.id, later.id, undated.id]


def test_list_filters_by_completion(service, owner):
    done = TodoFactory(username="johndoe", completed=True)
    pending = TodoFactory(username="johndoe")

    assert [t.id for t in service.list_for_owner("johndoe", completed=True)] == [done.id]
    assert [t.id for t in service.list_for_owner("johndoe", completed=False)] == [pending.id]


def test_update_applies_whitelisted_fields(service, owner):
    todo = TodoFactory(username="johndoe", name="Install MongoDB")

    updated = service.update("johndoe", todo.id, {"name": "Install MySQL", "completed": True})

    assert updated.name == "Install MySQL"
    assert updated.completed is True


def test_update_rejects_ownership_change(service, owner):
    todo = TodoFactory(username="johndoe")
    with pytest.raises(ValueError, match="non-updatable"):
        service.update("johndoe", todo.id, {"username": "hijack"})


def test_update_is_scoped_to_owner(service, owner):
    foreign = TodoFactory()
    with pytest.raises(NotFoundError, match="Todo not found!"):
        service.update("johndoe", foreign.id, {"name": "mine now"})


def test_delete(service, owner):
    todo = TodoFactory(username="johndoe")

    service.delete("johndoe", todo.id)

    assert service.list_for_owner("johndoe") == []
    with pytest.raises(NotFoundError):
        service.delete("johndoe", todo.id)
