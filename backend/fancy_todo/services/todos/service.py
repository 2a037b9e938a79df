"""
TodoService
===========

Application service for the ``Todo`` aggregate. Ownership has already been
enforced by the authorization gates when these methods run; the service
still scopes every lookup by owner so a bypassed gate cannot reach a foreign
todo.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from fancy_todo.models.todo import Todo
from fancy_todo.services._shared.base import BaseService
from fancy_todo.services._shared.errors import NotFoundError
from fancy_todo.services.identity.dto import TodoRecord

log = logging.getLogger(__name__)

TODO_NOT_FOUND = "Todo not found!"


class TodoService(BaseService):
    """Create, list, update and delete todos of one owner."""

    def create(self, username: str, data: Mapping[str, Any]) -> TodoRecord:
        """
        Persist a new todo for ``username``.

        :param data: Loaded payload (``name``, optional ``description``,
            ``due_date``, ``completed``).
        """
        with self.rw_uow() as uow:
            todo = uow.todos.add(
                Todo(
                    username=username,
                    name=data["name"],
                    description=data.get("description"),
                    due_date=data.get("due_date"),
                    completed=bool(data.get("completed", False)),
                )
            )
            record = TodoRecord.from_model(todo)
        log.info("todo.created", extra={"username": username, "todo_id": record.id})
        return record

    def list_for_owner(self, username: str, *, completed: bool | None = None) -> list[TodoRecord]:
        """Todos of ``username``, optionally filtered by completion."""
        with self.ro_uow() as uow:
            return [
                TodoRecord.from_model(t)
                for t in uow.todos.list_for_owner(username, completed=completed)
            ]

    def update(self, username: str, todo_id: int, changes: Mapping[str, Any]) -> TodoRecord:
        """
        Apply whitelisted ``changes`` to a todo of ``username``.

        :raises NotFoundError: The todo does not exist for that owner.
        """
        with self.rw_uow() as uow:
            todo = uow.todos.find_one(username=username, id=todo_id)
            if todo is None:
                raise NotFoundError(TODO_NOT_FOUND)
            uow.todos.assign_updates(todo, dict(changes))
            uow.session.refresh(todo)
            record = TodoRecord.from_model(todo)
        log.info("todo.updated", extra={"username": username, "todo_id": todo_id})
        return record

    def delete(self, username: str, todo_id: int) -> None:
        """
        Delete a todo of ``username``.

        :raises NotFoundError: The todo does not exist for that owner.
        """
        with self.rw_uow() as uow:
            todo = uow.todos.find_one(username=username, id=todo_id)
            if todo is None:
                raise NotFoundError(TODO_NOT_FOUND)
            uow.todos.delete(todo)
        log.info("todo.deleted", extra={"username": username, "todo_id": todo_id})
