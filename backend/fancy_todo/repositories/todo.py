"""Todo repository."""

from __future__ import annotations

from sqlalchemy import select

from fancy_todo.models.todo import Todo
from fancy_todo.repositories.base import BaseRepository


class TodoRepository(BaseRepository[Todo]):
    """Persistence-only repository for :class:`Todo`."""

    model = Todo

    def _filterable_fields(self):
        return {
            "id": Todo.id,
            "username": Todo.username,
            "completed": Todo.completed,
        }

    def _updatable_fields(self):
        return {"name", "description", "due_date", "completed"}

    def list_for_owner(self, username: str, *, completed: bool | None = None) -> list[Todo]:
        """List a user's todos ordered by due date (undated last), then id.

        :param username: Owner username.
        :param completed: Restrict to completed/incomplete todos when given.
        """
        stmt = select(Todo).where(Todo.username == username)
        if completed is not None:
            stmt = stmt.where(Todo.completed.is_(completed))
        stmt = stmt.order_by(Todo.due_date.is_(None), Todo.due_date, Todo.id)
        return list(self.session.execute(stmt).scalars())
