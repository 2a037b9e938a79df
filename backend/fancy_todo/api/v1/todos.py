"""Todo endpoints scoped to ``/<username>/todos``."""

from __future__ import annotations

from flask import Blueprint, request

from fancy_todo.api.deps import get_todo_service, json_response, require_auth, timing
from fancy_todo.api.guards import guard
from fancy_todo.schemas import TodoCreateSchema, TodoFilterSchema, TodoSchema, TodoUpdateSchema

bp = Blueprint("todos", __name__)

todo_schema = TodoSchema()
todo_list_schema = TodoSchema(many=True)
todo_create_schema = TodoCreateSchema()
todo_update_schema = TodoUpdateSchema()
todo_filter_schema = TodoFilterSchema()


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


@bp.post("/<username>/todos")
@require_auth
@guard("user", "actor")
@timing
def create_todo(username: str):
    """Create a todo owned by ``username``."""

    data = todo_create_schema.load(_payload())
    todo = get_todo_service().create(username, data)
    return json_response(
        {"message": "Successfully created todo!", "todo": todo_schema.dump(todo)}, status=201
    )


@bp.get("/<username>/todos")
@require_auth
@guard("user", "actor")
@timing
def list_todos(username: str):
    """List the todos of ``username``, optionally filtered by ``completed``."""

    filters = todo_filter_schema.load(request.args)
    todos = get_todo_service().list_for_owner(username, completed=filters["completed"])
    return json_response(
        {"message": "Successfully fetched todos!", "todos": todo_list_schema.dump(todos)}
    )


@bp.route("/<username>/todos/<todo_id>", methods=["PUT", "PATCH"])
@require_auth
@guard("user", "actor", "todo")
@timing
def update_todo(username: str, todo_id: str):
    """Update a todo; PUT and PATCH both accept partial payloads."""

    changes = todo_update_schema.load(_payload())
    todo = get_todo_service().update(username, int(todo_id), changes)
    return json_response({"message": "Successfully updated todo!", "todo": todo_schema.dump(todo)})


@bp.delete("/<username>/todos/<todo_id>")
@require_auth
@guard("user", "actor", "todo")
@timing
def delete_todo(username: str, todo_id: str):
    """Delete a todo of ``username``."""

    get_todo_service().delete(username, int(todo_id))
    return json_response({"message": "Successfully deleted todo!"})
