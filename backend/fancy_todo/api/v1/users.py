"""User endpoints."""

from __future__ import annotations

from flask import Blueprint, g

from fancy_todo.api.deps import get_auth_service, json_response, require_auth, timing
from fancy_todo.schemas import TodoSchema, UserProfileSchema

bp = Blueprint("users", __name__)

user_schema = UserProfileSchema()
todo_list_schema = TodoSchema(many=True)


@bp.get("/sync")
@require_auth
@timing
def sync():
    """Return the acting user's profile and incomplete todos."""

    result = get_auth_service().sync(g.identity)
    return json_response(
        {
            "message": result.message,
            "user": user_schema.dump(result.user),
            "todos": todo_list_schema.dump(result.todos),
        }
    )
