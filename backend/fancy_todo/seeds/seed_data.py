"""Idempotent database seed helpers for local development environments."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, TypeVar, cast

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select
from sqlalchemy.orm import Session

from fancy_todo.core.extensions import TOKEN_PROVIDER_KEY, get_component
from fancy_todo.models.todo import Todo
from fancy_todo.models.user import User

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

USER_FIXTURES: list[dict[str, Any]] = [
    {
        "username": "johndoe",
        "email": "johndoe@example.com",
        "first_name": "John",
        "last_name": "Doe",
        "password": "johndoe123",
    },
    {
        "username": "janedoe",
        "email": "janedoe@example.com",
        "first_name": "Jane",
        "last_name": "Doe",
        "password": "janedoe123",
    },
]

TODO_FIXTURES: list[dict[str, Any]] = [
    {
        "username": "johndoe",
        "name": "Buy groceries",
        "description": "Milk, eggs and bread.",
        "due_date": datetime(2030, 1, 10, 18, 0, tzinfo=UTC),
        "completed": False,
    },
    {
        "username": "johndoe",
        "name": "Write weekly report",
        "description": None,
        "due_date": datetime(2030, 1, 12, 9, 0, tzinfo=UTC),
        "completed": False,
    },
    {
        "username": "johndoe",
        "name": "Renew passport",
        "description": "Book an appointment first.",
        "due_date": None,
        "completed": True,
    },
    {
        "username": "janedoe",
        "name": "Plan team offsite",
        "description": None,
        "due_date": None,
        "completed": False,
    },
]


def _session(database: SQLAlchemy) -> Session:
    """Return the active SQLAlchemy session for ``database``."""
    return cast(Session, database.session)


def _touch(summary: dict[str, dict[str, int]], table: str, created: bool) -> None:
    """Increment the created/existing counter of ``table``."""
    entry = summary.setdefault(table, {"created": 0, "existing": 0})
    entry["created" if created else "existing"] += 1


def _get_or_create(
    session: Session,
    model: type[T],
    *,
    defaults: dict[str, Any] | None = None,
    **filters: Any,
) -> tuple[T, bool]:
    """Fetch ``model`` by ``filters`` or create it using ``defaults``."""
    instance = session.execute(select(model).filter_by(**filters)).scalar_one_or_none()
    if instance is not None:
        return instance, False
    params = dict(defaults or {})
    params.update(filters)
    instance = cast(T, model(**params))
    session.add(instance)
    return instance, True


def seed_users(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create the demo accounts (local sign-in, password set)."""
    session = _session(database)
    summary: dict[str, dict[str, int]] = {}
    provider = get_component(TOKEN_PROVIDER_KEY)
    for fixture in USER_FIXTURES:
        data = dict(fixture)
        password = data.pop("password")
        user, created = _get_or_create(
            session,
            User,
            username=data.pop("username"),
            defaults={
                **data,
                "is_username_set": True,
                "verified": False,
            },
        )
        if created:
            user.password = password
            user.api_key = provider.create_api_key(
                identity=user.username, claims={"email": user.email}
            )
            if verbose:
                LOGGER.info("Seeded user %s", user.username)
        _touch(summary, "users", created)
    session.commit()
    return summary


def seed_todos(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create the demo todos, keyed by ``(username, name)``."""
    session = _session(database)
    summary: dict[str, dict[str, int]] = {}
    for fixture in TODO_FIXTURES:
        data = dict(fixture)
        _, created = _get_or_create(
            session,
            Todo,
            username=data.pop("username"),
            name=data.pop("name"),
            defaults=data,
        )
        if created and verbose:
            LOGGER.info("Seeded todo %s", fixture["name"])
        _touch(summary, "todos", created)
    session.commit()
    return summary


def run_all(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Run all seeders in foreign-key order."""
    if verbose:
        LOGGER.info("Running full seed pipeline...")
    combined: dict[str, dict[str, int]] = {}
    for func in (seed_users, seed_todos):
        result = func(database, verbose=verbose)
        for table, counters in result.items():
            entry = combined.setdefault(table, {"created": 0, "existing": 0})
            entry["created"] += counters.get("created", 0)
            entry["existing"] += counters.get("existing", 0)
    return combined


__all__ = ["seed_users", "seed_todos", "run_all"]
