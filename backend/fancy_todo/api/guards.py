"""Flask adapter running authorization gates before a view."""

from __future__ import annotations

import functools
from collections.abc import Callable
from typing import Any, TypeVar

from flask import g, request

from fancy_todo.api.deps import get_guard
from fancy_todo.services.authorization.guard import AccessRequest

F = TypeVar("F", bound=Callable[..., Any])

GATES = ("user", "actor", "todo")


def guard(*gates: str) -> Callable[[F], F]:
    """
    Run the named gates (``"user"``, ``"actor"``, ``"todo"``) in order.

    Must sit below :func:`fancy_todo.api.deps.require_auth` so ``g.identity``
    is resolved; the view only runs when every gate passes.
    """
    unknown = [name for name in gates if name not in GATES]
    if unknown:
        raise ValueError(f"Unknown gates: {unknown}")

    def decorator(view: F) -> F:
        @functools.wraps(view)
        def wrapper(*args: Any, **kwargs: Any):
            authz = get_guard()
            req = AccessRequest(
                path_params=dict(request.view_args or {}),
                identity=g.get("identity"),
            )
            chain = [getattr(authz, f"authorize_{name}") for name in gates]
            return authz.chain(req, chain, lambda: view(*args, **kwargs))

        return wrapper  # type: ignore[return-value]

    return decorator
