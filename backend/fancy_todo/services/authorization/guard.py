"""
Ownership gates run before any mutating todo or profile handler.

A gate receives an :class:`AccessRequest` and a ``proceed`` continuation; it
either returns ``proceed()`` or raises
:class:`~fancy_todo.services._shared.errors.AuthorizationError`. Gates never
mutate state, so a request rejected by any gate leaves nothing behind.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from functools import reduce
from typing import Any, TypeVar

from fancy_todo.services._shared.errors import AuthorizationError
from fancy_todo.services._shared.policies.common import is_owner
from fancy_todo.services._shared.ports.identity_store import IdentityStore

log = logging.getLogger(__name__)

T = TypeVar("T")

USERNAME_PARAM = "username"
TODO_ID_PARAM = "todo_id"

NOT_AUTHORIZED_TO_DO = "You are not authorized to do this!"


@dataclass(frozen=True, slots=True)
class AccessRequest:
    """
    What a gate may see of a request.

    :param path_params: Route parameters (``username``, ``todo_id``).
    :param identity: Username resolved from the access token, ``None`` when
        the request is unauthenticated.
    """

    path_params: Mapping[str, Any] = field(default_factory=dict)
    identity: str | None = None

    @property
    def username(self) -> str | None:
        value = self.path_params.get(USERNAME_PARAM)
        return str(value) if value is not None else None


Gate = Callable[[AccessRequest, Callable[[], T]], T]


def _parse_id(raw: Any) -> int | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isdigit():
        return int(raw)
    return None


class AuthorizationGuard:
    """Gate functions over an :class:`IdentityStore`."""

    def __init__(self, store: IdentityStore) -> None:
        self.store = store

    def _deny(self, req: AccessRequest, reason: str, message: str | None = None) -> None:
        log.warning(
            "authz.denied",
            extra={
                "username": req.identity,
                "reason": reason,
                "todo_id": req.path_params.get(TODO_ID_PARAM),
            },
        )
        raise AuthorizationError(message or "You are unauthorized!")

    def authorize_user(self, req: AccessRequest, proceed: Callable[[], T]) -> T:
        """The path's ``username`` must belong to an existing user."""
        username = req.username
        if not username or self.store.find_user_by_username(username) is None:
            self._deny(req, "unknown_owner")
        return proceed()

    def authorize_actor(self, req: AccessRequest, proceed: Callable[[], T]) -> T:
        """The acting identity must be the path's ``username``."""
        if not is_owner(actor=req.identity, owner=req.username):
            self._deny(req, "not_owner", NOT_AUTHORIZED_TO_DO)
        return proceed()

    def authorize_todo(self, req: AccessRequest, proceed: Callable[[], T]) -> T:
        """
        The todo must exist and be owned by the path's ``username``.

        A malformed id counts as a missing todo; both are authorization
        failures rather than 404s.
        """
        todo_id = _parse_id(req.path_params.get(TODO_ID_PARAM))
        todo = self.store.find_todo_by_id(todo_id) if todo_id is not None else None
        if todo is None:
            self._deny(req, "unknown_todo", NOT_AUTHORIZED_TO_DO)
        elif not is_owner(actor=req.username, owner=todo.username):
            self._deny(req, "foreign_todo", NOT_AUTHORIZED_TO_DO)
        return proceed()

    def chain(self, req: AccessRequest, gates: Sequence[Gate], proceed: Callable[[], T]) -> T:
        """Run ``gates`` left to right, then ``proceed``."""
        composed = reduce(
            lambda nxt, gate: (lambda: gate(req, nxt)),
            reversed(gates),
            proceed,
        )
        return composed()
