# fancy_todo/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass, field

from fancy_todo.services.identity.dto import TodoRecord, UserRecord
from fancy_todo.services.tokens.dto import TokenPair


@dataclass(frozen=True, slots=True)
class AuthResult:
    """
    Outcome of a flow that opens a session.

    :param user: Signed-in (or newly created) user.
    :type user: UserRecord
    :param tokens: Freshly minted token pair.
    :type tokens: TokenPair
    :param created: ``True`` when the flow created the user (HTTP 201).
    :type created: bool
    :param message: Client-facing summary.
    :type message: str
    """

    user: UserRecord
    tokens: TokenPair
    created: bool
    message: str

    @property
    def status_code(self) -> int:
        return 201 if self.created else 200


@dataclass(frozen=True, slots=True)
class RefreshResult:
    """New token pair handed out by a refresh."""

    tokens: TokenPair
    message: str = "Successfully refreshed token!"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Profile and pending todos of the acting user."""

    user: UserRecord
    todos: list[TodoRecord] = field(default_factory=list)
    message: str = "Successfully synced!"
