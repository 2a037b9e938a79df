"""
Identity records exchanged with the identity store.

Records isolate the service layer from ORM models: the store copies rows into
these immutable values inside its unit of work, so nothing downstream ever
touches a live session.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from werkzeug.security import check_password_hash

# --------------------------------------------------------------------------- #
# Input records
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class NewUser:
    """
    Input record for creating a user.

    :param username: Public username (unique).
    :type username: str
    :param email: Login email (normalized to lowercase by the model).
    :type email: str
    :param first_name: Given name.
    :type first_name: str
    :param last_name: Family name, may be empty.
    :type last_name: str
    :param password: Raw password hashed by the model; ``None`` for
        social-only accounts.
    :type password: str | None
    :param api_key: Opaque key handed to API clients.
    :type api_key: str
    :param is_username_set: Whether the user chose the username.
    :type is_username_set: bool
    :param verified: Email verification flag.
    :type verified: bool
    :param profile_image_url: Avatar URL, if any.
    :type profile_image_url: str | None
    :param refresh_tokens: Allowlist rows inserted together with the user.
    :type refresh_tokens: tuple[str, ...]
    """

    username: str
    email: str
    first_name: str
    last_name: str = ""
    password: str | None = None
    api_key: str = ""
    is_username_set: bool = True
    verified: bool = False
    profile_image_url: str | None = None
    refresh_tokens: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NewSocial:
    """
    Input record for a social identity link.

    :param provider: Provider name, e.g. ``"google"``.
    :param provider_id: Provider-stable account id.
    """

    provider: str
    provider_id: str


# --------------------------------------------------------------------------- #
# Output records
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserRecord:
    """
    Snapshot of a persisted user.

    ``password_hash`` never leaves the service layer; profile serialization
    only exposes the public fields.
    """

    id: int
    username: str
    email: str
    first_name: str
    last_name: str
    password_hash: str | None
    is_username_set: bool
    is_password_set: bool
    verified: bool
    api_key: str
    profile_image_url: str | None = None

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password candidate.

        :returns: ``False`` for accounts without a password.
        """
        if not self.password_hash or not raw:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    @classmethod
    def from_model(cls, user: Any) -> UserRecord:
        """Copy the public and credential fields of an ORM ``User``."""
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            password_hash=user.password_hash,
            is_username_set=bool(user.is_username_set),
            is_password_set=bool(user.is_password_set),
            verified=bool(user.verified),
            api_key=user.api_key,
            profile_image_url=user.profile_image_url,
        )


@dataclass(frozen=True, slots=True)
class SocialRecord:
    """Snapshot of a persisted social identity link."""

    id: int
    provider: str
    provider_id: str
    user_id: int

    @classmethod
    def from_model(cls, social: Any) -> SocialRecord:
        return cls(
            id=social.id,
            provider=social.provider,
            provider_id=social.provider_id,
            user_id=social.user_id,
        )


@dataclass(frozen=True, slots=True)
class TodoRecord:
    """Snapshot of a persisted todo."""

    id: int
    username: str
    name: str
    description: str | None
    due_date: datetime | None
    completed: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_model(cls, todo: Any) -> TodoRecord:
        return cls(
            id=todo.id,
            username=todo.username,
            name=todo.name,
            description=todo.description,
            due_date=todo.due_date,
            completed=bool(todo.completed),
            created_at=todo.created_at,
            updated_at=todo.updated_at,
        )
