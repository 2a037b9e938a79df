from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from typing import Protocol

from werkzeug.security import generate_password_hash

from fancy_todo.services._shared.errors import AlreadyExistsError
from fancy_todo.services.identity.dto import (
    NewSocial,
    NewUser,
    SocialRecord,
    TodoRecord,
    UserRecord,
)


class IdentityStore(Protocol):
    """
    Persistence contract used by authentication and authorization.

    Lookups return ``None`` on a miss; only infrastructure failures raise.
    """

    def find_user_by_username_or_email(
        self, username: str, email: str | None = None
    ) -> UserRecord | None:
        """
        First user matching the username or the email.

        With ``email`` omitted the single value is matched against both
        columns (sign-in by ``userIdentifier``).
        """

    def find_user_by_username(self, username: str) -> UserRecord | None: ...

    def find_user_by_email(self, email: str) -> UserRecord | None: ...

    def create_user(self, new: NewUser, *, social: NewSocial | None = None) -> UserRecord:
        """
        Persist a user, its ``refresh_tokens`` allowlist rows and optionally
        its first social link atomically.

        :raises AlreadyExistsError: On a username or email collision.
        """

    def delete_user(self, username: str) -> bool:
        """
        Remove a user together with its allowlist rows and social links.

        :returns: ``False`` for an unknown user.
        """

    def update_user_refresh_tokens(
        self,
        username: str,
        *,
        remove: str | None = None,
        append: str | None = None,
        reset: bool = False,
    ) -> bool:
        """
        Edit the refresh-token allowlist of ``username`` in one transaction.

        ``reset`` clears the list first; ``remove`` must be listed for the
        edit to apply. :returns: ``False`` (and no change) for an unknown
        user or a ``remove`` that is not listed.
        """

    def list_user_refresh_tokens(self, username: str) -> list[str]: ...

    def find_social_by_provider_and_subject(
        self, provider: str, provider_id: str
    ) -> SocialRecord | None: ...

    def create_social(self, user_id: int, social: NewSocial) -> SocialRecord: ...

    def find_todo_by_id(self, todo_id: int) -> TodoRecord | None: ...

    def find_incomplete_todos_by_username(self, username: str) -> list[TodoRecord]: ...


class InMemoryIdentityStore(IdentityStore):
    """
    Dictionary-backed identity store for unit tests.

    .. note::
       Uses a threading lock so allowlist edits behave atomically.
    """

    def __init__(self) -> None:
        self._users: dict[int, UserRecord] = {}
        self._tokens: dict[int, list[str]] = {}
        self._socials: dict[int, SocialRecord] = {}
        self._todos: dict[int, TodoRecord] = {}
        self._seq = 0
        self._lock = threading.Lock()

    def _next_id(self) -> int:
        self._seq += 1
        return self._seq

    # ------------------------------ users ----------------------------------

    def find_user_by_username_or_email(self, username, email=None):
        email_value = (email if email is not None else username).strip().lower()
        for user in sorted(self._users.values(), key=lambda u: u.id):
            if user.username == username or user.email == email_value:
                return user
        return None

    def find_user_by_username(self, username):
        return next((u for u in self._users.values() if u.username == username), None)

    def find_user_by_email(self, email):
        email_value = email.strip().lower()
        return next((u for u in self._users.values() if u.email == email_value), None)

    def create_user(self, new, *, social=None):
        with self._lock:
            if self.find_user_by_username(new.username) is not None:
                raise AlreadyExistsError("username")
            if self.find_user_by_email(new.email) is not None:
                raise AlreadyExistsError("email")
            if social is not None and self._find_social(social.provider, social.provider_id):
                raise AlreadyExistsError("social")
            user = UserRecord(
                id=self._next_id(),
                username=new.username.strip(),
                email=new.email.strip().lower(),
                first_name=new.first_name,
                last_name=new.last_name,
                password_hash=generate_password_hash(new.password) if new.password else None,
                is_username_set=new.is_username_set,
                is_password_set=new.password is not None,
                verified=new.verified,
                api_key=new.api_key,
                profile_image_url=new.profile_image_url,
            )
            self._users[user.id] = user
            self._tokens[user.id] = list(dict.fromkeys(new.refresh_tokens))
            if social is not None:
                self._add_social(user.id, social)
            return user

    def delete_user(self, username):
        with self._lock:
            user = self.find_user_by_username(username)
            if user is None:
                return False
            del self._users[user.id]
            self._tokens.pop(user.id, None)
            for social_id in [s.id for s in self._socials.values() if s.user_id == user.id]:
                del self._socials[social_id]
            return True

    # ---------------------------- allowlist --------------------------------

    def update_user_refresh_tokens(self, username, *, remove=None, append=None, reset=False):
        with self._lock:
            user = self.find_user_by_username(username)
            if user is None:
                return False
            tokens = [] if reset else list(self._tokens[user.id])
            if remove is not None:
                if remove not in tokens:
                    return False
                tokens.remove(remove)
            if append is not None and append not in tokens:
                tokens.append(append)
            self._tokens[user.id] = tokens
            return True

    def list_user_refresh_tokens(self, username):
        user = self.find_user_by_username(username)
        return list(self._tokens.get(user.id, [])) if user else []

    # ----------------------------- socials ---------------------------------

    def _find_social(self, provider: str, provider_id: str) -> SocialRecord | None:
        return next(
            (
                s
                for s in self._socials.values()
                if s.provider == provider and s.provider_id == provider_id
            ),
            None,
        )

    def _add_social(self, user_id: int, social: NewSocial) -> SocialRecord:
        record = SocialRecord(
            id=self._next_id(),
            provider=social.provider,
            provider_id=social.provider_id,
            user_id=user_id,
        )
        self._socials[record.id] = record
        return record

    def find_social_by_provider_and_subject(self, provider, provider_id):
        return self._find_social(provider, provider_id)

    def create_social(self, user_id, social):
        with self._lock:
            if self._find_social(social.provider, social.provider_id) is not None:
                raise AlreadyExistsError("social")
            return self._add_social(user_id, social)

    # ------------------------------ todos ----------------------------------

    def add_todo(
        self,
        username: str,
        name: str,
        *,
        completed: bool = False,
        due_date: datetime | None = None,
        description: str | None = None,
    ) -> TodoRecord:
        """Seed a todo (test helper, not part of the contract)."""
        record = TodoRecord(
            id=self._next_id(),
            username=username,
            name=name,
            description=description,
            due_date=due_date,
            completed=completed,
        )
        self._todos[record.id] = record
        return record

    def complete_todo(self, todo_id: int) -> None:
        """Mark a seeded todo completed (test helper)."""
        self._todos[todo_id] = replace(self._todos[todo_id], completed=True)

    def find_todo_by_id(self, todo_id):
        return self._todos.get(todo_id)

    def find_incomplete_todos_by_username(self, username):
        todos: Iterable[TodoRecord] = (
            t for t in self._todos.values() if t.username == username and not t.completed
        )
        return sorted(todos, key=lambda t: t.id)
