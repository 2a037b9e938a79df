"""SQLAlchemy-backed :class:`IdentityStore`.

Each call runs in its own unit of work and hands back immutable records, so
no ORM instance outlives its session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from sqlalchemy.exc import IntegrityError

from fancy_todo.models.social import Social
from fancy_todo.models.user import User
from fancy_todo.services._shared.errors import AlreadyExistsError, violates
from fancy_todo.services._shared.ports.identity_store import IdentityStore
from fancy_todo.services.identity.dto import (
    NewSocial,
    NewUser,
    SocialRecord,
    TodoRecord,
    UserRecord,
)
from fancy_todo.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _raise_conflict(exc: IntegrityError) -> None:
    """Translate a unique violation into :class:`AlreadyExistsError`."""
    if violates(exc, "uq_users_username", "users.username"):
        raise AlreadyExistsError("username") from exc
    if violates(exc, "uq_users_email", "users.email"):
        raise AlreadyExistsError("email") from exc
    if violates(exc, "uq_socials_provider_provider_id", "socials.provider", "uq_socials_user_id"):
        raise AlreadyExistsError("social", "Account is already linked!") from exc
    raise exc


class SQLIdentityStore(IdentityStore):
    """
    Identity store over the ``users``, ``user_refresh_tokens``, ``socials``
    and ``todos`` tables.

    :param rw_uow: Factory of read-write units of work.
    :param ro_uow: Factory of read-only units of work.
    """

    def __init__(
        self,
        *,
        rw_uow: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork,
        ro_uow: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork,
    ) -> None:
        self._rw = rw_uow
        self._ro = ro_uow

    # ------------------------------ users ----------------------------------

    def find_user_by_username_or_email(self, username, email=None):
        with self._ro() as uow:
            user = uow.users.get_by_username_or_email(username, email)
            return UserRecord.from_model(user) if user else None

    def find_user_by_username(self, username):
        with self._ro() as uow:
            user = uow.users.get_by_username(username)
            return UserRecord.from_model(user) if user else None

    def find_user_by_email(self, email):
        with self._ro() as uow:
            user = uow.users.get_by_email(email)
            return UserRecord.from_model(user) if user else None

    def create_user(self, new: NewUser, *, social: NewSocial | None = None) -> UserRecord:
        """
        Insert the user, its initial allowlist rows and, when given, its
        first social link in one transaction.

        :raises AlreadyExistsError: Unique username, email or social link
            violated, including races lost after the caller's own check.
        """
        try:
            with self._rw() as uow:
                user = User(
                    username=new.username,
                    email=new.email,
                    first_name=new.first_name,
                    last_name=new.last_name,
                    is_username_set=new.is_username_set,
                    verified=new.verified,
                    api_key=new.api_key,
                    profile_image_url=new.profile_image_url,
                )
                user.password = new.password
                uow.users.add(user)
                for token in dict.fromkeys(new.refresh_tokens):
                    uow.users.append_refresh_token(user.id, token)
                if social is not None:
                    uow.socials.add(
                        Social(
                            provider=social.provider,
                            provider_id=social.provider_id,
                            user_id=user.id,
                        )
                    )
                return UserRecord.from_model(user)
        except IntegrityError as exc:
            log.warning("identity.create_conflict", extra={"username": new.username})
            _raise_conflict(exc)
            raise

    def delete_user(self, username: str) -> bool:
        with self._rw() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                return False
            # Children go explicitly; SQLite may run without FK enforcement.
            uow.users.clear_refresh_tokens(user.id)
            uow.socials.delete_for_user(user.id)
            uow.users.delete(user)
            return True

    # ---------------------------- allowlist --------------------------------

    def update_user_refresh_tokens(self, username, *, remove=None, append=None, reset=False):
        with self._rw() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                return False
            if reset:
                uow.users.clear_refresh_tokens(user.id)
            elif remove is not None and not uow.users.remove_refresh_token(user.id, remove):
                # Lost the race (or never listed): leave the allowlist untouched.
                return False
            if append is not None and append not in uow.users.list_refresh_tokens(user.id):
                uow.users.append_refresh_token(user.id, append)
            return True

    def list_user_refresh_tokens(self, username):
        with self._ro() as uow:
            user = uow.users.get_by_username(username)
            return uow.users.list_refresh_tokens(user.id) if user else []

    # ----------------------------- socials ---------------------------------

    def find_social_by_provider_and_subject(self, provider, provider_id):
        with self._ro() as uow:
            social = uow.socials.get_by_provider_subject(provider, provider_id)
            return SocialRecord.from_model(social) if social else None

    def create_social(self, user_id: int, social: NewSocial) -> SocialRecord:
        try:
            with self._rw() as uow:
                row = uow.socials.add(
                    Social(provider=social.provider, provider_id=social.provider_id, user_id=user_id)
                )
                return SocialRecord.from_model(row)
        except IntegrityError as exc:
            _raise_conflict(exc)
            raise

    # ------------------------------ todos ----------------------------------

    def find_todo_by_id(self, todo_id):
        with self._ro() as uow:
            todo = uow.todos.get(todo_id)
            return TodoRecord.from_model(todo) if todo else None

    def find_incomplete_todos_by_username(self, username):
        with self._ro() as uow:
            return [
                TodoRecord.from_model(t) for t in uow.todos.list_for_owner(username, completed=False)
            ]
