"""User repository: identity lookups and the refresh-token allowlist rows."""

from __future__ import annotations

from typing import cast

from sqlalchemy import delete, or_, select

from fancy_todo.models.user import User, UserRefreshToken
from fancy_todo.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It never mints or decodes tokens; it only stores the refresh-token
    strings the token service hands over.
    """

    model = User

    def _filterable_fields(self):
        return {
            "email": User.email,
            "username": User.username,
        }

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by exact username."""
        stmt = select(User).where(User.username == username)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_username_or_email(self, username: str, email: str | None = None) -> User | None:
        """Fetch the first user whose username or email matches.

        With a single argument the value is tried as both (sign-in by
        ``userIdentifier``); with two, each is matched against its own column
        (sign-up uniqueness check).
        """
        email_value = (email if email is not None else username).lower().strip()
        stmt = (
            select(User)
            .where(or_(User.username == username, User.email == email_value))
            .order_by(User.id)
        )
        return cast(User | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Allowlist rows ----------------------------

    def list_refresh_tokens(self, user_id: int) -> list[str]:
        """Return the user's allowlisted refresh tokens, oldest first."""
        stmt = (
            select(UserRefreshToken.token)
            .where(UserRefreshToken.user_id == user_id)
            .order_by(UserRefreshToken.id)
        )
        return list(self.session.execute(stmt).scalars())

    def append_refresh_token(self, user_id: int, token: str) -> None:
        """Insert ``token`` at the end of the user's allowlist."""
        self.session.add(UserRefreshToken(user_id=user_id, token=token))
        self.flush()

    def remove_refresh_token(self, user_id: int, token: str) -> bool:
        """Delete exactly ``token`` from the allowlist.

        The single ``DELETE`` doubles as a compare-and-swap: when two
        transactions race to consume the same token only one sees a row
        count of 1.

        :returns: ``True`` if a row was deleted.
        """
        stmt = delete(UserRefreshToken).where(
            UserRefreshToken.user_id == user_id,
            UserRefreshToken.token == token,
        )
        result = self.session.execute(stmt.execution_options(synchronize_session=False))
        self.session.expire_all()
        return bool(result.rowcount)

    def clear_refresh_tokens(self, user_id: int) -> int:
        """Delete every allowlisted refresh token of the user."""
        stmt = delete(UserRefreshToken).where(UserRefreshToken.user_id == user_id)
        result = self.session.execute(stmt.execution_options(synchronize_session=False))
        self.session.expire_all()
        return int(result.rowcount or 0)
