"""User model and its refresh-token allowlist."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates
from werkzeug.security import check_password_hash, generate_password_hash

from fancy_todo.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .social import Social


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity of the todo application.

    Fields
    ------
    first_name / last_name : str
        Display names (``last_name`` may be empty).
    username : str
        Public handle, unique. Owner key of todos.
    email : str
        Stored normalized (lowercase, trimmed), unique.
    password_hash : str | None
        ``None`` for accounts created through a social provider.
    is_username_set / is_password_set : bool
        Whether the user chose these credentials; ``is_password_set=False``
        accounts can only sign in through a linked social identity.
    verified : bool
        Email verification flag.
    api_key : str
        Opaque signed token identifying the account to API clients.
    profile_image_url : str | None
        Avatar (filled by social sign-in).
    refresh_tokens : list[UserRefreshToken]
        Allowlist of currently valid refresh tokens, oldest first.
    """

    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(254), nullable=True)
    is_username_set: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_password_set: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    api_key: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    profile_image_url: Mapped[str | None] = mapped_column(String(2048), nullable=True)

    refresh_tokens: Mapped[list[UserRefreshToken]] = relationship(
        back_populates="user",
        order_by="UserRefreshToken.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    socials: Mapped[list[Social]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
        Index("ix_users_email", "email"),
        Index("ix_users_username", "username"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str | None) -> None:
        """
        Hash and set the password, or clear it for social-only accounts.

        :param raw: Plain text password to hash, or ``None``.
        :type raw: str | None
        """
        if raw is None:
            self.password_hash = None
            self.is_password_set = False
            return
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)
        self.is_password_set = True

    def verify_password(self, raw: str) -> bool:
        """
        Verify a password against the stored hash.

        :param raw: Plain text password candidate.
        :type raw: str
        :returns: ``True`` if it matches; ``False`` otherwise or when the
            account has no password.
        :rtype: bool
        """
        if not self.password_hash or not raw:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and validate email.

        :raises ValueError: If email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        # Minimal sanity check; full validation happens in the validators.
        if "@" not in v:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        """
        Trim and require a username.

        :raises ValueError: If username is missing or only whitespace.
        """
        if not isinstance(value, str):
            raise ValueError("Username is required.")
        v = value.strip()
        if not v:
            raise ValueError("Username is required.")
        return v


class UserRefreshToken(PKMixin, db.Model):
    """
    One allowlisted refresh token of a user.

    A refresh token is valid only while its row exists; rotation deletes the
    presented row and inserts the new one in the same transaction.
    """

    __tablename__ = "user_refresh_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    token: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (Index("ix_user_refresh_tokens_user_id", "user_id"),)

    def __repr__(self) -> str:
        return f"<UserRefreshToken id={self.id} user_id={self.user_id}>"
