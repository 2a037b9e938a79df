"""Link between a user and a third-party identity provider account."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fancy_todo.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .user import User


class Social(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Social identity linking ``(provider, provider_id)`` to exactly one user.

    A user may hold one link per provider.
    """

    __tablename__ = "socials"

    provider: Mapped[str] = mapped_column(String(32), nullable=False)
    provider_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    user: Mapped[User] = relationship(back_populates="socials")

    __table_args__ = (
        UniqueConstraint("provider", "provider_id", name="uq_socials_provider_provider_id"),
        UniqueConstraint("user_id", "provider", name="uq_socials_user_id_provider"),
    )
