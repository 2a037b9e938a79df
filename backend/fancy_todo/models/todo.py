"""Todo items owned by a single user."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fancy_todo.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class Todo(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    A todo owned by ``username``.

    Ownership is by username (the path segment of every todo route), not by
    user id, so authorization compares strings that come straight from the
    URL.
    """

    __tablename__ = "todos"

    username: Mapped[str] = mapped_column(
        ForeignKey("users.username", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (Index("ix_todos_username_completed", "username", "completed"),)
