"""SQLAlchemy models for users, linked social identities and todos."""

from __future__ import annotations

from .social import Social
from .todo import Todo
from .user import User, UserRefreshToken

__all__ = ["User", "UserRefreshToken", "Social", "Todo"]
