"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import SocialSignInSchema, TokensSchema
from .todo import TodoCreateSchema, TodoFilterSchema, TodoSchema, TodoUpdateSchema
from .user import UserProfileSchema

__all__ = [
    "SocialSignInSchema",
    "TokensSchema",
    "TodoCreateSchema",
    "TodoUpdateSchema",
    "TodoFilterSchema",
    "TodoSchema",
    "UserProfileSchema",
]
