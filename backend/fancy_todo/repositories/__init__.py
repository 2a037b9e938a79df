"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from fancy_todo.repositories.base import BaseRepository
from fancy_todo.repositories.social import SocialRepository
from fancy_todo.repositories.todo import TodoRepository
from fancy_todo.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "SocialRepository",
    "TodoRepository",
]
