"""Refresh-token allowlist stored on the user rows (``user_refresh_tokens``)."""

from __future__ import annotations

from collections.abc import Iterable

from fancy_todo.services._shared.errors import NotFoundError
from fancy_todo.services._shared.ports import IdentityStore, RefreshTokenStore


class SQLRefreshTokenStore(RefreshTokenStore):
    """
    Allowlist adapter delegating to
    :meth:`IdentityStore.update_user_refresh_tokens`.

    The swap is one ``DELETE`` of the presented row plus one ``INSERT`` inside
    a single transaction; the ``DELETE`` row count decides which of two
    concurrent rotations wins.
    """

    stored_with_identity = True

    def __init__(self, *, store: IdentityStore) -> None:
        self.store = store

    def append(self, username: str, token: str) -> None:
        if not self.store.update_user_refresh_tokens(username, append=token):
            raise NotFoundError("User not found, please sign up first!")

    def swap(self, username: str, old: str, new: str) -> bool:
        return self.store.update_user_refresh_tokens(username, remove=old, append=new)

    def remove(self, username: str, token: str) -> bool:
        return self.store.update_user_refresh_tokens(username, remove=token)

    def contains(self, username: str, token: str) -> bool:
        return token in self.store.list_user_refresh_tokens(username)

    def list_for_user(self, username: str) -> list[str]:
        return self.store.list_user_refresh_tokens(username)

    def reset(self, username: str, tokens: Iterable[str]) -> None:
        values = list(dict.fromkeys(tokens))
        first = values[0] if values else None
        if not self.store.update_user_refresh_tokens(username, reset=True, append=first):
            raise NotFoundError("User not found, please sign up first!")
        for token in values[1:]:
            self.append(username, token)
