from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Protocol


class RefreshTokenStore(Protocol):
    """
    Per-identity allowlist of refresh tokens.

    A refresh token is usable only while it is listed here. Entries keep
    insertion order; the same token string is never listed twice.

    ``swap`` MUST be atomic: of two concurrent swaps consuming the same old
    token at most one returns ``True``.

    ``stored_with_identity`` is ``True`` when the allowlist lives in the
    identity store itself, so a new user's first token can be written in the
    same transaction as the user.
    """

    stored_with_identity: bool

    def append(self, username: str, token: str) -> None:
        """Add ``token`` at the end of the identity's allowlist."""

    def swap(self, username: str, old: str, new: str) -> bool:
        """
        Atomically replace ``old`` with ``new``.

        :returns: ``False`` (and no change) when ``old`` is not listed.
        """

    def remove(self, username: str, token: str) -> bool:
        """Remove exactly ``token``. :returns: True if it was listed."""

    def contains(self, username: str, token: str) -> bool:
        """Whether ``token`` is currently listed for the identity."""

    def list_for_user(self, username: str) -> list[str]:
        """Listed tokens, oldest first."""

    def reset(self, username: str, tokens: Iterable[str]) -> None:
        """Replace the whole allowlist with ``tokens``."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory allowlist with atomic swap behavior.

    .. note::
       Uses a threading lock to simulate atomicity in unit tests.
    """

    stored_with_identity = False

    def __init__(self) -> None:
        self._by_user: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def append(self, username: str, token: str) -> None:
        with self._lock:
            tokens = self._by_user.setdefault(username, [])
            if token not in tokens:
                tokens.append(token)

    def swap(self, username: str, old: str, new: str) -> bool:
        with self._lock:
            tokens = self._by_user.get(username, [])
            if old not in tokens:
                return False
            tokens.remove(old)
            tokens.append(new)
            return True

    def remove(self, username: str, token: str) -> bool:
        with self._lock:
            tokens = self._by_user.get(username, [])
            if token not in tokens:
                return False
            tokens.remove(token)
            return True

    def contains(self, username: str, token: str) -> bool:
        with self._lock:
            return token in self._by_user.get(username, [])

    def list_for_user(self, username: str) -> list[str]:
        with self._lock:
            return list(self._by_user.get(username, []))

    def reset(self, username: str, tokens: Iterable[str]) -> None:
        with self._lock:
            self._by_user[username] = list(dict.fromkeys(tokens))
