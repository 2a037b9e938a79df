# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, ClassVar

import redis  # type: ignore[import-untyped]

from fancy_todo.services._shared.ports import RefreshTokenStore


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh-token allowlist.

    Each identity owns one list ``rt:u:{username}`` (oldest token first)
    whose TTL is pushed forward on every write, so idle allowlists expire
    together with their last refresh token.

    :param r: A Redis client (already connected).
    :param ttl_seconds: Lifetime of the allowlist key.
    """

    stored_with_identity: ClassVar[bool] = False

    r: redis.Redis
    ttl_seconds: int = 7 * 24 * 3600

    # -------------------- helpers --------------------

    @staticmethod
    def _ku(username: str) -> str:
        return f"rt:u:{username}"

    @staticmethod
    def _s(value: Any) -> str:
        return value.decode() if isinstance(value, bytes | bytearray) else str(value)

    # -------------------- API ------------------------

    def append(self, username: str, token: str) -> None:
        key = self._ku(username)
        pipe = self.r.pipeline(transaction=True)
        # LREM first keeps the same token from being listed twice
        pipe.lrem(key, 0, token)
        pipe.rpush(key, token)
        pipe.expire(key, self.ttl_seconds)
        pipe.execute()

    def swap(self, username: str, old: str, new: str) -> bool:
        """
        Atomically replace ``old`` with ``new``.

        Uses WATCH/MULTI/EXEC (optimistic locking): when another client
        touches the list between the membership check and the commit, the
        transaction aborts and the check is redone, so a consumed token can
        never be swapped twice.
        """
        key = self._ku(username)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    members = [self._s(m) for m in p.lrange(key, 0, -1)]
                    if old not in members:
                        p.unwatch()
                        return False

                    p.multi()
                    p.lrem(key, 1, old)
                    p.rpush(key, new)
                    p.expire(key, self.ttl_seconds)
                    p.execute()
                return True
            except redis.WatchError:
                # Concurrent modification detected; retry loop
                continue

    def remove(self, username: str, token: str) -> bool:
        return int(self.r.lrem(self._ku(username), 0, token)) > 0

    def contains(self, username: str, token: str) -> bool:
        return token in self.list_for_user(username)

    def list_for_user(self, username: str) -> list[str]:
        return [self._s(m) for m in self.r.lrange(self._ku(username), 0, -1)]

    def reset(self, username: str, tokens: Iterable[str]) -> None:
        key = self._ku(username)
        values = list(dict.fromkeys(tokens))
        pipe = self.r.pipeline(transaction=True)
        pipe.delete(key)
        if values:
            pipe.rpush(key, *values)
            pipe.expire(key, self.ttl_seconds)
        pipe.execute()
