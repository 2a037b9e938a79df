from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any, Protocol


class InvalidTokenError(Exception):
    """Raised when a token cannot be decoded (bad signature, expired, malformed)."""


class TokenProvider(Protocol):
    """Port for issuing and decoding signed tokens."""

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        """Return the token claims or raise :class:`InvalidTokenError`."""
        ...

    def create_api_key(self, *, identity: str, claims: dict[str, Any] | None = None) -> str:
        """Return an opaque, signed, non-expiring key bound to ``identity``."""
        ...


class StubTokenProvider(TokenProvider):
    """Deterministic token provider used in unit tests.

    Expiry is evaluated against :func:`datetime.now` so ``freezegun`` can move
    tokens past their lifetime.
    """

    def __init__(self) -> None:
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}

    def _mk(
        self,
        *,
        identity: str,
        ttype: str,
        exp_delta: timedelta,
        additional_claims: dict[str, Any] | None = None,
    ) -> str:
        self._seq += 1
        jti = f"jti-{self._seq}"
        token = f"{ttype}.{identity}.{self._seq}"
        payload: dict[str, Any] = {
            "sub": identity,
            "type": ttype,
            "jti": jti,
            "exp": int((datetime.now(tz=UTC) + exp_delta).timestamp()),
        }
        if additional_claims:
            payload.update(additional_claims)
        self._issued[token] = payload
        return token

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        return self._mk(
            identity=identity,
            ttype="access",
            exp_delta=expires_delta or timedelta(minutes=15),
            additional_claims=additional_claims,
        )

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        return self._mk(
            identity=identity,
            ttype="refresh",
            exp_delta=expires_delta or timedelta(days=7),
            additional_claims=additional_claims,
        )

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        payload = self._issued.get(token)
        if payload is None:
            raise InvalidTokenError("Unknown token.")
        if not allow_expired and payload["exp"] <= int(datetime.now(tz=UTC).timestamp()):
            raise InvalidTokenError("Token has expired.")
        return dict(payload)

    def create_api_key(self, *, identity: str, claims: dict[str, Any] | None = None) -> str:
        return f"api-key.{identity}"
