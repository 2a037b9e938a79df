# fancy_todo/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask import current_app
from flask_jwt_extended.exceptions import JWTExtendedException
from itsdangerous import URLSafeSerializer
from jwt.exceptions import PyJWTError

from fancy_todo.services._shared.ports.token_provider import InvalidTokenError, TokenProvider

API_KEY_SALT = "api-key"


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    .. note::
       Requires an active Flask app context with proper JWT settings.
       Every token carries a fresh ``jti`` so two tokens minted in the same
       second for the same identity still differ.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        from flask_jwt_extended import create_access_token as _create_access

        return cast(
            str,
            _create_access(
                identity=identity,
                additional_claims=dict(additional_claims or {}),
                expires_delta=expires_delta,
            ),
        )

    def create_refresh_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        from flask_jwt_extended import create_refresh_token as _create_refresh

        return cast(
            str,
            _create_refresh(
                identity=identity,
                additional_claims=dict(additional_claims or {}),
                expires_delta=expires_delta,
            ),
        )

    def decode(self, token: str, *, allow_expired: bool = False) -> dict[str, Any]:
        from flask_jwt_extended import decode_token

        try:
            return cast(dict[str, Any], decode_token(token, allow_expired=allow_expired))
        except (PyJWTError, JWTExtendedException) as exc:
            raise InvalidTokenError(str(exc)) from exc

    def create_api_key(self, *, identity: str, claims: dict[str, Any] | None = None) -> str:
        serializer = URLSafeSerializer(current_app.config["SECRET_KEY"], salt=API_KEY_SALT)
        return cast(str, serializer.dumps({"sub": identity, **(claims or {})}))
