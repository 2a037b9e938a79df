"""Shared API helpers: service assembly, authentication and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request
from flask_wtf.csrf import validate_csrf
from wtforms.validators import ValidationError as CSRFValidationError

from fancy_todo.api.transport import Source, read_access_token, read_csrf_header
from fancy_todo.core.extensions import (
    IDENTITY_VERIFIER_KEY,
    REFRESH_STORE_KEY,
    TOKEN_PROVIDER_KEY,
    get_component,
)
from fancy_todo.infra.sql.identity_store import SQLIdentityStore
from fancy_todo.services._shared.errors import AuthorizationError
from fancy_todo.services.auth.service import AuthService
from fancy_todo.services.authorization.guard import AuthorizationGuard
from fancy_todo.services.todos.service import TodoService
from fancy_todo.services.tokens.dto import TokenConfig
from fancy_todo.services.tokens.service import TokenService

F = TypeVar("F", bound=Callable[..., Any])

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


# ----------------------------- assembly ------------------------------------


def get_identity_store() -> SQLIdentityStore:
    """Identity store bound to the request-scoped session."""
    return SQLIdentityStore()


def get_token_service() -> TokenService:
    """Token service wired from ``app.extensions`` and the JWT config."""
    cfg = current_app.config
    return TokenService(
        token_provider=get_component(TOKEN_PROVIDER_KEY),
        allowlist=get_component(REFRESH_STORE_KEY),
        users=get_identity_store(),
        token_cfg=TokenConfig(
            access_expires=cfg["JWT_ACCESS_TOKEN_EXPIRES"],
            refresh_expires=cfg["JWT_REFRESH_TOKEN_EXPIRES"],
        ),
    )


def get_auth_service() -> AuthService:
    return AuthService(
        store=get_identity_store(),
        tokens=get_token_service(),
        verifier=current_app.extensions.get(IDENTITY_VERIFIER_KEY),
    )


def get_guard() -> AuthorizationGuard:
    return AuthorizationGuard(get_identity_store())


def get_todo_service() -> TodoService:
    return TodoService()


# --------------------------- authentication --------------------------------


def enforce_csrf(source: Source) -> None:
    """
    Require a valid anti-forgery header when a credential came from a cookie
    on an unsafe method.

    Header and body credentials are exempt: another site cannot make a
    browser attach them.

    :raises AuthorizationError: Missing or invalid ``X-XSRF-TOKEN``.
    """
    if (
        not source.is_cookie
        or request.method in SAFE_METHODS
        or not current_app.config.get("WTF_CSRF_ENABLED", True)
    ):
        return
    try:
        validate_csrf(read_csrf_header())
    except CSRFValidationError as exc:
        current_app.logger.warning("authz.denied", extra={"reason": "csrf"})
        raise AuthorizationError("Invalid CSRF token!") from exc


def require_auth(func: F) -> F:
    """
    Ensure the request carries a valid access token.

    Cookie-borne tokens on unsafe methods must also pass
    :func:`enforce_csrf`. The resolved username is stored in ``g.identity``.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token, source = read_access_token()
        claims = get_token_service().verify_access(token)
        enforce_csrf(source)
        g.identity = str(claims["sub"])
        g.claims = claims
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# ------------------------------ responses ----------------------------------


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
