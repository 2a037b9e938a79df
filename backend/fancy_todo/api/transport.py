"""Credential carriers between the client and the API.

Access and refresh tokens travel in three independent channels. Reading
honours this priority: signed cookie, plain cookie, then header or JSON body.
Browsers get http-only signed cookies plus a readable ``XSRF-TOKEN`` cookie;
API clients may ignore cookies and send the tokens explicitly.
"""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import cast

from flask import Response, current_app, request, session
from flask_wtf.csrf import generate_csrf
from itsdangerous import BadSignature, Signer

from fancy_todo.services.tokens.dto import TokenPair

ACCESS_COOKIE = "act"
REFRESH_COOKIE = "rft"
CSRF_COOKIE = "XSRF-TOKEN"
CSRF_HEADERS = ("X-XSRF-TOKEN", "X-CSRF-Token")

SIGNED_PREFIX = "s:"
COOKIE_SALT = "fancy-todo.cookie"


class Source(str, Enum):
    """Channel a credential was read from."""

    SIGNED_COOKIE = "signed_cookie"
    COOKIE = "cookie"
    HEADER = "header"
    BODY = "body"
    NONE = "none"

    @property
    def is_cookie(self) -> bool:
        return self in (Source.SIGNED_COOKIE, Source.COOKIE)


def _signer() -> Signer:
    return Signer(
        current_app.config["SECRET_KEY"],
        salt=COOKIE_SALT,
        digest_method=hashlib.sha256,
    )


def sign_cookie_value(value: str) -> str:
    """Return ``value`` in its signed-cookie form (``s:<value>.<sig>``)."""
    return SIGNED_PREFIX + _signer().sign(value).decode()


def _from_cookie(name: str) -> tuple[str | None, Source]:
    raw = request.cookies.get(name)
    if not raw:
        return None, Source.NONE
    if raw.startswith(SIGNED_PREFIX):
        try:
            return _signer().unsign(raw[len(SIGNED_PREFIX) :]).decode(), Source.SIGNED_COOKIE
        except BadSignature:
            # A tampered signed cookie counts as absent, not as a plain cookie.
            current_app.logger.warning("transport.bad_cookie_signature", extra={"reason": name})
            return None, Source.NONE
    return raw, Source.COOKIE


def _from_body(key: str) -> str | None:
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def read_access_token() -> tuple[str | None, Source]:
    """Access token from ``act`` cookie, ``X-ACT``/``Authorization`` header or body ``act``."""
    token, source = _from_cookie(ACCESS_COOKIE)
    if token:
        return token, source

    header = request.headers.get("X-ACT")
    if not header:
        auth = request.headers.get("Authorization", "")
        scheme, _, credentials = auth.partition(" ")
        header = credentials.strip() if scheme.lower() == "bearer" else None
    if header:
        return header, Source.HEADER

    body = _from_body(ACCESS_COOKIE)
    return (body, Source.BODY) if body else (None, Source.NONE)


def read_refresh_token() -> tuple[str | None, Source]:
    """Refresh token from ``rft`` cookie, ``X-RFT`` header or body ``rft``."""
    token, source = _from_cookie(REFRESH_COOKIE)
    if token:
        return token, source

    header = request.headers.get("X-RFT")
    if header:
        return header, Source.HEADER

    body = _from_body(REFRESH_COOKIE)
    return (body, Source.BODY) if body else (None, Source.NONE)


def read_csrf_header() -> str | None:
    """Anti-forgery token echoed by the client."""
    for name in CSRF_HEADERS:
        value = request.headers.get(name)
        if value:
            return value
    return None


def issue_csrf_token() -> str:
    """Anti-forgery token bound to the ``_csrf`` session cookie."""
    return cast(str, generate_csrf())


def set_session_cookies(response: Response, tokens: TokenPair, csrf_token: str) -> Response:
    """Attach ``act``, ``rft`` (signed, http-only) and ``XSRF-TOKEN`` cookies."""
    cfg = current_app.config
    secure = bool(cfg.get("COOKIE_SECURE", False))
    samesite = cfg.get("COOKIE_SAMESITE", "Lax")

    response.set_cookie(
        ACCESS_COOKIE,
        sign_cookie_value(tokens.access_token),
        max_age=int(cfg["JWT_ACCESS_TOKEN_EXPIRES"].total_seconds()),
        path="/",
        secure=secure,
        httponly=True,
        samesite=samesite,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        sign_cookie_value(tokens.refresh_token),
        max_age=int(cfg["JWT_REFRESH_TOKEN_EXPIRES"].total_seconds()),
        path="/",
        secure=secure,
        httponly=True,
        samesite=samesite,
    )
    response.set_cookie(
        CSRF_COOKIE,
        csrf_token,
        path="/",
        secure=secure,
        httponly=False,
        samesite=samesite,
    )
    return response


def clear_session_cookies(response: Response) -> Response:
    """Expire every session cookie, including the ``_csrf`` session."""
    cfg = current_app.config
    secure = bool(cfg.get("COOKIE_SECURE", False))
    samesite = cfg.get("COOKIE_SAMESITE", "Lax")
    for name in (ACCESS_COOKIE, REFRESH_COOKIE, CSRF_COOKIE):
        response.delete_cookie(name, path="/", secure=secure, samesite=samesite)
    # Emptying the session makes Flask expire the ``_csrf`` cookie itself.
    session.clear()
    return response
