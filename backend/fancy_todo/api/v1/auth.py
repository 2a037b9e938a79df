"""Authentication endpoints: sign-up, sign-in, refresh and sign-out."""

from __future__ import annotations

from flask import Blueprint, request

from fancy_todo.api.deps import enforce_csrf, get_auth_service, json_response, timing
from fancy_todo.api.transport import (
    clear_session_cookies,
    issue_csrf_token,
    read_refresh_token,
    set_session_cookies,
)
from fancy_todo.schemas import SocialSignInSchema, TokensSchema, UserProfileSchema
from fancy_todo.services.auth.dto import AuthResult
from fancy_todo.services.tokens.dto import TokenPair

bp = Blueprint("auth", __name__)

user_schema = UserProfileSchema()
tokens_schema = TokensSchema()
social_schema = SocialSignInSchema()


def _payload() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _tokens_body(tokens: TokenPair, csrf_token: str) -> dict:
    body = tokens_schema.dump(tokens)
    body["csrfToken"] = csrf_token
    return body


def _session_response(result: AuthResult):
    csrf_token = issue_csrf_token()
    body = {
        "message": result.message,
        "user": user_schema.dump(result.user),
        "tokens": _tokens_body(result.tokens, csrf_token),
    }
    response = json_response(body, status=result.status_code)
    return set_session_cookies(response, result.tokens, csrf_token)


@bp.post("/signup")
@timing
def sign_up():
    """Create a local account and open its first session."""

    result = get_auth_service().sign_up(_payload())
    return _session_response(result)


@bp.post("/signin")
@timing
def sign_in():
    """Authenticate a username-or-email and password."""

    result = get_auth_service().sign_in(_payload())
    return _session_response(result)


@bp.post("/google")
@timing
def google_sign_in():
    """Sign in (or up) with a Google ID token."""

    data = social_schema.load(_payload())
    result = get_auth_service().social_sign_in(data["googleIdToken"])
    return _session_response(result)


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the presented refresh token into a new pair."""

    token, source = read_refresh_token()
    enforce_csrf(source)
    result = get_auth_service().refresh(token)
    csrf_token = issue_csrf_token()
    body = {"message": result.message, "tokens": _tokens_body(result.tokens, csrf_token)}
    response = json_response(body)
    return set_session_cookies(response, result.tokens, csrf_token)


@bp.post("/signout")
@timing
def sign_out():
    """
    Revoke the presented refresh token, if any, and clear the cookies.

    A cookie-borne token must come with a valid anti-forgery header.
    """

    token, source = read_refresh_token()
    enforce_csrf(source)
    get_auth_service().sign_out(token)
    response = json_response({"message": "Successfully signed out!"})
    return clear_session_cookies(response)
