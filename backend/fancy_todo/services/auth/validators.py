"""Credential validation for sign-up and sign-in payloads.

Validation never raises: each function returns ``{field: message}`` for the
fields that failed, in declaration order, and an empty mapping when the
payload is acceptable. The auth service turns a non-empty mapping into one
aggregated :class:`~fancy_todo.services._shared.errors.ValidationError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from marshmallow import EXCLUDE, Schema, fields, validate

USERNAME_PATTERN = r"^[A-Za-z0-9_.]+$"
# at least one non-whitespace character
NOT_BLANK_PATTERN = r"\s*\S"

FIRST_NAME_MESSAGE = "First name is required!"
USERNAME_MESSAGE = "Username must be 3-30 characters of letters, numbers, '_' or '.'!"
EMAIL_MESSAGE = "Email is invalid!"
PASSWORD_MESSAGE = "Password must be between 6 and 128 characters!"
USER_IDENTIFIER_MESSAGE = "Username or email is required!"
PASSWORD_REQUIRED_MESSAGE = "Password is required!"


def _errors(message: str) -> dict[str, str]:
    return {"required": message, "null": message, "invalid": message}


class SignUpSchema(Schema):
    """Sign-up payload as sent by the client (camelCase keys)."""

    class Meta:
        unknown = EXCLUDE

    firstName = fields.String(
        required=True,
        validate=[
            validate.Length(min=1, max=100, error=FIRST_NAME_MESSAGE),
            validate.Regexp(NOT_BLANK_PATTERN, error=FIRST_NAME_MESSAGE),
        ],
        error_messages=_errors(FIRST_NAME_MESSAGE),
    )
    lastName = fields.String(load_default="", validate=validate.Length(max=100))
    username = fields.String(
        required=True,
        validate=[
            validate.Length(min=3, max=30, error=USERNAME_MESSAGE),
            validate.Regexp(USERNAME_PATTERN, error=USERNAME_MESSAGE),
        ],
        error_messages=_errors(USERNAME_MESSAGE),
    )
    email = fields.Email(
        required=True,
        validate=validate.Length(max=254, error=EMAIL_MESSAGE),
        error_messages=_errors(EMAIL_MESSAGE),
    )
    password = fields.String(
        required=True,
        validate=validate.Length(min=6, max=128, error=PASSWORD_MESSAGE),
        error_messages=_errors(PASSWORD_MESSAGE),
    )


class SignInSchema(Schema):
    """Local sign-in payload; ``userIdentifier`` is a username or an email."""

    class Meta:
        unknown = EXCLUDE

    userIdentifier = fields.String(
        required=True,
        validate=[
            validate.Length(min=1, max=254, error=USER_IDENTIFIER_MESSAGE),
            validate.Regexp(NOT_BLANK_PATTERN, error=USER_IDENTIFIER_MESSAGE),
        ],
        error_messages=_errors(USER_IDENTIFIER_MESSAGE),
    )
    password = fields.String(
        required=True,
        validate=validate.Length(min=1, error=PASSWORD_REQUIRED_MESSAGE),
        error_messages=_errors(PASSWORD_REQUIRED_MESSAGE),
    )


def _first_messages(schema: Schema, data: Mapping[str, Any] | None) -> dict[str, str]:
    errors = schema.validate(dict(data or {}))
    flat: dict[str, str] = {}
    for name in schema.fields:
        messages = errors.get(name)
        if not messages:
            continue
        flat[name] = str(messages[0]) if isinstance(messages, list) else str(messages)
    return flat


def validate_sign_up(data: Mapping[str, Any] | None) -> dict[str, str]:
    """Validate a sign-up payload; see :class:`SignUpSchema`."""
    return _first_messages(SignUpSchema(), data)


def validate_sign_in(data: Mapping[str, Any] | None) -> dict[str, str]:
    """Validate a local sign-in payload; see :class:`SignInSchema`."""
    return _first_messages(SignInSchema(), data)
