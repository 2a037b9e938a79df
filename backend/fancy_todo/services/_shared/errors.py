"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between the
identity store, the token service, the authorization guard and the
authentication controller.

The translation to HTTP responses is handled by ``fancy_todo/core/errors.py``
via ``BaseService.translate_exceptions()``.

Every error carries ``expose = False``: clients only ever see the curated
``message`` (and, for validation failures, the per-field ``messages``).
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, *markers: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name (``uq_users_username``) while
    SQLite reports the column (``users.username``); pass both.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    markers : str
        Constraint names or ``table.column`` pairs to look for.

    Returns
    -------
    bool
        True if the IntegrityError message mentions any marker.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return any(marker.lower() in message for marker in markers)


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``name`` is the stable error kind reported to clients.
    - ``status_code`` is the HTTP status the API boundary maps it to.
    """

    name = "ServiceError"
    status_code = 400
    expose = False

    def __init__(self, message: str = "Something went wrong!") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """
    Raised when one or more input fields fail validation.

    :param message: Summary shown to the client.
    :param messages: One entry per failing field, ``{"name", "message"}``.
    """

    name = "ValidationError"
    status_code = 400

    def __init__(self, message: str, messages: list[dict[str, Any]] | None = None) -> None:
        super().__init__(message)
        self.messages = list(messages or [])

    @classmethod
    def from_field_errors(cls, message: str, errors: dict[str, str]) -> ValidationError:
        """Aggregate a ``field -> message`` mapping into a single error."""
        return cls(
            message,
            messages=[
                {"name": field, "message": text, "status": 400} for field, text in errors.items()
            ],
        )


class AlreadyExistsError(ServiceError):
    """
    Raised when a unique identity attribute is already taken.

    :param field: Colliding field (``"username"`` or ``"email"``).
    """

    name = "AlreadyExistsError"
    status_code = 409

    def __init__(self, field: str, message: str | None = None) -> None:
        super().__init__(message or f"{field.capitalize()} isn't available.")
        self.field = field


class NotFoundError(ServiceError):
    """Raised when an identity lookup misses."""

    name = "NotFoundError"
    status_code = 404

    def __init__(self, message: str = "Resource not found!") -> None:
        super().__init__(message)


class BadRequestError(ServiceError):
    """
    Raised on credential mismatch.

    The message is deliberately generic so callers cannot tell whether the
    identifier or the password was wrong.
    """

    name = "BadRequestError"
    status_code = 400

    def __init__(self, message: str = "Wrong username or password!") -> None:
        super().__init__(message)


class AuthorizationError(ServiceError):
    """Raised when ownership or session validity checks fail."""

    name = "AuthorizationError"
    status_code = 401

    def __init__(self, message: str = "You are unauthorized!") -> None:
        super().__init__(message)


class RefreshTokenError(ServiceError):
    """
    Raised when a refresh token cannot be rotated.

    Covers expired, forged, already-rotated and revoked refresh tokens.
    """

    name = "RefreshTokenError"
    status_code = 401

    def __init__(self, message: str = "Invalid refresh token!") -> None:
        super().__init__(message)
