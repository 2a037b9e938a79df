"""Centralized JSON error handling for the API.

Every error leaves the application as::

    {"message": str, "name": str, "code": str, "status": int,
     "request_id": str, "messages"?: [...]}

This module is the single propagation point: views and services raise,
nothing below the view layer builds error responses.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, cast
from uuid import uuid4

from flask import Flask, Response, g, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

log = logging.getLogger(__name__)


def _ensure_request_id() -> str:
    """
    Get or generate a request-scoped correlation identifier.

    :returns: Correlation/request identifier stored in ``g.request_id``.
    :rtype: str
    """
    if hasattr(g, "request_id"):
        return cast(str, g.request_id)

    hdr = request.headers.get("X-Request-Id") or request.headers.get("X-Correlation-Id")
    req_id = hdr or str(uuid4())
    g.request_id = req_id
    return req_id


def _http_status_to_code(status_code: int) -> str:
    """Map common HTTP status codes to canonical, stable error codes."""
    mapping = {
        400: "bad_request",
        401: "unauthorized",
        403: "forbidden",
        404: "not_found",
        405: "method_not_allowed",
        409: "conflict",
        413: "payload_too_large",
        415: "unsupported_media_type",
        422: "unprocessable_entity",
        500: "internal_server_error",
        503: "service_unavailable",
    }
    return mapping.get(status_code, "error")


def _error_body(
    *,
    status: int,
    name: str,
    message: str,
    messages: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """
    Build the client-facing error payload.

    :param status: HTTP status code.
    :param name: Error kind (``ValidationError``, ``AuthorizationError``...).
    :param message: Curated, human-readable summary.
    :param messages: Optional per-field messages for validation failures.
    :returns: JSON-serializable dictionary.
    :rtype: dict
    """
    body: dict[str, Any] = {
        "message": message,
        "name": name,
        "code": _http_status_to_code(status),
        "status": status,
    }
    if messages:
        body["messages"] = messages
    body["request_id"] = _ensure_request_id()
    return body


def _error_response(body: dict[str, Any]) -> Response:
    resp = jsonify(body)
    resp.status_code = int(body["status"])
    return resp


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    name : str, optional
        Error kind reported to clients. Defaults to ``"BadRequestError"``.
    messages : list[dict[str, Any]] | None, optional
        Per-field messages included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        name: str = "BadRequestError",
        messages: list[dict[str, Any]] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.name = name
        self.messages = messages or []

    def to_body(self) -> dict[str, Any]:
        """Serialize error metadata into the client-facing payload."""
        return _error_body(
            status=self.status_code,
            name=self.name,
            message=self.message,
            messages=self.messages or None,
        )


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Domain errors are translated by ``BaseService.translate_exceptions``.
    - Ensures a correlation ``request_id`` is present on every error.
    - Emits 5xx with ``exc_info`` for traceability; 4xx as warnings.
    """
    from fancy_todo.services._shared.base import BaseService
    from fancy_todo.services._shared.errors import ServiceError

    @app.before_request
    def _seed_request_id() -> None:
        """Seed request id early for logs and downstream usage."""
        _ensure_request_id()

    def _emit(err: APIError) -> tuple[Response, int]:
        body = err.to_body()
        level = log.error if err.status_code >= 500 else log.warning
        level(
            "APIError: name=%s status=%s msg=%s request_id=%s",
            err.name,
            err.status_code,
            err.message,
            body.get("request_id"),
        )
        return _error_response(body), err.status_code

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = BaseService.translate_exceptions(err)
        return _emit(cast(APIError, translated))

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return _emit(err)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        code = _http_status_to_code(status)
        # Werkzeug may provide HTML-ish description; normalize for clients
        message = (err.description or code.replace("_", " ").capitalize()).strip()
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        body = _error_body(status=status, name=type(err).__name__, message=message)
        level = log.error if status >= 500 else log.warning
        level(
            "HTTPException: code=%s status=%s detail=%s request_id=%s",
            code,
            status,
            message,
            body.get("request_id"),
        )
        return _error_response(body), status

    @app.errorhandler(MarshmallowValidationError)
    def handle_schema_error(err: MarshmallowValidationError):
        raw = err.normalized_messages()
        messages = [
            {"name": field, "message": " ".join(map(str, texts)) if isinstance(texts, list) else str(texts)}
            for field, texts in (raw.items() if isinstance(raw, dict) else [])
        ]
        body = _error_body(
            status=HTTPStatus.BAD_REQUEST,
            name="ValidationError",
            message="Validation failed, please correct the request body!",
            messages=messages,
        )
        log.warning("ValidationError: request_id=%s", body.get("request_id"))
        return _error_response(body), HTTPStatus.BAD_REQUEST

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        # Do not leak raw DB error to clients
        body = _error_body(
            status=HTTPStatus.CONFLICT,
            name="AlreadyExistsError",
            message="Resource conflict",
        )
        log.error("IntegrityError: request_id=%s", body.get("request_id"), exc_info=True)
        return _error_response(body), HTTPStatus.CONFLICT

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        # E.g., transient DB connectivity, deadlocks, etc.
        body = _error_body(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            name="ServiceUnavailableError",
            message="Service temporarily unavailable",
        )
        log.error("OperationalError: request_id=%s", body.get("request_id"), exc_info=True)
        return _error_response(body), HTTPStatus.SERVICE_UNAVAILABLE

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Unexpected server-side error; never leak internal details
        body = _error_body(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            name="InternalServerError",
            message="Unexpected error",
        )
        log.error("Unhandled exception: request_id=%s", body.get("request_id"), exc_info=True)
        return _error_response(body), HTTPStatus.INTERNAL_SERVER_ERROR
