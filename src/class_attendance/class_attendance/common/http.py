from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Any

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InvalidQRPayloadError,
    NotEnrolledError,
    NotFoundError,
    ValidationError,
)
from .validators import parse_identity

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-ID"
USER_ROLE_HEADER = "X-User-Role"

_STATUS_BY_ERROR: list[tuple[type[DomainError], int]] = [
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (InvalidQRPayloadError, 400),
    (NotEnrolledError, 400),
    (ValidationError, 400),
]


@dataclass(frozen=True)
class Caller:
    """Identity forwarded by the upstream gateway."""

    user_id: int
    role: Role


def ok(data: Any = None, *, message: str | None = None, status: int = 200):
    body: dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    return jsonify(body), status


def fail(message: str, status: int, **extra: Any):
    body: dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def status_for(error: DomainError) -> int:
    for error_type, status in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 400


def _read_caller() -> Caller:
    raw_id = request.headers.get(USER_ID_HEADER)
    raw_role = (request.headers.get(USER_ROLE_HEADER) or "").strip().lower()
    if not raw_id or not raw_role:
        raise AuthenticationError("Missing caller identity")
    try:
        user_id = parse_identity(raw_id, "user id")
        role = Role(raw_role)
    except (ValidationError, ValueError):
        raise AuthenticationError("Invalid caller identity")
    return Caller(user_id=user_id, role=role)


def current_caller() -> Caller:
    return g.caller


def roles_required(*roles: Role):
    """Guard a view so only the given gateway roles reach it."""

    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            caller = _read_caller()
            if allowed and caller.role not in allowed:
                raise AuthorizationError("You do not have access to this resource")
            g.caller = caller
            return view(*args, **kwargs)

        return wrapper

    return decorator


def json_body() -> dict[str, Any]:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = status_for(error)
        logger.info("%s %s rejected (%s): %s", request.method, request.path, status, error)
        return fail(str(error), status)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return fail(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", 500)
