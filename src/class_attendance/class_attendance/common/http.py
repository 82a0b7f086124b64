"""Helpers shared by the Flask controllers."""
from __future__ import annotations

from functools import wraps

from flask import jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)

_STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ExpiredError, 410),
    (AuthorizationError, 403),
    (ValidationError, 400),
)


def role_required(role: Role):
    """Identity comes from the external auth layer through the Flask session."""

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Login required"}), 401
            if session.get("role") != role.value:
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> str:
    return str(session["user_id"])


def error_response(err: DomainError):
    status = 400
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(err, error_type):
            status = code
            break
    return jsonify({"success": False, "error": type(err).__name__, "message": str(err)}), status
