"""Shared HTTP helpers for the JSON controllers.

Controllers stay thin: they read the request, call a service and return JSON.
Domain errors raised by services are turned into responses here.
"""
from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, DomainError

logger = logging.getLogger(__name__)


def json_body() -> dict[str, Any]:
    """Request payload as a dict (JSON body, falling back to form fields)."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def current_user_id() -> int:
    if "user_id" not in session:
        raise AuthenticationError("Unauthenticated.")
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.EMPLOYEE.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            raise AuthenticationError("Unauthenticated.")
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                raise AuthenticationError("Unauthenticated.")
            if session.get("role") not in allowed:
                raise AuthorizationError("This action is unauthorized.")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        if e.status_code >= 403:
            logger.info("%s on %s %s: %s", type(e).__name__, request.method, request.path, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = f"An unexpected error occurred: {e}" if app.config.get("DEBUG") else "An unexpected error occurred."
        return jsonify({"message": message}), 500
