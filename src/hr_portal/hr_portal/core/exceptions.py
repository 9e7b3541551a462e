from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message}


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules.

    ``errors`` maps a field name to its list of messages so the client can
    render them inline next to the field.
    """

    status_code = 422

    def __init__(self, message: str, errors: Optional[dict[str, list[str]]] = None):
        super().__init__(message)
        self.errors = dict(errors or {})

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, {field: [message]})

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class NotFoundError(DomainError):
    """Raised when a requested record does not exist."""

    status_code = 404


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or the session is gone."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class DeviceBlockedError(AuthenticationError):
    """Raised when single-device-login rejects the current device."""

    def __init__(self, message: str, blocked_device_info: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.blocked_device_info = blocked_device_info

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "device_blocked": True,
            "blocked_device_info": self.blocked_device_info,
        }
