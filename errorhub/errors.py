# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Service error taxonomy.

Every error carries the HTTP status and machine-readable code it is
rendered with, so the API layer needs no per-error mapping.
"""

from typing import Any


class ServiceError(Exception):
    """Base class for errors surfaced to API callers."""

    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, details: Any = None, code: str | None = None,
                 status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.details = details
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationError(ServiceError):
    status_code = 400
    code = "VALIDATION_ERROR"


class AuthError(ServiceError):
    """401 when credentials are missing or invalid, 403 when permission is lacking."""

    status_code = 401
    code = "AUTHENTICATION_REQUIRED"

    @classmethod
    def forbidden(cls, message: str, details: Any = None) -> "AuthError":
        return cls(message, details=details, code="INSUFFICIENT_PERMISSIONS", status_code=403)


class RateLimitError(ServiceError):
    status_code = 429
    code = "RATE_LIMIT_EXCEEDED"

    def __init__(self, message: str, retry_after_seconds: int, details: Any = None):
        super().__init__(message, details=details)
        self.retry_after_seconds = retry_after_seconds


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"


class MethodNotAllowedError(ServiceError):
    status_code = 405
    code = "METHOD_NOT_ALLOWED"

    def __init__(self, message: str, allowed: list[str], details: Any = None):
        super().__init__(message, details=details)
        self.allowed = allowed


class PersistenceError(ServiceError):
    status_code = 500
    code = "DATABASE_ERROR"


class InternalError(ServiceError):
    status_code = 500
    code = "INTERNAL_ERROR"
