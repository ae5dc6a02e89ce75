"""Domain errors raised by the bill services.

Each error carries the HTTP status the web layer answers with, so routes never
translate exceptions by hand; a single handler in ``web.app`` renders them as
``{"success": false, "message": ...}``.
"""

from __future__ import annotations

__all__ = [
    "AppException",
    "AuthenticationError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "StoreError",
    "PayloadTooLargeError",
]


class AppException(Exception):
    """Base class for every error the API reports to clients."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        self.status_code = self.__class__.status_code
        super().__init__(self.message)


class AuthenticationError(AppException):
    """No owner identity could be resolved for the request."""

    status_code = 401
    default_message = "Unauthorized"


class ValidationError(AppException):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(AppException):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppException):
    """The requested transition would break the one-active-bill-per-estimate rule."""

    status_code = 409
    default_message = "Conflict"


class StoreError(AppException):
    """Any failure of the underlying database (connection, constraint, transaction)."""

    status_code = 500
    default_message = "Database error"


class PayloadTooLargeError(AppException):
    status_code = 413
    default_message = "Request body too large"
