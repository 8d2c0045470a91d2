from typing import Optional


class ServiceError(Exception):
    """
    Base class for expected, user-facing failures raised by the services.

    The API layer turns these into HTTP responses using ``status_code``;
    ``extra`` holds additional keys for the response body.
    """
    status_code = 500

    def __init__(self, message: str, extra: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.extra = extra or {}


class ValidationError(ServiceError):
    """Malformed, missing or out-of-range input."""
    status_code = 400


class AuthenticationError(ServiceError):
    """Missing or wrong credentials."""
    status_code = 401


class PermissionDeniedError(ServiceError):
    """Authenticated, but not allowed to do this (e.g. unverified account)."""
    status_code = 403


class NotFoundError(ServiceError):
    """The referenced record does not exist."""
    status_code = 404


class ConflictError(ServiceError):
    """A unique value is already taken, or the record is still referenced."""
    status_code = 409


class InsufficientStockError(ServiceError):
    """Exception raised when there's not enough stock to fulfill a sale."""
    status_code = 400
