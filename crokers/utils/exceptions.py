"""Domain-specific exceptions raised by the service layer.

Each exception carries the HTTP status code the API renders it with, so the
routes never have to translate them by hand.
"""


class AppError(Exception):
    """Base exception for service failures."""

    status_code = 500

    def __init__(self, message: str = "internal server error"):
        super().__init__(message)
        self.message = message


class ValidationError(AppError, ValueError):
    """Raised when input is malformed, missing or out of range."""

    status_code = 400


class NotFoundError(AppError):
    """Raised when an id does not resolve to a live row."""

    status_code = 404


class ConflictError(AppError):
    """Raised when a write would violate a uniqueness rule."""

    status_code = 409


class AuthError(AppError):
    """Raised for bad credentials or tokens."""

    status_code = 401


class InternalError(AppError):
    """Raised when the store or an aggregation fails unexpectedly."""

    status_code = 500
