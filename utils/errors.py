"""
Typed application errors.

Services raise these; ``api.errors`` turns them into the JSON error envelope
``{"success": false, "message": ..., "code": ...}`` with the matching status.
"""

from __future__ import annotations


class AppError(Exception):
    """Base for every error that maps onto an HTTP outcome."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(AppError):
    """Missing, malformed or out-of-range input."""

    status_code = 400
    code = "validation_error"


class UnauthorizedError(AppError):
    """Missing or invalid credentials / bearer token."""

    status_code = 401
    code = "unauthorized"


class InvalidCredentialsError(UnauthorizedError):
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class NotFoundError(AppError):
    """Resource absent, or owned by somebody else."""

    status_code = 404
    code = "not_found"


class ConflictError(AppError):
    """Duplicate name / email, or a delete blocked by references."""

    status_code = 400
    code = "conflict"


class DatabaseUnavailableError(AppError):
    status_code = 503
    code = "database_unavailable"

    def __init__(self, message: str = "Database connection error") -> None:
        super().__init__(message)


class InternalError(AppError):
    status_code = 500
    code = "internal_error"
