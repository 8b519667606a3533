"""
Application-level exceptions.

Domain services raise these; the API server maps each one to an HTTP
response with the carried status code and {"detail": message} body.
"""

from __future__ import annotations


class LDGrowthError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(LDGrowthError):
    """Missing or malformed input."""

    status_code = 400


class InvalidStateError(LDGrowthError):
    """Operation not allowed in the record's current status."""

    status_code = 400


class AuthenticationError(LDGrowthError):
    status_code = 401


class PermissionDeniedError(LDGrowthError):
    status_code = 403


class NotFoundError(LDGrowthError):
    status_code = 404


class ConflictError(LDGrowthError):
    """Unique value already taken (e.g. email)."""

    status_code = 409
