"""
Domain exceptions shared by the services.

Each error carries the HTTP status the API layer answers with; the exception
handlers in ``src.api.server`` turn them into ``{"error": message}`` bodies.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 500
    default_message: str = "Something went wrong!"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(RepositoryError):
    status_code = 400
    default_message = "Missing required fields"


class ConflictError(RepositoryError):
    # Duplicate e-mail is reported as 400 to existing clients.
    status_code = 400
    default_message = "User already exists"


class UploadError(RepositoryError):
    status_code = 400
    default_message = "Only PDF files are allowed."


class AuthenticationError(RepositoryError):
    status_code = 401
    default_message = "Access token required"


class InvalidTokenError(RepositoryError):
    status_code = 403
    default_message = "Invalid or expired token"


class PermissionDeniedError(RepositoryError):
    status_code = 403
    default_message = "Access denied"


class NotFoundError(RepositoryError):
    status_code = 404
    default_message = "Not found"
