"""Domain error taxonomy.

Handlers raise these; ``sre.middleware.error_handler`` turns them into
``{"error": message}`` responses with the matching status code.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for errors that map to a client-visible response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed request fields."""

    status_code = 400
    default_message = "Missing required fields"


class AuthenticationError(AppError):
    """Signature does not match the claimed address."""

    status_code = 401
    default_message = "Invalid signature"


class AuthorizationError(AppError):
    """Valid signer without the required privilege."""

    status_code = 403
    default_message = "Not authorized"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """Duplicate of a unique key."""

    status_code = 409
    default_message = "Already exists"


class InternalError(AppError):
    status_code = 500
