"""Application error taxonomy.

Services raise these; the handlers registered in ``notes_api.main`` turn them
into JSON responses with the carried status code.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Server error"

    def __init__(self, message: str | None = None, status_code: int | None = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed, missing or weak input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class ConflictError(AppError):
    """Duplicate identifier or an account that is already verified."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Already exists"


class AuthError(AppError):
    """Bad credentials, unverified account or an unusable token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized"


class ForbiddenError(AppError):
    """Authenticated, but not allowed to touch the resource."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFoundError(AppError):
    """Missing user, note or pending code."""

    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InvalidCodeError(AppError):
    """One-time code mismatch or expiry."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid OTP"


class InternalError(AppError):
    """Failure on our side, such as a code that could not be delivered."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Server error"
