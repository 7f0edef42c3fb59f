"""
Error kinds raised by the service layer.

Each carries the HTTP status it maps to and a message that is safe to show
to the caller; the registered exception handlers render both.
"""

from fastapi import status


class DirectoryError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DirectoryError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InvalidOrExpiredCode(ValidationError):
    default_message = "Invalid or expired OTP"


class Unauthorized(DirectoryError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class InvalidToken(Unauthorized):
    default_message = "Invalid or expired token"


class Forbidden(DirectoryError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class AccountInactive(Forbidden):
    default_message = "Account is inactive"


class NotFound(DirectoryError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class UnknownPhone(NotFound):
    default_message = "Phone number is not registered"


class Conflict(DirectoryError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Already exists"


class RateLimited(DirectoryError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many OTP requests. Please try again later."


class ServiceUnavailable(DirectoryError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "OTP service not configured"


class ProviderError(DirectoryError):
    """Upstream provider failure that carries the provider's own status"""

    def __init__(self, message: str | None = None, status_code: int | None = None):
        super().__init__(message or "OTP provider error")
        if status_code:
            self.status_code = status_code


class InternalError(DirectoryError):
    default_message = "Something went wrong"
