"""
Error taxonomy for the registration / sign-in flow.

Every failure the service can signal is a distinct exception carrying the
machine-readable code, the HTTP status it maps to, and a human message.
Routes never build error bodies by hand; the handlers registered in
main.py render every AuthFlowError as {success: false, error, message}.
"""

from __future__ import annotations

from fastapi import status


class AuthFlowError(Exception):
    """Base class. Unknown failures surface as a generic 500."""

    code: str = "INTERNAL_ERROR"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(f"{self.code}: {self.message}")

    def to_body(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message}


class InvalidRequestError(AuthFlowError):
    code = "INVALID_REQUEST"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request."


class InvalidTokenError(AuthFlowError):
    code = "INVALID_TOKEN"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Registration token not found"


class UserNotFoundError(AuthFlowError):
    code = "USER_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "No account found with this email. Please register first."


class UserExistsError(AuthFlowError):
    code = "USER_EXISTS"
    status_code = status.HTTP_409_CONFLICT
    default_message = "A user with this email already exists. Please sign in instead."


class TokenAlreadyUsedError(AuthFlowError):
    code = "TOKEN_ALREADY_USED"
    status_code = status.HTTP_409_CONFLICT
    default_message = "This registration has already been completed"


class TokenExpiredError(AuthFlowError):
    code = "TOKEN_EXPIRED"
    status_code = status.HTTP_410_GONE
    default_message = "Registration token has expired"


class InvalidCredentialError(AuthFlowError):
    code = "INVALID_CREDENTIAL"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid sign-in link. Please request a new one."


class RateLimitedError(AuthFlowError):
    code = "RATE_LIMITED"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_message = "Too many requests. Please wait and try again."

    def __init__(self, message: str | None = None, retry_after: int = 60) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class EmailDeliveryError(AuthFlowError):
    code = "EMAIL_DELIVERY_FAILED"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Failed to send email. Please try again."
