"""Error taxonomy shared by the stores, the services and the HTTP layer."""

from enum import StrEnum
from typing import Any

from fastapi import HTTPException, status


class ErrorCode(StrEnum):
    """Machine-readable error codes returned to clients."""

    EMAIL_EXISTS = "EMAIL_EXISTS"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_REFRESH_TOKEN = "INVALID_REFRESH_TOKEN"
    TOKEN_MISSING = "TOKEN_MISSING"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    DUPLICATE_TOKEN = "DUPLICATE_TOKEN"
    NO_UPDATE_FIELDS = "NO_UPDATE_FIELDS"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    ROUTE_NOT_FOUND = "ROUTE_NOT_FOUND"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


class ApiError(HTTPException):
    """HTTP exception carrying a stable error code."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR
    message: str = "Internal server error"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None) -> None:
        self.message = message or type(self).message
        super().__init__(
            status_code=type(self).status_code,
            detail={"error": self.message, "code": str(self.code)},
            headers=headers,
        )


class DuplicateEmail(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.EMAIL_EXISTS
    message = "User already exists with this email address"


class UserNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    code = ErrorCode.USER_NOT_FOUND
    message = "User not found"


class InvalidCredentials(ApiError):
    # One message for "no such user" and "wrong password"
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.INVALID_CREDENTIALS
    message = "Invalid email or password"


class InvalidRefreshToken(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.INVALID_REFRESH_TOKEN
    message = "Invalid or expired refresh token"


class TokenMissing(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.TOKEN_MISSING
    message = "Access token required"


class TokenExpired(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = ErrorCode.TOKEN_EXPIRED
    message = "Access token expired"


class TokenInvalid(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    code = ErrorCode.TOKEN_INVALID
    message = "Invalid access token"


class DuplicateToken(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = ErrorCode.DUPLICATE_TOKEN
    message = "Refresh token collision"


class NoUpdateFields(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = ErrorCode.NO_UPDATE_FIELDS
    message = "No valid fields provided for update"


class InternalError(ApiError):
    pass


def to_error_payload(detail: Any, status_code: int) -> dict[str, Any]:
    """Normalize an HTTPException detail into the {"error", "code"} envelope."""
    if isinstance(detail, dict) and "code" in detail:
        return dict(detail)
    return {"error": str(detail or "HTTP error"), "code": f"HTTP_{status_code}"}
