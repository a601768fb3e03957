# auth/errors.py
"""
Authentication error taxonomy.

Every rejection the auth subsystem can produce maps to exactly one kind with a
stable machine-readable code and a deliberately generic message.
"""
from enum import Enum
from typing import Optional

from fastapi import status


class AuthErrorKind(str, Enum):
    """Authentication error kinds."""
    UNAUTHENTICATED = "UNAUTHENTICATED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_INVALID = "TOKEN_INVALID"
    SESSION_REVOKED = "SESSION_REVOKED"
    ACCOUNT_LOCKED = "ACCOUNT_LOCKED"
    ACCOUNT_INACTIVE = "ACCOUNT_INACTIVE"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    FORBIDDEN = "FORBIDDEN"
    INVALID_RESET_TOKEN = "INVALID_RESET_TOKEN"
    REGISTRATION_FAILED = "REGISTRATION_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_STATUS_CODES = {
    AuthErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.TOKEN_EXPIRED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.TOKEN_INVALID: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.SESSION_REVOKED: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.ACCOUNT_LOCKED: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.ACCOUNT_INACTIVE: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.RATE_LIMITED: status.HTTP_429_TOO_MANY_REQUESTS,
    AuthErrorKind.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    AuthErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    AuthErrorKind.INVALID_RESET_TOKEN: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.REGISTRATION_FAILED: status.HTTP_400_BAD_REQUEST,
    AuthErrorKind.SERVICE_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
}

_MESSAGES = {
    AuthErrorKind.UNAUTHENTICATED: "Authentication required",
    AuthErrorKind.TOKEN_EXPIRED: "Token expired. Please refresh your session.",
    AuthErrorKind.TOKEN_INVALID: "Invalid token",
    AuthErrorKind.SESSION_REVOKED: "Session expired. Please log in again.",
    AuthErrorKind.ACCOUNT_LOCKED: "Account is temporarily locked. Please try again later.",
    AuthErrorKind.ACCOUNT_INACTIVE: "Account is deactivated",
    AuthErrorKind.RATE_LIMITED: "Too many attempts. Please try again later.",
    AuthErrorKind.INVALID_CREDENTIALS: "Invalid email or password",
    AuthErrorKind.FORBIDDEN: "Insufficient permissions",
    AuthErrorKind.INVALID_RESET_TOKEN: "Invalid or expired reset token",
    AuthErrorKind.REGISTRATION_FAILED: "Unable to create account. Please try again or use a different email.",
    AuthErrorKind.SERVICE_UNAVAILABLE: "Service temporarily unavailable",
}


class AuthError(Exception):
    """Operational authentication failure raised at the HTTP boundary."""

    def __init__(
        self,
        kind: AuthErrorKind,
        *,
        clear_cookies: bool = False,
        retry_after: Optional[int] = None,
    ):
        self.kind = kind
        self.clear_cookies = clear_cookies
        self.retry_after = retry_after
        super().__init__(kind.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": {"code": self.kind.value, "message": self.kind.message},
        }
