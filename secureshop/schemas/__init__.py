"""
Pydantic schemas for the SecureShop API.
"""
from .auth import (
    ForgotPasswordRequest,
    IdentityResponse,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
    validate_password_strength,
)

__all__ = [
    "ForgotPasswordRequest",
    "IdentityResponse",
    "LoginRequest",
    "LogoutRequest",
    "RefreshRequest",
    "RegisterRequest",
    "ResetPasswordRequest",
    "TokenResponse",
    "validate_password_strength",
]
