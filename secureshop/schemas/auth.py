"""
Auth-related Pydantic models for request/response validation.
"""
import re
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from ..auth.models import Role

PASSWORD_MIN_LENGTH = 12
PASSWORD_MAX_LENGTH = 128
_SPECIAL_CHARS = re.compile(r'[!@#$%^&*(),.?":{}|<>]')


def validate_password_strength(password: str) -> str:
    """Raise ``ValueError`` unless ``password`` satisfies the password policy."""
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError("Password too long")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        raise ValueError("Password must contain at least one number")
    if not _SPECIAL_CHARS.search(password):
        raise ValueError("Password must contain at least one special character")
    return password


class RegisterRequest(BaseModel):
    """New customer account."""
    email: EmailStr
    password: str
    confirm_password: str

    @field_validator("email")
    def normalize_email(cls, v):
        return v.strip().lower()

    @field_validator("password")
    def password_strength(cls, v):
        return validate_password_strength(v)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class LoginRequest(BaseModel):
    """Credentials submitted to the login endpoint."""
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LENGTH)
    remember_me: bool = False
    include_tokens: bool = False

    @field_validator("email")
    def normalize_email(cls, v):
        return v.strip().lower()


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None
    include_tokens: bool = False


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr

    @field_validator("email")
    def normalize_email(cls, v):
        return v.strip().lower()


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    password: str

    @field_validator("password")
    def password_strength(cls, v):
        return validate_password_strength(v)


class IdentityResponse(BaseModel):
    """Authenticated caller as returned to clients."""
    id: int
    email: str
    role: Role


class TokenResponse(BaseModel):
    """Token pair echoed to non-browser clients."""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    refresh_expires_in: int
