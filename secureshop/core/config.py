"""
Configuration settings for SecureShop.
"""
import secrets
from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Centralized application settings for SecureShop.
    All settings can be overridden by environment variables (see .env.example).
    """
    # --- Application ---
    APP_NAME: str = "SecureShop"
    ENV: str = "development"  # development, test, production
    DEBUG: bool = False
    API_V1_STR: str = "/api/v1"

    # --- Database (credential store) ---
    DATABASE_URL: str = "sqlite+aiosqlite:///./secureshop.db"
    ECHO_SQL: bool = False

    # --- Tokens ---
    # Required in production; generated per process otherwise.
    JWT_ACCESS_SECRET: Optional[str] = None
    JWT_REFRESH_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ISSUER: str = "secureshop-api"
    JWT_AUDIENCE: str = "secureshop-client"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7

    # --- Cookies ---
    ACCESS_COOKIE_NAME: str = "access_token"
    REFRESH_COOKIE_NAME: str = "refresh_token"
    REFRESH_COOKIE_PATH: str = "/api/v1/auth/refresh"
    LOGOUT_COOKIE_PATH: str = "/api/v1/auth/logout"

    # --- Sessions ---
    SESSION_TTL_SECONDS: int = 24 * 60 * 60
    REMEMBER_ME_TTL_SECONDS: int = 30 * 24 * 60 * 60
    REVOKE_ALL_SESSIONS_ON_REFRESH_REUSE: bool = False

    # --- Passwords & lockout ---
    BCRYPT_ROUNDS: int = 12
    MAX_LOGIN_ATTEMPTS: int = 5
    LOCKOUT_MINUTES: int = 30
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60

    # --- Rate limiting (fixed window) ---
    LOGIN_RATE_LIMIT_MAX: int = 5
    LOGIN_RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    PASSWORD_RESET_RATE_LIMIT_MAX: int = 3
    PASSWORD_RESET_RATE_LIMIT_WINDOW_SECONDS: int = 60 * 60

    # --- Shared key-value store ---
    STORE_BACKEND: str = "memory"  # Options: memory, redis
    REDIS_URL: Optional[str] = None
    STORE_TIMEOUT_SECONDS: float = 2.0

    # --- Server ---
    HOST: str = "127.0.0.1"
    PORT: int = 8000

    # --- CORS ---
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    @field_validator("JWT_ACCESS_SECRET", "JWT_REFRESH_SECRET")
    def validate_secret_length(cls, v):
        if v is not None and len(v) < 32:
            raise ValueError("JWT secrets must be at least 32 characters")
        return v

    @field_validator("STORE_BACKEND")
    def validate_store_backend(cls, v):
        if v not in ("memory", "redis"):
            raise ValueError(f"Unknown store backend: {v}")
        return v

    @field_validator("CORS_ORIGINS", mode="before")
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",")]
        return v

    @model_validator(mode="after")
    def validate_secrets(self):
        if self.JWT_ACCESS_SECRET is None or self.JWT_REFRESH_SECRET is None:
            if self.ENV == "production":
                raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set in production")
            self.JWT_ACCESS_SECRET = self.JWT_ACCESS_SECRET or secrets.token_urlsafe(48)
            self.JWT_REFRESH_SECRET = self.JWT_REFRESH_SECRET or secrets.token_urlsafe(48)
        if self.JWT_ACCESS_SECRET == self.JWT_REFRESH_SECRET:
            raise ValueError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ")
        return self

    @property
    def COOKIE_SECURE(self) -> bool:
        return self.ENV == "production"

    @property
    def ACCESS_TOKEN_TTL_SECONDS(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @property
    def REFRESH_TOKEN_TTL_SECONDS(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get application settings with caching."""
    return Settings()


# Global settings instance
settings = get_settings()

__all__ = ["Settings", "settings", "get_settings"]
