"""
Unit tests for SecureShop core functionality: settings, hashing and helpers.
"""
import pytest
from pydantic import ValidationError

from secureshop.auth import RequestContext, Role, TokenService, TokenType, extract_bearer
from secureshop.core.config import Settings
from secureshop.core.security import PasswordHasher, generate_session_id, hash_token
from secureshop.schemas import ResetPasswordRequest, validate_password_strength

GOOD_SECRET_A = "a" * 32
GOOD_SECRET_B = "b" * 32


class TestSettings:
    """Test cases for configuration validation."""

    def test_defaults(self):
        settings = Settings(JWT_ACCESS_SECRET=GOOD_SECRET_A, JWT_REFRESH_SECRET=GOOD_SECRET_B)

        assert settings.ACCESS_TOKEN_TTL_SECONDS == 15 * 60
        assert settings.REFRESH_TOKEN_TTL_SECONDS == 7 * 24 * 3600
        assert settings.MAX_LOGIN_ATTEMPTS == 5
        assert settings.LOCKOUT_MINUTES == 30

    def test_generated_secrets_differ(self):
        settings = Settings()

        assert settings.JWT_ACCESS_SECRET != settings.JWT_REFRESH_SECRET

    def test_production_requires_secrets(self, monkeypatch):
        monkeypatch.delenv("JWT_ACCESS_SECRET", raising=False)
        monkeypatch.delenv("JWT_REFRESH_SECRET", raising=False)

        with pytest.raises(ValidationError):
            Settings(ENV="production", _env_file=None)
        with pytest.raises(ValidationError):
            Settings(ENV="production", JWT_ACCESS_SECRET=GOOD_SECRET_A, _env_file=None)

    def test_production_with_secrets(self):
        settings = Settings(
            ENV="production", JWT_ACCESS_SECRET=GOOD_SECRET_A, JWT_REFRESH_SECRET=GOOD_SECRET_B, _env_file=None
        )

        assert settings.JWT_ACCESS_SECRET == GOOD_SECRET_A

    def test_tokens_from_one_process_verify_in_another(self):
        first = TokenService.from_settings(
            Settings(ENV="production", JWT_ACCESS_SECRET=GOOD_SECRET_A, JWT_REFRESH_SECRET=GOOD_SECRET_B)
        )
        second = TokenService.from_settings(
            Settings(ENV="production", JWT_ACCESS_SECRET=GOOD_SECRET_A, JWT_REFRESH_SECRET=GOOD_SECRET_B)
        )
        token = first.issue_access_token(1, "a@example.com", Role.CUSTOMER, "sid")

        assert second.verify(token, TokenType.ACCESS).ok

    def test_short_secret_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_ACCESS_SECRET="short", JWT_REFRESH_SECRET=GOOD_SECRET_B)

    def test_identical_secrets_rejected(self):
        with pytest.raises(ValidationError):
            Settings(JWT_ACCESS_SECRET=GOOD_SECRET_A, JWT_REFRESH_SECRET=GOOD_SECRET_A)

    def test_unknown_store_backend_rejected(self):
        with pytest.raises(ValidationError):
            Settings(STORE_BACKEND="memcached")

    @pytest.mark.parametrize("env, secure", [("production", True), ("development", False), ("test", False)])
    def test_cookie_secure_only_in_production(self, env, secure):
        settings = Settings(ENV=env, JWT_ACCESS_SECRET=GOOD_SECRET_A, JWT_REFRESH_SECRET=GOOD_SECRET_B)

        assert settings.COOKIE_SECURE is secure

    def test_cors_origins_from_string(self):
        settings = Settings(CORS_ORIGINS="https://shop.example.com, https://admin.example.com")

        assert settings.CORS_ORIGINS == ["https://shop.example.com", "https://admin.example.com"]


class TestPasswordHasher:
    """Test cases for password hashing."""

    @pytest.mark.asyncio
    async def test_hash_and_verify(self):
        hasher = PasswordHasher(rounds=4)
        hashed = hasher.hash("Correct-Horse-42!")

        assert hashed != "Correct-Horse-42!"
        assert await hasher.verify("Correct-Horse-42!", hashed)
        assert not await hasher.verify("wrong", hashed)

    @pytest.mark.asyncio
    async def test_dummy_verify_always_fails(self):
        assert await PasswordHasher(rounds=4).dummy_verify("anything") is False


class TestIdentifiers:
    """Test cases for random identifiers and digests."""

    def test_session_ids_are_unique(self):
        ids = {generate_session_id() for _ in range(100)}

        assert len(ids) == 100
        assert all(len(i) >= 43 for i in ids)

    def test_hash_token_is_stable(self):
        assert hash_token("abc") == hash_token("abc")
        assert hash_token("abc") != hash_token("abd")
        assert len(hash_token("abc")) == 64


class TestRequestHelpers:
    """Test cases for credential extraction."""

    @pytest.mark.parametrize("header, expected", [
        ("Bearer abc.def.ghi", "abc.def.ghi"),
        ("bearer token", "token"),
        ("Basic dXNlcjpwYXNz", None),
        ("Bearer ", None),
        (None, None),
    ])
    def test_extract_bearer(self, header, expected):
        assert extract_bearer(header) == expected

    def test_context_defaults(self):
        ctx = RequestContext()

        assert ctx.access_token is None
        assert ctx.client_ip == "unknown"
        assert ctx.request_id


class TestPasswordPolicy:
    """Test cases for the password policy."""

    def test_strong_password(self):
        assert validate_password_strength("Correct-Horse-42!") == "Correct-Horse-42!"

    @pytest.mark.parametrize("password", [
        "Sh0rt!",
        "alllowercase-42!",
        "ALLUPPERCASE-42!",
        "No-Digits-Here!!",
        "NoSpecial12345xx",
        "A1!" + "a" * 130,
    ])
    def test_weak_passwords(self, password):
        with pytest.raises(ValueError):
            validate_password_strength(password)

    def test_reset_request_validates_password(self):
        with pytest.raises(ValidationError):
            ResetPasswordRequest(token="t", password="weak")
