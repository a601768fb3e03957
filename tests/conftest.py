"""
Pytest configuration and fixtures for SecureShop tests.
"""
import asyncio
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from secureshop import create_app
from secureshop.auth import (
    AccountRecord,
    AuditSink,
    EmailSender,
    RequestContext,
    Role,
    SessionManager,
    SQLAlchemyCredentialStore,
)
from secureshop.cache import InMemoryBackend
from secureshop.core.config import Settings
from secureshop.core.security import PasswordHasher
from secureshop.db import Database

TEST_EMAIL = "shopper@example.com"
TEST_PASSWORD = "Correct-Horse-42!"


class FakeClock:
    """Controllable wall clock and monotonic clock that advance together."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 15, 12, 0, 0)
        self._monotonic = 1000.0

    def __call__(self) -> datetime:
        return self.now

    def monotonic(self) -> float:
        return self._monotonic

    def advance(self, **kwargs) -> None:
        delta = timedelta(**kwargs)
        self.now += delta
        self._monotonic += delta.total_seconds()


class RecordingAuditSink(AuditSink):
    """Collects audit events in memory."""

    def __init__(self):
        self.events: List[Tuple[str, Optional[int], Dict[str, Any]]] = []

    async def record(self, event_name, account_id, metadata) -> None:
        self.events.append((event_name, account_id, metadata))

    def names(self) -> List[str]:
        return [name for name, _, _ in self.events]


class RecordingEmailSender(EmailSender):
    """Keeps reset tokens so tests can redeem them."""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    async def send_password_reset(self, email: str, token: str) -> None:
        self.sent.append((email, token))


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        ENV="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        JWT_ACCESS_SECRET="test-access-secret-" + "a" * 32,
        JWT_REFRESH_SECRET="test-refresh-secret-" + "b" * 32,
        BCRYPT_ROUNDS=4,
        LOGIN_RATE_LIMIT_MAX=100,
        STORE_BACKEND="memory",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Test settings: fast bcrypt, fixed secrets, SQLite file per test."""
    return make_settings(tmp_path)


@pytest.fixture
def settings_factory(tmp_path):
    """Build test settings with overrides."""
    def factory(**overrides) -> Settings:
        return make_settings(tmp_path, **overrides)
    return factory


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def backend(clock) -> InMemoryBackend:
    return InMemoryBackend(clock=clock.monotonic)


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest_asyncio.fixture
async def database(settings) -> AsyncGenerator[Database, None]:
    db = Database(settings.DATABASE_URL)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def credentials(database) -> SQLAlchemyCredentialStore:
    return SQLAlchemyCredentialStore(database)


@pytest.fixture
def hasher(settings) -> PasswordHasher:
    return PasswordHasher(rounds=settings.BCRYPT_ROUNDS)


@pytest_asyncio.fixture
async def manager(settings, backend, credentials, audit_sink, email_sender, clock) -> AsyncGenerator[SessionManager, None]:
    session_manager = SessionManager.build(
        settings,
        backend,
        credentials,
        audit_sinks=[audit_sink],
        email_sender=email_sender,
        clock=clock,
    )
    yield session_manager
    await session_manager.close()


@pytest_asyncio.fixture
async def account(credentials, hasher) -> AccountRecord:
    """An active customer account with a known password."""
    return await credentials.create(TEST_EMAIL, hasher.hash(TEST_PASSWORD), role=Role.CUSTOMER)


# Test user data
@pytest.fixture
def test_user() -> Dict[str, str]:
    """Return test user credentials."""
    return {"email": TEST_EMAIL, "password": TEST_PASSWORD}


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(client_ip="10.0.0.1", user_agent="pytest")


# === HTTP fixtures ===

async def _seed_accounts(settings: Settings, accounts: List[Dict[str, Any]]) -> None:
    db = Database(settings.DATABASE_URL)
    try:
        await db.create_all()
        store = SQLAlchemyCredentialStore(db)
        hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        for entry in accounts:
            await store.create(
                entry["email"],
                hasher.hash(entry["password"]),
                role=entry.get("role", Role.CUSTOMER),
                is_active=entry.get("is_active", True),
            )
    finally:
        await db.dispose()


@pytest.fixture
def seed_accounts(settings):
    """Create accounts in the test database before the app starts."""
    def seed(*accounts: Dict[str, Any]) -> None:
        asyncio.run(_seed_accounts(settings, list(accounts)))
    return seed


@pytest.fixture
def app(settings, backend, audit_sink, email_sender, clock, seed_accounts):
    """A test application with a known customer and admin account."""
    seed_accounts(
        {"email": TEST_EMAIL, "password": TEST_PASSWORD},
        {"email": "admin@example.com", "password": TEST_PASSWORD, "role": Role.ADMIN},
    )
    return create_app(
        settings,
        backend=backend,
        audit_sinks=[audit_sink],
        email_sender=email_sender,
        clock=clock,
    )


@pytest.fixture
def client(app):
    """Create a test client for the app, running its lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def login(client, test_user):
    """Post credentials to the login endpoint; defaults to the test user."""
    def do_login(email: Optional[str] = None, password: Optional[str] = None, **extra):
        return client.post(
            "/api/v1/auth/login",
            json={
                "email": email or test_user["email"],
                "password": password or test_user["password"],
                **extra,
            },
        )
    return do_login
