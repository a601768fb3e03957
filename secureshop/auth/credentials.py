# auth/credentials.py
"""
Credential store: account lookup and the atomic writes behind the login gate.

Each operation runs in its own short transaction. Lockout bookkeeping never
reads then writes from application code; it relies on single-statement
increments and conditional updates so concurrent login attempts against the
same account cannot lose or double-count failures.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..db import CredentialStoreError, Database
from .models import Account, Role

logger = logging.getLogger("secureshop.auth.credentials")


class AccountRecord(BaseModel):
    """Snapshot of an account row."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    email: str
    password_hash: str
    role: Role
    is_active: bool
    failed_login_attempts: int
    locked_until: Optional[datetime] = None
    last_login_at: Optional[datetime] = None

    def is_locked(self, now: datetime) -> bool:
        return self.locked_until is not None and self.locked_until > now


class AccountExists(CredentialStoreError):
    """Raised when creating an account whose email is taken."""


class CredentialStore(ABC):
    """Interface to the account store."""

    @abstractmethod
    async def find_by_id(self, account_id: int) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    async def create(
        self, email: str, password_hash: str, role: Role = Role.CUSTOMER, is_active: bool = True
    ) -> AccountRecord:
        ...

    @abstractmethod
    async def update(self, account_id: int, **fields: Any) -> Optional[AccountRecord]:
        ...

    @abstractmethod
    async def increment_failed_attempts(self, account_id: int) -> int:
        """Atomically increment the failure counter and return the new value."""

    @abstractmethod
    async def lock_if_threshold(
        self, account_id: int, max_attempts: int, until: datetime, now: datetime
    ) -> bool:
        """Set the lockout expiry if the threshold is reached and no lock is active.

        Returns True only for the caller whose write performed the transition.
        """

    @abstractmethod
    async def clear_expired_lockout(self, account_id: int, now: datetime) -> bool:
        """Reset counter and lock if a lockout has elapsed."""

    @abstractmethod
    async def record_successful_login(self, account_id: int, now: datetime) -> None:
        ...


class SQLAlchemyCredentialStore(CredentialStore):
    """Credential store backed by the async SQLAlchemy engine."""

    def __init__(self, database: Database):
        self.database = database

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self.database.session() as session:
                yield session
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.critical(f"Credential store failure during {operation}: {e}")
            raise CredentialStoreError(
                f"Credential store unavailable during {operation}", original_exception=e
            ) from e

    async def find_by_id(self, account_id: int) -> Optional[AccountRecord]:
        """Get account by ID."""
        async with self._session("find_by_id") as session:
            account = await session.get(Account, account_id)
            return AccountRecord.model_validate(account) if account else None

    async def find_by_email(self, email: str) -> Optional[AccountRecord]:
        """Get account by email, case-insensitively."""
        async with self._session("find_by_email") as session:
            result = await session.execute(
                select(Account).where(func.lower(Account.email) == email.strip().lower())
            )
            account = result.scalar_one_or_none()
            return AccountRecord.model_validate(account) if account else None

    async def create(self, email, password_hash, role=Role.CUSTOMER, is_active=True) -> AccountRecord:
        """Create a new account."""
        account = Account(
            email=email.strip().lower(),
            password_hash=password_hash,
            role=Role(role).value,
            is_active=is_active,
        )
        try:
            async with self._session("create") as session:
                session.add(account)
                await session.flush()
                return AccountRecord.model_validate(account)
        except IntegrityError as e:
            raise AccountExists("Account already exists", original_exception=e) from e

    async def update(self, account_id: int, **fields: Any) -> Optional[AccountRecord]:
        """Update account fields."""
        if "role" in fields:
            fields["role"] = Role(fields["role"]).value
        async with self._session("update") as session:
            account = await session.get(Account, account_id)
            if account is None:
                return None
            for name, value in fields.items():
                if not hasattr(Account, name):
                    raise AttributeError(f"Account has no field '{name}'")
                setattr(account, name, value)
            await session.flush()
            return AccountRecord.model_validate(account)

    async def increment_failed_attempts(self, account_id: int) -> int:
        async with self._session("increment_failed_attempts") as session:
            result = await session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(failed_login_attempts=Account.failed_login_attempts + 1)
                .returning(Account.failed_login_attempts)
                .execution_options(synchronize_session=False)
            )
            return result.scalar_one()

    async def lock_if_threshold(self, account_id, max_attempts, until, now) -> bool:
        async with self._session("lock_if_threshold") as session:
            result = await session.execute(
                update(Account)
                .where(
                    Account.id == account_id,
                    Account.failed_login_attempts >= max_attempts,
                    or_(Account.locked_until.is_(None), Account.locked_until <= now),
                )
                .values(locked_until=until)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def clear_expired_lockout(self, account_id: int, now: datetime) -> bool:
        async with self._session("clear_expired_lockout") as session:
            result = await session.execute(
                update(Account)
                .where(
                    Account.id == account_id,
                    Account.locked_until.is_not(None),
                    Account.locked_until <= now,
                )
                .values(failed_login_attempts=0, locked_until=None)
                .execution_options(synchronize_session=False)
            )
            return result.rowcount == 1

    async def record_successful_login(self, account_id: int, now: datetime) -> None:
        async with self._session("record_successful_login") as session:
            await session.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(failed_login_attempts=0, locked_until=None, last_login_at=now)
                .execution_options(synchronize_session=False)
            )
