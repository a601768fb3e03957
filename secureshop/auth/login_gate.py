# auth/login_gate.py
"""
Per-account login gate with temporary lockout.

States are Active and Locked (``locked_until`` in the future). Failed attempts
increment the account's counter atomically; the attempt that reaches the
threshold performs the single conditional write that locks the account.
Attempts during a lockout are rejected without touching the counter, so an
attacker cannot keep extending a legitimate user's lockout.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from ..core.security import PasswordHasher
from ..utils.datetime import Clock, get_current_time
from .credentials import AccountRecord, CredentialStore

logger = logging.getLogger("secureshop.auth.login_gate")


class GateStatus(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    LOCKED = "locked"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class GateOutcome:
    status: GateStatus
    account: Optional[AccountRecord] = None
    failed_attempts: int = 0
    locked_now: bool = False

    @property
    def ok(self) -> bool:
        return self.status is GateStatus.SUCCESS


class LoginGate:
    """Evaluates one password attempt against the lockout state machine."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        max_attempts: int = 5,
        lockout_duration: timedelta = timedelta(minutes=30),
        clock: Clock = get_current_time,
    ):
        self.store = store
        self.hasher = hasher
        self.max_attempts = max_attempts
        self.lockout_duration = lockout_duration
        self.clock = clock

    async def attempt(self, account: Optional[AccountRecord], password: str) -> GateOutcome:
        """Check ``password`` for ``account`` (None when the email is unknown)."""
        if account is None:
            # Same cost and same outcome as a wrong password.
            await self.hasher.dummy_verify(password)
            return GateOutcome(GateStatus.INVALID_CREDENTIALS)

        now = self.clock()
        if account.is_locked(now):
            await self.hasher.dummy_verify(password)
            logger.warning(f"Login attempt on locked account {account.id} (locked until {account.locked_until})")
            return GateOutcome(GateStatus.LOCKED, account, account.failed_login_attempts)

        if account.locked_until is not None:
            # Lockout elapsed: start from a clean slate before judging the password.
            await self.store.clear_expired_lockout(account.id, now)

        if not await self.hasher.verify(password, account.password_hash):
            failed = await self.store.increment_failed_attempts(account.id)
            locked_now = False
            if failed >= self.max_attempts:
                locked_now = await self.store.lock_if_threshold(
                    account.id, self.max_attempts, now + self.lockout_duration, now
                )
            logger.warning(
                f"Failed login attempt for account {account.id} "
                f"(attempts={failed}, locked={locked_now})"
            )
            return GateOutcome(GateStatus.INVALID_CREDENTIALS, account, failed, locked_now)

        if not account.is_active:
            return GateOutcome(GateStatus.INACTIVE, account, account.failed_login_attempts)

        await self.store.record_successful_login(account.id, now)
        return GateOutcome(GateStatus.SUCCESS, account, 0)
