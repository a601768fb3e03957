"""
Unit tests for the login gate lockout state machine.
"""
from datetime import timedelta

import pytest

from secureshop.auth import GateStatus, LoginGate


@pytest.fixture
def gate(credentials, hasher, clock) -> LoginGate:
    return LoginGate(credentials, hasher, max_attempts=5, lockout_duration=timedelta(minutes=30), clock=clock)


async def fail(gate, credentials, account_id, times):
    outcome = None
    for _ in range(times):
        account = await credentials.find_by_id(account_id)
        outcome = await gate.attempt(account, "wrong-password")
    return outcome


class TestLoginGate:
    """Test cases for password attempts and lockout."""

    @pytest.mark.asyncio
    async def test_correct_password(self, gate, account, test_user):
        outcome = await gate.attempt(account, test_user["password"])

        assert outcome.ok
        assert outcome.account.id == account.id

    @pytest.mark.asyncio
    async def test_unknown_account_is_invalid_credentials(self, gate):
        outcome = await gate.attempt(None, "whatever")

        assert outcome.status is GateStatus.INVALID_CREDENTIALS
        assert outcome.account is None

    @pytest.mark.asyncio
    async def test_locks_on_threshold(self, gate, credentials, account):
        outcomes = []
        for _ in range(5):
            current = await credentials.find_by_id(account.id)
            outcomes.append(await gate.attempt(current, "wrong-password"))

        assert [o.status for o in outcomes] == [GateStatus.INVALID_CREDENTIALS] * 5
        assert [o.locked_now for o in outcomes] == [False] * 4 + [True]
        assert (await credentials.find_by_id(account.id)).locked_until is not None

    @pytest.mark.asyncio
    async def test_correct_password_rejected_while_locked(self, gate, credentials, account, test_user):
        await fail(gate, credentials, account.id, 5)

        outcome = await gate.attempt(await credentials.find_by_id(account.id), test_user["password"])

        assert outcome.status is GateStatus.LOCKED

    @pytest.mark.asyncio
    async def test_attempts_during_lockout_do_not_extend_it(self, gate, credentials, account, clock):
        await fail(gate, credentials, account.id, 5)
        locked = await credentials.find_by_id(account.id)

        clock.advance(minutes=10)
        outcome = await fail(gate, credentials, account.id, 3)

        after = await credentials.find_by_id(account.id)
        assert outcome.status is GateStatus.LOCKED
        assert after.locked_until == locked.locked_until
        assert after.failed_login_attempts == locked.failed_login_attempts

    @pytest.mark.asyncio
    async def test_success_after_lockout_elapses_resets_counter(self, gate, credentials, account, clock, test_user):
        await fail(gate, credentials, account.id, 5)

        clock.advance(minutes=30)
        outcome = await gate.attempt(await credentials.find_by_id(account.id), test_user["password"])

        refreshed = await credentials.find_by_id(account.id)
        assert outcome.ok
        assert refreshed.failed_login_attempts == 0
        assert refreshed.locked_until is None

    @pytest.mark.asyncio
    async def test_failure_after_lockout_elapses_starts_fresh(self, gate, credentials, account, clock):
        await fail(gate, credentials, account.id, 5)

        clock.advance(minutes=31)
        outcome = await fail(gate, credentials, account.id, 1)

        assert outcome.status is GateStatus.INVALID_CREDENTIALS
        assert outcome.failed_attempts == 1

    @pytest.mark.asyncio
    async def test_success_resets_counter(self, gate, credentials, account, test_user, clock):
        await fail(gate, credentials, account.id, 3)

        outcome = await gate.attempt(await credentials.find_by_id(account.id), test_user["password"])

        refreshed = await credentials.find_by_id(account.id)
        assert outcome.ok
        assert refreshed.failed_login_attempts == 0
        assert refreshed.last_login_at == clock()

    @pytest.mark.asyncio
    async def test_inactive_account_with_correct_password(self, gate, credentials, account, test_user):
        inactive = await credentials.update(account.id, is_active=False)

        outcome = await gate.attempt(inactive, test_user["password"])

        assert outcome.status is GateStatus.INACTIVE

    @pytest.mark.asyncio
    async def test_inactive_account_with_wrong_password(self, gate, credentials, account):
        inactive = await credentials.update(account.id, is_active=False)

        outcome = await gate.attempt(inactive, "wrong-password")

        assert outcome.status is GateStatus.INVALID_CREDENTIALS
