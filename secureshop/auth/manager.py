# auth/manager.py
"""
Session lifecycle orchestration: registration, login, per-request
authentication, refresh rotation, logout and password reset.

Components below this layer report failures as values (``VerificationResult``,
``GateOutcome``, ``RateLimitResult``). This layer turns them into ``AuthError``
for the HTTP boundary. Any failure of the shared store or credential store is
reported as ``SERVICE_UNAVAILABLE``; a request is never let through because a
revocation check could not be performed.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Optional, Set

from ..cache import KeyValueBackend, StoreUnavailable
from ..core.security import PasswordHasher, generate_session_id
from ..db import CredentialStoreError
from ..utils.datetime import Clock, get_current_time, seconds_until
from .audit import AuditAction, AuditService, AuditSink, LoggingAuditSink
from .context import Identity, RequestContext
from .credentials import AccountExists, AccountRecord, CredentialStore
from .email import EmailSender, LoggingEmailSender
from .errors import AuthError, AuthErrorKind
from .login_gate import GateStatus, LoginGate
from .models import Role
from .password_reset import PasswordResetTokens
from .rate_limiting import RateLimiter, login_key, password_reset_key
from .revocation import RevocationLedger
from .sessions import SessionMetadata, SessionRegistry
from .tokens import TokenClaims, TokenPair, TokenService, TokenType

logger = logging.getLogger("secureshop.auth")


@dataclass(frozen=True)
class LoginResult:
    identity: Identity
    tokens: TokenPair
    remember_me: bool = False


@dataclass(frozen=True)
class RefreshResult:
    identity: Identity
    tokens: TokenPair


class SessionManager:
    """Coordinates tokens, sessions, revocation, rate limits and lockout."""

    def __init__(
        self,
        settings,
        *,
        tokens: TokenService,
        registry: SessionRegistry,
        ledger: RevocationLedger,
        limiter: RateLimiter,
        gate: LoginGate,
        credentials: CredentialStore,
        hasher: PasswordHasher,
        resets: PasswordResetTokens,
        audit: AuditService,
        email_sender: EmailSender,
        clock: Clock = get_current_time,
    ):
        self.settings = settings
        self.tokens = tokens
        self.registry = registry
        self.ledger = ledger
        self.limiter = limiter
        self.gate = gate
        self.credentials = credentials
        self.hasher = hasher
        self.resets = resets
        self.audit = audit
        self.email_sender = email_sender
        self.clock = clock

    @classmethod
    def build(
        cls,
        settings,
        backend: KeyValueBackend,
        credentials: CredentialStore,
        audit_sinks: Optional[List[AuditSink]] = None,
        email_sender: Optional[EmailSender] = None,
        clock: Clock = get_current_time,
    ) -> "SessionManager":
        """Wire every component from settings around the given stores."""
        timeout = settings.STORE_TIMEOUT_SECONDS
        longest_session = max(
            settings.SESSION_TTL_SECONDS,
            settings.REMEMBER_ME_TTL_SECONDS,
            settings.REFRESH_TOKEN_TTL_SECONDS,
        )
        hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
        return cls(
            settings,
            tokens=TokenService.from_settings(settings),
            registry=SessionRegistry(backend, index_ttl=longest_session, timeout=timeout),
            ledger=RevocationLedger(
                backend,
                default_ttl=settings.REFRESH_TOKEN_TTL_SECONDS + settings.ACCESS_TOKEN_TTL_SECONDS,
                timeout=timeout,
            ),
            limiter=RateLimiter(backend, timeout=timeout),
            gate=LoginGate(
                credentials,
                hasher,
                max_attempts=settings.MAX_LOGIN_ATTEMPTS,
                lockout_duration=timedelta(minutes=settings.LOCKOUT_MINUTES),
                clock=clock,
            ),
            credentials=credentials,
            hasher=hasher,
            resets=PasswordResetTokens(backend, timeout=timeout),
            audit=AuditService(audit_sinks if audit_sinks is not None else [LoggingAuditSink()]),
            email_sender=email_sender or LoggingEmailSender(),
            clock=clock,
        )

    @asynccontextmanager
    async def _fail_closed(self, operation: str):
        try:
            yield
        except StoreUnavailable as e:
            logger.critical(f"Shared store unavailable during {operation}: {e}")
            raise AuthError(AuthErrorKind.SERVICE_UNAVAILABLE) from e
        except CredentialStoreError as e:
            logger.critical(f"Credential store unavailable during {operation}: {e}")
            raise AuthError(AuthErrorKind.SERVICE_UNAVAILABLE) from e

    # ------------------------------------------------------------------ login

    async def login(
        self, ctx: RequestContext, email: str, password: str, remember_me: bool = False
    ) -> LoginResult:
        """Authenticate credentials and open a new session."""
        async with self._fail_closed("login"):
            limit = await self.limiter.check(
                login_key(ctx.client_ip, email),
                self.settings.LOGIN_RATE_LIMIT_MAX,
                self.settings.LOGIN_RATE_LIMIT_WINDOW_SECONDS,
            )
            if not limit.allowed:
                raise AuthError(AuthErrorKind.RATE_LIMITED, retry_after=limit.retry_after)

            account = await self.credentials.find_by_email(email)
            outcome = await self.gate.attempt(account, password)

            if outcome.status is GateStatus.LOCKED:
                retry_after = seconds_until(outcome.account.locked_until, self.clock())
                raise AuthError(AuthErrorKind.ACCOUNT_LOCKED, retry_after=retry_after or None)
            if outcome.status is GateStatus.INVALID_CREDENTIALS:
                if account is not None:
                    self.audit.record(
                        AuditAction.LOGIN_FAILED, account.id,
                        ip_address=ctx.client_ip, attempts=outcome.failed_attempts,
                    )
                    if outcome.locked_now:
                        logger.warning(f"Account {account.id} locked after {outcome.failed_attempts} failed attempts")
                        self.audit.record(AuditAction.ACCOUNT_LOCKED, account.id, ip_address=ctx.client_ip)
                raise AuthError(AuthErrorKind.INVALID_CREDENTIALS)
            if outcome.status is GateStatus.INACTIVE:
                raise AuthError(AuthErrorKind.ACCOUNT_INACTIVE)

            ttl = (
                self.settings.REMEMBER_ME_TTL_SECONDS if remember_me
                else self.settings.SESSION_TTL_SECONDS
            )
            tokens = await self._open_session(outcome.account, ctx, ttl, remember_me)

        self.audit.record(
            AuditAction.LOGIN, outcome.account.id,
            ip_address=ctx.client_ip, user_agent=ctx.user_agent, session_id=tokens.session_id,
        )
        logger.info(f"Account {outcome.account.id} logged in (session {tokens.session_id})")
        return LoginResult(self._identity(outcome.account, tokens.session_id), tokens, remember_me)

    async def register(self, ctx: RequestContext, email: str, password: str) -> AccountRecord:
        """Create a customer account.

        A taken email fails with the same generic error as any other rejection,
        after the same hashing cost, so registration does not reveal accounts.
        """
        password_hash = await asyncio.to_thread(self.hasher.hash, password)
        async with self._fail_closed("register"):
            if await self.credentials.find_by_email(email) is not None:
                raise AuthError(AuthErrorKind.REGISTRATION_FAILED)
            try:
                account = await self.credentials.create(email, password_hash, role=Role.CUSTOMER)
            except AccountExists:
                raise AuthError(AuthErrorKind.REGISTRATION_FAILED) from None

        self.audit.record(AuditAction.USER_CREATED, account.id, email=account.email, ip_address=ctx.client_ip)
        logger.info(f"Account {account.id} registered")
        return account

    async def _open_session(
        self, account: AccountRecord, ctx: RequestContext, ttl: int, remember_me: bool
    ) -> TokenPair:
        session_id = generate_session_id()
        metadata = SessionMetadata(
            account_id=account.id,
            created_at=self.clock(),
            ip_address=ctx.client_ip,
            user_agent=ctx.user_agent,
            ttl_seconds=ttl,
            remember_me=remember_me,
        )
        await self.registry.create(session_id, metadata, ttl)
        return self.tokens.issue_pair(account.id, account.email, account.role, session_id)

    # --------------------------------------------------------- authenticate

    async def authenticate(self, ctx: RequestContext) -> Identity:
        """Resolve the caller of a protected request from its access token."""
        if not ctx.access_token:
            raise AuthError(AuthErrorKind.UNAUTHENTICATED)

        result = self.tokens.verify(ctx.access_token, TokenType.ACCESS)
        if not result.ok:
            # An expired access token keeps its refresh cookie so the client can refresh.
            expired = result.failure.error_kind is AuthErrorKind.TOKEN_EXPIRED
            if not expired:
                logger.warning(f"Rejected access token from {ctx.client_ip}: {result.failure.value}")
            raise AuthError(result.failure.error_kind, clear_cookies=not expired)

        claims = result.claims
        async with self._fail_closed("authenticate"):
            session = await self._live_session(claims)
            account = await self._usable_account(claims.account_id)
            if session.remember_me:
                await self.registry.extend(claims.session_id, session.ttl_seconds)
        return self._identity(account, claims.session_id)

    async def _live_session(self, claims: TokenClaims) -> SessionMetadata:
        if await self.ledger.is_blacklisted(claims.session_id):
            raise AuthError(AuthErrorKind.SESSION_REVOKED, clear_cookies=True)
        session = await self.registry.get(claims.session_id)
        if session is None or session.account_id != claims.account_id:
            raise AuthError(AuthErrorKind.SESSION_REVOKED, clear_cookies=True)
        return session

    async def _usable_account(self, account_id: int) -> AccountRecord:
        account = await self.credentials.find_by_id(account_id)
        if account is None:
            raise AuthError(AuthErrorKind.UNAUTHENTICATED, clear_cookies=True)
        if not account.is_active:
            raise AuthError(AuthErrorKind.ACCOUNT_INACTIVE, clear_cookies=True)
        if account.is_locked(self.clock()):
            raise AuthError(AuthErrorKind.ACCOUNT_LOCKED, clear_cookies=True)
        return account

    # -------------------------------------------------------------- refresh

    async def refresh(self, ctx: RequestContext, refresh_token: Optional[str] = None) -> RefreshResult:
        """Exchange a refresh token for a new pair, revoking the old session.

        Each refresh token is accepted once. Presenting it again, including a
        concurrent duplicate, is treated as reuse and rejected.
        """
        token = refresh_token or ctx.refresh_token
        if not token:
            raise AuthError(AuthErrorKind.UNAUTHENTICATED)

        result = self.tokens.verify(token, TokenType.REFRESH)
        if not result.ok:
            logger.warning(f"Rejected refresh token from {ctx.client_ip}: {result.failure.value}")
            raise AuthError(result.failure.error_kind, clear_cookies=True)

        claims = result.claims
        async with self._fail_closed("refresh"):
            if await self.ledger.is_blacklisted(claims.session_id):
                await self._refresh_reused(claims, ctx)
            session = await self.registry.get(claims.session_id)
            if session is None or session.account_id != claims.account_id:
                raise AuthError(AuthErrorKind.SESSION_REVOKED, clear_cookies=True)
            account = await self._usable_account(claims.account_id)

            # Claiming the old session is the single point that decides a race.
            if not await self.ledger.blacklist(claims.session_id):
                await self._refresh_reused(claims, ctx)
            await self.registry.delete(claims.session_id, account.id)

            tokens = await self._open_session(account, ctx, session.ttl_seconds, session.remember_me)

        self.audit.record(
            AuditAction.TOKEN_REFRESH, account.id,
            ip_address=ctx.client_ip,
            old_session_id=claims.session_id,
            new_session_id=tokens.session_id,
        )
        return RefreshResult(self._identity(account, tokens.session_id), tokens)

    async def _refresh_reused(self, claims: TokenClaims, ctx: RequestContext) -> None:
        logger.warning(
            f"Refresh token reuse for account {claims.account_id} "
            f"(session {claims.session_id}) from {ctx.client_ip}"
        )
        self.audit.record(
            AuditAction.REFRESH_REUSE, claims.account_id,
            ip_address=ctx.client_ip, session_id=claims.session_id,
        )
        if self.settings.REVOKE_ALL_SESSIONS_ON_REFRESH_REUSE:
            await self.revoke_all_sessions(claims.account_id)
        raise AuthError(AuthErrorKind.SESSION_REVOKED, clear_cookies=True)

    # --------------------------------------------------------------- logout

    async def logout(self, ctx: RequestContext, refresh_token: Optional[str] = None) -> bool:
        """Revoke the caller's session. Idempotent.

        The session is identified from the access token, expired or not, and
        otherwise from the refresh token. Returns True if a session was found.
        """
        targets = {}
        candidates = (
            (ctx.access_token, TokenType.ACCESS),
            (refresh_token or ctx.refresh_token, TokenType.REFRESH),
        )
        for token, token_type in candidates:
            if not token:
                continue
            result = self.tokens.verify(token, token_type, allow_expired=True)
            if result.ok:
                targets[result.claims.session_id] = result.claims.account_id

        async with self._fail_closed("logout"):
            for session_id, account_id in targets.items():
                await self.ledger.blacklist(session_id)
                await self.registry.delete(session_id, account_id)

        for session_id, account_id in targets.items():
            self.audit.record(AuditAction.LOGOUT, account_id, ip_address=ctx.client_ip, session_id=session_id)
        return bool(targets)

    async def revoke_all_sessions(self, account_id: int) -> int:
        """Revoke every session recorded for an account."""
        async with self._fail_closed("revoke_all_sessions"):
            session_ids: Set[str] = await self.registry.account_sessions(account_id)
            for session_id in session_ids:
                await self.ledger.blacklist(session_id)
                await self.registry.delete(session_id, account_id)
        if session_ids:
            logger.info(f"Revoked {len(session_ids)} session(s) for account {account_id}")
        return len(session_ids)

    # ------------------------------------------------------- password reset

    async def request_password_reset(self, ctx: RequestContext, email: str) -> None:
        """Email a reset token if the account exists. The caller learns nothing either way."""
        async with self._fail_closed("request_password_reset"):
            limit = await self.limiter.check(
                password_reset_key(ctx.client_ip),
                self.settings.PASSWORD_RESET_RATE_LIMIT_MAX,
                self.settings.PASSWORD_RESET_RATE_LIMIT_WINDOW_SECONDS,
            )
            if not limit.allowed:
                raise AuthError(AuthErrorKind.RATE_LIMITED, retry_after=limit.retry_after)

            account = await self.credentials.find_by_email(email)
            if account is None or not account.is_active:
                return
            token = await self.resets.issue(
                account.id, self.settings.PASSWORD_RESET_EXPIRE_MINUTES * 60
            )

        try:
            await self.email_sender.send_password_reset(account.email, token)
        except Exception as e:
            logger.error(f"Failed to send password reset email to account {account.id}: {e}")
        self.audit.record(AuditAction.PASSWORD_RESET_REQUESTED, account.id, ip_address=ctx.client_ip)

    async def reset_password(self, token: str, new_password: str) -> None:
        """Set a new password with a reset token and revoke all sessions."""
        async with self._fail_closed("reset_password"):
            account_id = await self.resets.consume(token)
            if account_id is None:
                raise AuthError(AuthErrorKind.INVALID_RESET_TOKEN)
            password_hash = await asyncio.to_thread(self.hasher.hash, new_password)
            account = await self.credentials.update(
                account_id,
                password_hash=password_hash,
                failed_login_attempts=0,
                locked_until=None,
            )
            if account is None:
                raise AuthError(AuthErrorKind.INVALID_RESET_TOKEN)
        await self.revoke_all_sessions(account_id)
        self.audit.record(AuditAction.PASSWORD_RESET, account_id)
        logger.info(f"Password reset for account {account_id}")

    # ---------------------------------------------------------------- misc

    def _identity(self, account: AccountRecord, session_id: str) -> Identity:
        return Identity(
            account_id=account.id,
            email=account.email,
            role=account.role,
            session_id=session_id,
        )

    async def close(self) -> None:
        await self.audit.drain()
