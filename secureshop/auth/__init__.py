# auth/__init__.py
"""
Authentication and session lifecycle for SecureShop.

Provides token issuance and verification, the session registry, the
revocation ledger, rate limiting, the login gate and the orchestrating
``SessionManager``.
"""
from .audit import (
    AuditAction, AuditService, AuditSink, DatabaseAuditSink, LoggingAuditSink,
)
from .context import Identity, RequestContext, extract_bearer
from .cookies import clear_auth_cookies, set_auth_cookies
from .credentials import AccountExists, AccountRecord, CredentialStore, SQLAlchemyCredentialStore
from .dependencies import get_current_identity, get_request_context, get_session_manager, require_roles
from .email import EmailSender, LoggingEmailSender
from .errors import AuthError, AuthErrorKind
from .login_gate import GateOutcome, GateStatus, LoginGate
from .manager import LoginResult, RefreshResult, SessionManager
from .models import Account, AuthAuditLog, Role
from .password_reset import PasswordResetTokens
from .rate_limiting import RateLimiter, RateLimitResult, login_key, password_reset_key
from .revocation import RevocationLedger
from .sessions import SessionConflict, SessionMetadata, SessionRegistry
from .tokens import TokenClaims, TokenFailure, TokenPair, TokenService, TokenType, VerificationResult

__all__ = [
    'AuditAction', 'AuditService', 'AuditSink', 'DatabaseAuditSink', 'LoggingAuditSink',
    'Identity', 'RequestContext', 'extract_bearer',
    'clear_auth_cookies', 'set_auth_cookies',
    'AccountExists', 'AccountRecord', 'CredentialStore', 'SQLAlchemyCredentialStore',
    'get_current_identity', 'get_request_context', 'get_session_manager', 'require_roles',
    'EmailSender', 'LoggingEmailSender',
    'AuthError', 'AuthErrorKind',
    'GateOutcome', 'GateStatus', 'LoginGate',
    'LoginResult', 'RefreshResult', 'SessionManager',
    'Account', 'AuthAuditLog', 'Role',
    'PasswordResetTokens',
    'RateLimiter', 'RateLimitResult', 'login_key', 'password_reset_key',
    'RevocationLedger',
    'SessionConflict', 'SessionMetadata', 'SessionRegistry',
    'TokenClaims', 'TokenFailure', 'TokenPair', 'TokenService', 'TokenType', 'VerificationResult',
]
