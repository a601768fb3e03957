# auth/tokens.py
"""
Signed, time-bounded access and refresh tokens.

Each token kind is signed with its own secret, so leaking one secret cannot be
used to forge the other kind. Tokens carry the session id they belong to; the
session, not the token, is the unit of revocation.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTClaimsError, JWTError

from .errors import AuthErrorKind
from .models import Role

logger = logging.getLogger("secureshop.auth.tokens")


class TokenType(str, Enum):
    """Token types."""
    ACCESS = "access"
    REFRESH = "refresh"


class TokenFailure(str, Enum):
    """Why a token failed verification."""
    EXPIRED = "expired"
    MALFORMED = "malformed"
    BAD_SIGNATURE = "bad_signature"
    WRONG_ISSUER = "wrong_issuer"
    WRONG_AUDIENCE = "wrong_audience"
    WRONG_TYPE = "wrong_type"

    @property
    def error_kind(self) -> AuthErrorKind:
        if self is TokenFailure.EXPIRED:
            return AuthErrorKind.TOKEN_EXPIRED
        return AuthErrorKind.TOKEN_INVALID


@dataclass(frozen=True)
class TokenClaims:
    """Claims embedded in every token."""
    account_id: int
    email: str
    role: Role
    session_id: str
    token_type: TokenType
    issued_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of verifying a token: claims on success, a failure kind otherwise."""
    claims: Optional[TokenClaims] = None
    failure: Optional[TokenFailure] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    session_id: str
    access_expires_in: int
    refresh_expires_in: int


class TokenService:
    """Issue and verify tokens. Holds no mutable state."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        *,
        issuer: str,
        audience: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
    ):
        if not access_secret or not refresh_secret:
            raise ValueError("Token secrets must not be empty")
        if access_secret == refresh_secret:
            raise ValueError("Access and refresh tokens require distinct secrets")
        self._secrets = {TokenType.ACCESS: access_secret, TokenType.REFRESH: refresh_secret}
        self._ttls = {TokenType.ACCESS: access_ttl, TokenType.REFRESH: refresh_ttl}
        self.issuer = issuer
        self.audience = audience
        self.algorithm = algorithm

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            settings.JWT_ACCESS_SECRET,
            settings.JWT_REFRESH_SECRET,
            issuer=settings.JWT_ISSUER,
            audience=settings.JWT_AUDIENCE,
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            algorithm=settings.JWT_ALGORITHM,
        )

    def ttl_seconds(self, token_type: TokenType) -> int:
        return int(self._ttls[token_type].total_seconds())

    def _issue(
        self,
        token_type: TokenType,
        account_id: int,
        email: str,
        role: Role,
        session_id: str,
        expires_delta: Optional[timedelta] = None,
    ) -> str:
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None else self._ttls[token_type])
        to_encode: Dict[str, Any] = {
            "sub": str(account_id),
            "email": email,
            "role": Role(role).value,
            "sid": session_id,
            "type": token_type.value,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": now,
            "exp": expire,
        }
        return jwt.encode(to_encode, self._secrets[token_type], algorithm=self.algorithm)

    def issue_access_token(self, account_id, email, role, session_id, expires_delta=None) -> str:
        """Create an access token."""
        return self._issue(TokenType.ACCESS, account_id, email, role, session_id, expires_delta)

    def issue_refresh_token(self, account_id, email, role, session_id, expires_delta=None) -> str:
        """Create a refresh token."""
        return self._issue(TokenType.REFRESH, account_id, email, role, session_id, expires_delta)

    def issue_pair(self, account_id: int, email: str, role: Role, session_id: str) -> TokenPair:
        """Issue an access and refresh token bound to the same session."""
        return TokenPair(
            access_token=self.issue_access_token(account_id, email, role, session_id),
            refresh_token=self.issue_refresh_token(account_id, email, role, session_id),
            session_id=session_id,
            access_expires_in=self.ttl_seconds(TokenType.ACCESS),
            refresh_expires_in=self.ttl_seconds(TokenType.REFRESH),
        )

    def verify(
        self, token: str, token_type: TokenType, *, allow_expired: bool = False
    ) -> VerificationResult:
        """Validate signature, issuer, audience and expiry of a token."""
        if not token or not isinstance(token, str):
            return VerificationResult(failure=TokenFailure.MALFORMED)

        # Structural check first so a garbled token is not reported as a bad signature.
        try:
            header = jwt.get_unverified_header(token)
            jwt.get_unverified_claims(token)
        except JWTError:
            return VerificationResult(failure=TokenFailure.MALFORMED)
        if header.get("alg") != self.algorithm:
            return VerificationResult(failure=TokenFailure.BAD_SIGNATURE)

        try:
            payload = jwt.decode(
                token,
                self._secrets[token_type],
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
                options={"verify_exp": not allow_expired},
            )
        except ExpiredSignatureError:
            return VerificationResult(failure=TokenFailure.EXPIRED)
        except JWTClaimsError as e:
            if "audience" in str(e).lower():
                return VerificationResult(failure=TokenFailure.WRONG_AUDIENCE)
            if "issuer" in str(e).lower():
                return VerificationResult(failure=TokenFailure.WRONG_ISSUER)
            return VerificationResult(failure=TokenFailure.MALFORMED)
        except JWTError:
            return VerificationResult(failure=TokenFailure.BAD_SIGNATURE)

        # jose skips the audience check when the claim is absent
        if payload.get("aud") != self.audience:
            return VerificationResult(failure=TokenFailure.WRONG_AUDIENCE)
        if payload.get("type") != token_type.value:
            return VerificationResult(failure=TokenFailure.WRONG_TYPE)

        try:
            claims = TokenClaims(
                account_id=int(payload["sub"]),
                email=payload["email"],
                role=Role(payload["role"]),
                session_id=payload["sid"],
                token_type=token_type,
                issued_at=_from_timestamp(payload.get("iat")),
                expires_at=_from_timestamp(payload.get("exp")),
            )
        except (KeyError, TypeError, ValueError):
            return VerificationResult(failure=TokenFailure.MALFORMED)
        if not claims.session_id:
            return VerificationResult(failure=TokenFailure.MALFORMED)
        return VerificationResult(claims=claims)


def _from_timestamp(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc)
