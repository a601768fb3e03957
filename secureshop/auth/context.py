# auth/context.py
"""
Typed per-request context and the identity attached after authentication.
"""
import uuid
from dataclasses import dataclass, field
from typing import Optional

from starlette.requests import Request

from .models import Role


@dataclass(frozen=True)
class Identity:
    """The authenticated caller, resolved once per request."""
    account_id: int
    email: str
    role: Role
    session_id: str


@dataclass(frozen=True)
class RequestContext:
    """Credentials and client details extracted from a request."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    client_ip: str = "unknown"
    user_agent: Optional[str] = None
    request_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    @classmethod
    def from_request(cls, request: Request, settings) -> "RequestContext":
        """Assemble the context from cookies, with a bearer-header fallback."""
        access_token = request.cookies.get(settings.ACCESS_COOKIE_NAME) or None
        if not access_token:
            access_token = extract_bearer(request.headers.get("authorization"))
        request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
        return cls(
            access_token=access_token,
            refresh_token=request.cookies.get(settings.REFRESH_COOKIE_NAME) or None,
            client_ip=request.client.host if request.client else "unknown",
            user_agent=request.headers.get("user-agent"),
            request_id=request_id,
        )


def extract_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer`` header, if any."""
    if not header:
        return None
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
