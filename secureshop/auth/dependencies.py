# auth/dependencies.py
"""FastAPI dependencies for authenticated routes."""
from typing import Callable

from fastapi import Depends, Request

from .context import Identity, RequestContext
from .errors import AuthError, AuthErrorKind
from .manager import SessionManager
from .models import Role


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.auth


def get_request_context(
    request: Request, manager: SessionManager = Depends(get_session_manager)
) -> RequestContext:
    return RequestContext.from_request(request, manager.settings)


async def get_current_identity(
    request: Request, manager: SessionManager = Depends(get_session_manager)
) -> Identity:
    """Identity attached by the session middleware, or authenticated on demand."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        identity = await manager.authenticate(RequestContext.from_request(request, manager.settings))
        request.state.identity = identity
    return identity


def require_roles(*roles: Role) -> Callable:
    """Dependency that admits only callers holding one of ``roles``."""
    allowed = {Role(role) for role in roles}

    async def role_checker(identity: Identity = Depends(get_current_identity)) -> Identity:
        if identity.role not in allowed:
            raise AuthError(AuthErrorKind.FORBIDDEN)
        return identity

    return role_checker
