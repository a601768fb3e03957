"""
Authentication routes for SecureShop.
"""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Response, status

from ..auth import (
    Identity,
    RequestContext,
    SessionManager,
    TokenPair,
    clear_auth_cookies,
    get_current_identity,
    get_request_context,
    get_session_manager,
    set_auth_cookies,
)
from ..schemas.auth import (
    ForgotPasswordRequest,
    IdentityResponse,
    LoginRequest,
    LogoutRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    TokenResponse,
)

router = APIRouter(prefix="/auth", tags=["authentication"])

PUBLIC_PATHS = ("/register", "/login", "/refresh", "/logout", "/forgot-password", "/reset-password")


def _identity_payload(identity: Identity) -> Dict[str, Any]:
    return IdentityResponse(id=identity.account_id, email=identity.email, role=identity.role).model_dump()


def _token_payload(tokens: TokenPair) -> Dict[str, Any]:
    return TokenResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        expires_in=tokens.access_expires_in,
        refresh_expires_in=tokens.refresh_expires_in,
    ).model_dump()


@router.post("/register", status_code=status.HTTP_201_CREATED, summary="Create a customer account")
async def register(
    body: RegisterRequest,
    ctx: RequestContext = Depends(get_request_context),
    manager: SessionManager = Depends(get_session_manager),
) -> Any:
    """Create a customer account. No session is opened; log in afterwards."""
    account = await manager.register(ctx, body.email, body.password)
    user = IdentityResponse(id=account.id, email=account.email, role=account.role).model_dump()
    return {"success": True, "message": "Account created successfully.", "data": {"user": user}}


@router.post("/login", summary="Log in with email and password")
async def login(
    body: LoginRequest,
    response: Response,
    ctx: RequestContext = Depends(get_request_context),
    manager: SessionManager = Depends(get_session_manager),
) -> Any:
    """
    Authenticate and open a session.

    Tokens are set as HttpOnly cookies; pass **include_tokens** to also
    receive them in the body.
    """
    result = await manager.login(ctx, body.email, body.password, remember_me=body.remember_me)
    set_auth_cookies(response, result.tokens, manager.settings)
    data: Dict[str, Any] = {"user": _identity_payload(result.identity)}
    if body.include_tokens:
        data["tokens"] = _token_payload(result.tokens)
    return {"success": True, "data": data}


@router.post("/refresh", summary="Rotate the refresh token")
async def refresh(
    response: Response,
    body: Optional[RefreshRequest] = None,
    ctx: RequestContext = Depends(get_request_context),
    manager: SessionManager = Depends(get_session_manager),
) -> Any:
    """Exchange the refresh token (body first, then cookie) for a new pair."""
    body = body or RefreshRequest()
    result = await manager.refresh(ctx, body.refresh_token)
    set_auth_cookies(response, result.tokens, manager.settings)
    data: Dict[str, Any] = {"user": _identity_payload(result.identity)}
    if body.include_tokens:
        data["tokens"] = _token_payload(result.tokens)
    return {"success": True, "data": data}


@router.post("/logout", summary="Log out of the current session")
async def logout(
    response: Response,
    body: Optional[LogoutRequest] = None,
    ctx: RequestContext = Depends(get_request_context),
    manager: SessionManager = Depends(get_session_manager),
) -> Any:
    """Revoke the current session. Always succeeds and always clears cookies."""
    await manager.logout(ctx, body.refresh_token if body else None)
    clear_auth_cookies(response, manager.settings)
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me", summary="Current account")
async def me(identity: Identity = Depends(get_current_identity)) -> Any:
    return {"success": True, "data": {"user": _identity_payload(identity)}}


@router.post("/forgot-password", summary="Request a password reset email")
async def forgot_password(
    body: ForgotPasswordRequest,
    ctx: RequestContext = Depends(get_request_context),
    manager: SessionManager = Depends(get_session_manager),
) -> Any:
    await manager.request_password_reset(ctx, body.email)
    return {
        "success": True,
        "message": "If an account exists with this email, a password reset link has been sent.",
    }


@router.post("/reset-password", summary="Set a new password with a reset token")
async def reset_password(
    body: ResetPasswordRequest,
    response: Response,
    manager: SessionManager = Depends(get_session_manager),
) -> Any:
    """Set a new password. Every session of the account is revoked."""
    await manager.reset_password(body.token, body.password)
    clear_auth_cookies(response, manager.settings)
    return {"success": True, "message": "Password has been reset. Please log in again."}
