# auth/cookies.py
"""
Auth cookie transport: HttpOnly, SameSite=Strict, Secure in production.

The refresh cookie is only sent to the refresh endpoint. A second copy scoped
to the logout endpoint lets logout revoke the session after the access cookie
has expired.
"""
from starlette.responses import Response

from .tokens import TokenPair


def _refresh_cookie_paths(settings):
    return (settings.REFRESH_COOKIE_PATH, settings.LOGOUT_COOKIE_PATH)


def set_auth_cookies(response: Response, tokens: TokenPair, settings) -> None:
    """Set authentication cookies."""
    response.set_cookie(
        settings.ACCESS_COOKIE_NAME,
        tokens.access_token,
        max_age=tokens.access_expires_in,
        path="/",
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite="strict",
    )
    for path in _refresh_cookie_paths(settings):
        response.set_cookie(
            settings.REFRESH_COOKIE_NAME,
            tokens.refresh_token,
            max_age=tokens.refresh_expires_in,
            path=path,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="strict",
        )


def clear_auth_cookies(response: Response, settings) -> None:
    """Clear authentication cookies."""
    response.delete_cookie(
        settings.ACCESS_COOKIE_NAME, path="/",
        httponly=True, secure=settings.COOKIE_SECURE, samesite="strict",
    )
    for path in _refresh_cookie_paths(settings):
        response.delete_cookie(
            settings.REFRESH_COOKIE_NAME, path=path,
            httponly=True, secure=settings.COOKIE_SECURE, samesite="strict",
        )
