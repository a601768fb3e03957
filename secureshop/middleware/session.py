# middleware/session.py
"""Session authentication middleware."""
import logging
from typing import List

from fastapi.requests import Request
from fastapi.responses import JSONResponse, Response

from ..auth.context import RequestContext
from ..auth.cookies import clear_auth_cookies
from ..auth.errors import AuthError
from .base import ShopMiddleware

logger = logging.getLogger("secureshop.middleware.session")


def auth_error_response(exc: AuthError, settings) -> JSONResponse:
    """Render an ``AuthError`` as the standard error envelope."""
    response = JSONResponse(status_code=exc.status_code, content=exc.to_dict())
    if exc.retry_after is not None:
        response.headers["Retry-After"] = str(exc.retry_after)
    if exc.clear_cookies:
        clear_auth_cookies(response, settings)
    return response


class SessionMiddleware(ShopMiddleware):
    """Authenticate protected routes and attach the caller's identity."""

    def setup(self):
        self.manager = self.config["manager"]
        self.protected_prefixes: List[str] = self.config.get("protected_prefixes", ["/api"])
        self.excluded_paths: List[str] = self.config.get("excluded_paths", [])

    def _requires_auth(self, path: str) -> bool:
        if path in self.excluded_paths:
            return False
        return any(path.startswith(prefix) for prefix in self.protected_prefixes)

    async def before_request(self, request: Request) -> None:
        request.state.identity = None
        if request.method == "OPTIONS" or not self._requires_auth(request.url.path):
            return
        ctx = RequestContext.from_request(request, self.manager.settings)
        request.state.identity = await self.manager.authenticate(ctx)

    async def handle_exception(self, request: Request, exc: Exception) -> Response:
        if isinstance(exc, AuthError):
            if exc.status_code >= 500:
                logger.error(f"Authentication unavailable for {request.method} {request.url.path}")
            return auth_error_response(exc, self.manager.settings)
        return await super().handle_exception(request, exc)
