# middleware/logging.py
"""Request logging middleware."""
import logging
import time
from typing import List

from fastapi.requests import Request
from fastapi.responses import Response

from .base import ShopMiddleware

logger = logging.getLogger("secureshop.middleware.logging")


class LoggingMiddleware(ShopMiddleware):
    """Log method, path, status and duration of each request.

    Headers, cookies and bodies are never logged since they carry credentials.
    """

    def setup(self):
        self.excluded_paths: List[str] = self.config.get("excluded_paths", ["/health"])

    async def after_response(self, request: Request, response: Response) -> Response:
        path = request.url.path
        if path not in self.excluded_paths:
            duration_ms = (time.time() - request.state.start_time) * 1000
            logger.info(
                f"{request.method} {path} {response.status_code} "
                f"{duration_ms:.1f}ms request_id={request.state.request_id}"
            )
        response.headers["X-Request-ID"] = request.state.request_id
        return response
