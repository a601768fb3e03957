# auth/rate_limiting.py
"""
Rate limiting for authentication endpoints.

Fixed-window counting: the first hit in a window creates the counter and sets
its TTL, later hits only increment it. A caller can therefore get up to twice
the limit through in quick succession around a window edge (the end of one
window plus the start of the next). That imprecision is accepted in exchange
for one atomic store round trip per check; do not rely on it as a strict
guarantee.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from ..cache import KeyspaceClient

logger = logging.getLogger("secureshop.ratelimit")


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_at: datetime
    retry_after: int


class RateLimiter(KeyspaceClient):
    """Fixed-window counter keyed by caller scope and action."""

    prefix = "ratelimit:"

    async def check(self, key: str, max_attempts: int, window_seconds: int) -> RateLimitResult:
        """Count an attempt against ``key`` and report whether it is within the limit."""
        count, ttl = await self._call(
            self.backend.incr_window(self._key(key), window_seconds), "ratelimit.check"
        )
        retry_after = ttl if ttl > 0 else window_seconds
        result = RateLimitResult(
            allowed=count <= max_attempts,
            remaining=max(0, max_attempts - count),
            reset_at=datetime.now(timezone.utc) + timedelta(seconds=retry_after),
            retry_after=retry_after,
        )
        if not result.allowed:
            logger.warning(f"Rate limit exceeded for {key} ({count}/{max_attempts})")
        return result


def login_key(client_ip: str, email: str) -> str:
    """Login attempts are limited per (client IP, target account) pair."""
    return f"login:{client_ip}:{email.strip().lower()}"


def password_reset_key(client_ip: str) -> str:
    """Password reset requests are limited per client IP."""
    return f"password-reset:{client_ip}"
