# auth/password_reset.py
"""
Single-use password reset tokens.

Only the SHA-256 digest of a token is stored; the token itself goes to the
account owner by email.
"""
from typing import Optional

from ..cache import KeyspaceClient
from ..core.security import generate_token, hash_token


class PasswordResetTokens(KeyspaceClient):

    prefix = "password_reset:"

    async def issue(self, account_id: int, ttl: int) -> str:
        token = generate_token(32)
        await self._call(
            self.backend.set(self._key(hash_token(token)), str(account_id), ttl),
            "password_reset.issue",
        )
        return token

    async def consume(self, token: str) -> Optional[int]:
        """Return the account id for a live token and invalidate it.

        Only the caller whose delete removes the entry wins, so a token can be
        redeemed once even under concurrent use.
        """
        key = self._key(hash_token(token))
        account_id = await self._call(self.backend.get(key), "password_reset.lookup")
        if account_id is None:
            return None
        if not await self._call(self.backend.delete(key), "password_reset.consume"):
            return None
        return int(account_id)
