# auth/revocation.py
"""
Revocation ledger: session ids that were explicitly invalidated.

Access tokens stay cryptographically valid until their own expiry even after
logout, so this ledger is consulted on every authenticated request. Entries
expire once no token for the session could still verify.
"""
import logging
from typing import Optional

from ..cache import KeyValueBackend, KeyspaceClient

logger = logging.getLogger("secureshop.auth.revocation")


class RevocationLedger(KeyspaceClient):
    """Blacklist of revoked session ids."""

    prefix = "blacklist:session:"

    def __init__(self, backend: KeyValueBackend, default_ttl: int, timeout: float = 2.0):
        super().__init__(backend, timeout)
        # Must outlive every token that can carry a revoked session id.
        self.default_ttl = default_ttl

    async def blacklist(self, session_id: str, ttl: Optional[int] = None) -> bool:
        """Mark a session id invalid.

        Returns True if this call added the entry and False if the session was
        already revoked, which lets refresh rotation claim a session exactly once.
        """
        added = await self._call(
            self.backend.set(self._key(session_id), "1", ttl or self.default_ttl, only_if_absent=True),
            "revocation.blacklist",
        )
        if added:
            logger.debug(f"Session {session_id} revoked")
        return added

    async def is_blacklisted(self, session_id: str) -> bool:
        return await self._call(self.backend.exists(self._key(session_id)), "revocation.check")
