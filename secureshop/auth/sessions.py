# auth/sessions.py
"""
Session registry backed by the shared key-value store.

A session lives exactly as long as its store entry; expiry is enforced by the
store's TTL, so there is no sweep. A per-account index of session ids makes
"log out everywhere" possible without scanning the keyspace.
"""
import json
import logging
from datetime import datetime
from typing import Optional, Set

from pydantic import BaseModel

from ..cache import KeyValueBackend, KeyspaceClient

logger = logging.getLogger("secureshop.auth.sessions")


class SessionMetadata(BaseModel):
    """Session information stored under the session id."""
    account_id: int
    created_at: datetime
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    ttl_seconds: int
    remember_me: bool = False


class SessionConflict(Exception):
    """Raised when a session id is already registered."""


class SessionRegistry(KeyspaceClient):
    """Session management service."""

    prefix = "session:"

    def __init__(self, backend: KeyValueBackend, index_ttl: int, timeout: float = 2.0):
        super().__init__(backend, timeout)
        # Longest session lifetime, so the index never expires before a listed session.
        self.index_ttl = index_ttl

    def _index_key(self, account_id: int) -> str:
        return f"account_sessions:{account_id}"

    async def create(self, session_id: str, metadata: SessionMetadata, ttl: int) -> None:
        """Register a new session. Existing entries are never overwritten."""
        created = await self._call(
            self.backend.set(self._key(session_id), metadata.model_dump_json(), ttl, only_if_absent=True),
            "session.create",
        )
        if not created:
            raise SessionConflict(f"Session {session_id} already exists")
        # Stale ids left in the index are harmless.
        await self._call(
            self.backend.add_member(self._index_key(metadata.account_id), session_id, self.index_ttl),
            "session.index",
        )

    async def get(self, session_id: str) -> Optional[SessionMetadata]:
        """Return metadata, or None if the session expired or never existed."""
        raw = await self._call(self.backend.get(self._key(session_id)), "session.get")
        if raw is None:
            return None
        try:
            return SessionMetadata.model_validate(json.loads(raw))
        except (ValueError, TypeError):
            logger.error(f"Discarding unreadable session entry {session_id}")
            return None

    async def delete(self, session_id: str, account_id: Optional[int] = None) -> None:
        """Remove a session. Idempotent."""
        await self._call(self.backend.delete(self._key(session_id)), "session.delete")
        if account_id is not None:
            await self._call(
                self.backend.remove_member(self._index_key(account_id), session_id),
                "session.unindex",
            )

    async def extend(self, session_id: str, ttl: int) -> bool:
        """Push back the expiry of a live session without changing its content."""
        return await self._call(self.backend.expire(self._key(session_id), ttl), "session.extend")

    async def account_sessions(self, account_id: int) -> Set[str]:
        """Session ids recorded for an account (may include already-expired ids)."""
        return await self._call(self.backend.members(self._index_key(account_id)), "session.list")
