"""
Security utilities: password hashing and secure random identifiers.
"""
import asyncio
import hashlib
import secrets

from passlib.context import CryptContext


def generate_token(nbytes: int = 32) -> str:
    """Generate a secure random URL-safe token."""
    return secrets.token_urlsafe(nbytes)


def generate_session_id() -> str:
    """Generate an opaque, non-sequential session identifier."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """SHA-256 digest of a token, for storing lookups without the token itself."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class PasswordHasher:
    """bcrypt hashing with async verification.

    bcrypt is CPU-bound, so verification runs in a worker thread to keep the
    event loop responsive under concurrent logins.
    """

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )
        # Verified against when the account does not exist, so unknown emails
        # cost the same as wrong passwords.
        self._dummy_hash = self.context.hash(secrets.token_urlsafe(16))

    def hash(self, password: str) -> str:
        """Generate a password hash."""
        return self.context.hash(password)

    async def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a hash."""
        return await asyncio.to_thread(self.context.verify, plain_password, hashed_password)

    async def dummy_verify(self, plain_password: str) -> bool:
        """Run an equivalent-cost verification whose result is discarded."""
        await self.verify(plain_password, self._dummy_hash)
        return False
