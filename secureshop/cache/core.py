# cache/core.py
"""Core key-value store abstractions shared by sessions, revocation and rate limiting."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, List, Optional, Set, Tuple, TypeVar

logger = logging.getLogger("secureshop.cache")

T = TypeVar("T")


class StoreUnavailable(Exception):
    """Raised when the shared store cannot be reached or does not answer in time."""

    def __init__(self, operation: str, original_exception: Optional[BaseException] = None):
        self.operation = operation
        self.original_exception = original_exception
        super().__init__(f"Key-value store unavailable during '{operation}'")


class KeyValueBackend(ABC):
    """Abstract base class for shared key-value backends.

    All synchronization between concurrent requests is delegated to the
    atomic primitives exposed here; callers never read-modify-write.
    """

    def __init__(self, **config):
        self.config = config

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get value for key, or None if missing or expired."""

    @abstractmethod
    async def set(
        self,
        key: str,
        value: str,
        ttl: Optional[int] = None,
        *,
        only_if_absent: bool = False,
    ) -> bool:
        """Set value with optional TTL. With ``only_if_absent`` returns False if the key exists."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete key. Returns True if something was removed."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if key exists."""

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """Reset the TTL of an existing key. Returns False if the key is missing."""

    @abstractmethod
    async def ttl(self, key: str) -> Optional[int]:
        """Remaining TTL in seconds, -1 for no expiry, None if missing."""

    @abstractmethod
    async def incr_window(self, key: str, window_seconds: int) -> Tuple[int, int]:
        """Atomically increment a counter, setting its TTL only when it is created.

        Returns ``(count, ttl_remaining)``.
        """

    @abstractmethod
    async def add_member(self, key: str, member: str, ttl: Optional[int] = None) -> None:
        """Add member to the set stored at key."""

    @abstractmethod
    async def remove_member(self, key: str, member: str) -> None:
        """Remove member from the set stored at key."""

    @abstractmethod
    async def members(self, key: str) -> Set[str]:
        """Return the members of the set stored at key."""

    @abstractmethod
    async def ping(self) -> bool:
        """Check connectivity."""

    @abstractmethod
    async def close(self):
        """Close backend connections."""


async def guarded(awaitable: Awaitable[T], timeout: float, operation: str) -> T:
    """Await a store call with a bounded timeout.

    Timeouts and backend failures surface as StoreUnavailable so callers
    enforcing revocation can fail closed.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except StoreUnavailable:
        raise
    except asyncio.TimeoutError as e:
        logger.error(f"Store call '{operation}' timed out after {timeout}s")
        raise StoreUnavailable(operation, e) from e


class KeyspaceClient:
    """Base for components that own a key prefix in a shared backend."""

    prefix: str = ""

    def __init__(self, backend: KeyValueBackend, timeout: float = 2.0):
        self.backend = backend
        self.timeout = timeout

    def _key(self, *parts: Any) -> str:
        return self.prefix + ":".join(str(p) for p in parts)

    async def _call(self, awaitable: Awaitable[T], operation: str) -> T:
        return await guarded(awaitable, self.timeout, operation)


__all__ = ['StoreUnavailable', 'KeyValueBackend', 'KeyspaceClient', 'guarded']
