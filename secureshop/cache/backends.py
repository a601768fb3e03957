# cache/backends.py
"""Key-value backend implementations."""

import logging
import time
from typing import Callable, Dict, Optional, Set, Tuple, Union

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from .core import KeyValueBackend, StoreUnavailable

logger = logging.getLogger("secureshop.cache.backends")


class InMemoryBackend(KeyValueBackend):
    """In-memory backend using dictionaries.

    Expiry is enforced lazily on access, so no background sweep task is
    needed. Every method completes without yielding to the event loop, which
    makes each operation atomic with respect to other coroutines.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, **config):
        super().__init__(**config)
        self._clock = clock
        self._data: Dict[str, Union[str, int, Set[str]]] = {}
        self._expiry: Dict[str, float] = {}

    def _expired(self, key: str) -> bool:
        exp_time = self._expiry.get(key)
        if exp_time is not None and exp_time <= self._clock():
            self._data.pop(key, None)
            self._expiry.pop(key, None)
            return True
        return key not in self._data

    def _apply_ttl(self, key: str, ttl: Optional[int]) -> None:
        if ttl is not None:
            self._expiry[key] = self._clock() + ttl
        else:
            self._expiry.pop(key, None)

    async def get(self, key: str) -> Optional[str]:
        """Get value from in-memory store."""
        if self._expired(key):
            return None
        value = self._data[key]
        return str(value) if isinstance(value, int) else value

    async def set(self, key, value, ttl=None, *, only_if_absent=False) -> bool:
        """Set value in in-memory store."""
        if only_if_absent and not self._expired(key):
            return False
        self._data[key] = value
        self._apply_ttl(key, ttl)
        return True

    async def delete(self, key: str) -> bool:
        """Delete key from in-memory store."""
        present = not self._expired(key)
        self._data.pop(key, None)
        self._expiry.pop(key, None)
        return present

    async def exists(self, key: str) -> bool:
        return not self._expired(key)

    async def expire(self, key: str, ttl: int) -> bool:
        if self._expired(key):
            return False
        self._apply_ttl(key, ttl)
        return True

    async def ttl(self, key: str) -> Optional[int]:
        if self._expired(key):
            return None
        if key not in self._expiry:
            return -1  # No expiration
        remaining = self._expiry[key] - self._clock()
        return int(remaining) if remaining > 0 else 0

    async def incr_window(self, key: str, window_seconds: int) -> Tuple[int, int]:
        if self._expired(key):
            self._data[key] = 0
        count = int(self._data[key]) + 1
        self._data[key] = count
        if key not in self._expiry:
            self._apply_ttl(key, window_seconds)
        return count, await self.ttl(key)

    async def add_member(self, key: str, member: str, ttl: Optional[int] = None) -> None:
        if self._expired(key):
            self._data[key] = set()
        self._data[key].add(member)
        if ttl is not None:
            self._apply_ttl(key, ttl)

    async def remove_member(self, key: str, member: str) -> None:
        if not self._expired(key):
            self._data[key].discard(member)

    async def members(self, key: str) -> Set[str]:
        if self._expired(key):
            return set()
        return set(self._data[key])

    async def ping(self) -> bool:
        return True

    async def close(self):
        self._data.clear()
        self._expiry.clear()


# KEYS[1] counter key, ARGV[1] window in seconds.
# The TTL is only set when the counter has none, i.e. on its first increment.
_INCR_WINDOW_SCRIPT = """
local count = redis.call('INCR', KEYS[1])
local ttl = redis.call('TTL', KEYS[1])
if ttl < 0 then
    redis.call('EXPIRE', KEYS[1], ARGV[1])
    ttl = tonumber(ARGV[1])
end
return {count, ttl}
"""


class RedisBackend(KeyValueBackend):
    """Redis backend."""

    def __init__(self, url: str = "redis://localhost:6379", socket_timeout: float = 2.0, **config):
        super().__init__(**config)
        self.url = url
        self.redis = aioredis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
        )
        self._incr_window = self.redis.register_script(_INCR_WINDOW_SCRIPT)

    async def _run(self, operation: str, awaitable):
        try:
            return await awaitable
        except RedisError as e:
            logger.critical(f"Redis error during {operation}: {e}")
            raise StoreUnavailable(operation, e) from e

    async def get(self, key: str) -> Optional[str]:
        """Get value from Redis."""
        return await self._run("get", self.redis.get(key))

    async def set(self, key, value, ttl=None, *, only_if_absent=False) -> bool:
        """Set value in Redis."""
        result = await self._run("set", self.redis.set(key, value, ex=ttl, nx=only_if_absent))
        return bool(result)

    async def delete(self, key: str) -> bool:
        """Delete key from Redis."""
        result = await self._run("delete", self.redis.delete(key))
        return result > 0

    async def exists(self, key: str) -> bool:
        result = await self._run("exists", self.redis.exists(key))
        return result > 0

    async def expire(self, key: str, ttl: int) -> bool:
        return bool(await self._run("expire", self.redis.expire(key, ttl)))

    async def ttl(self, key: str) -> Optional[int]:
        result = await self._run("ttl", self.redis.ttl(key))
        # -2: missing, -1: no expiry
        return None if result == -2 else result

    async def incr_window(self, key: str, window_seconds: int) -> Tuple[int, int]:
        count, ttl = await self._run(
            "incr_window", self._incr_window(keys=[key], args=[window_seconds])
        )
        return int(count), int(ttl)

    async def add_member(self, key: str, member: str, ttl: Optional[int] = None) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.sadd(key, member)
            if ttl is not None:
                pipe.expire(key, ttl)
            await self._run("add_member", pipe.execute())

    async def remove_member(self, key: str, member: str) -> None:
        await self._run("remove_member", self.redis.srem(key, member))

    async def members(self, key: str) -> Set[str]:
        return set(await self._run("members", self.redis.smembers(key)))

    async def ping(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except RedisError:
            return False

    async def close(self):
        """Close Redis connection."""
        await self.redis.aclose()
