# cache/__init__.py
"""
Shared key-value store for sessions, revocation entries and rate-limit counters.
"""
import logging

from .core import KeyValueBackend, KeyspaceClient, StoreUnavailable, guarded
from .backends import InMemoryBackend, RedisBackend

logger = logging.getLogger("secureshop.cache")


def create_backend(settings) -> KeyValueBackend:
    """Create the backend selected by ``STORE_BACKEND``."""
    if settings.STORE_BACKEND == "redis":
        if not settings.REDIS_URL:
            raise ValueError("REDIS_URL must be set when STORE_BACKEND is 'redis'")
        logger.info("Using Redis key-value backend")
        return RedisBackend(settings.REDIS_URL, socket_timeout=settings.STORE_TIMEOUT_SECONDS)

    if settings.ENV == "production":
        logger.warning("In-memory key-value backend in production: sessions are not shared between workers")
    return InMemoryBackend()


__all__ = [
    'KeyValueBackend', 'KeyspaceClient', 'StoreUnavailable', 'guarded',
    'InMemoryBackend', 'RedisBackend', 'create_backend',
]
