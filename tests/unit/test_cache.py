"""
Unit tests for the key-value store backends.
"""
import asyncio

import pytest

from secureshop.cache import InMemoryBackend, StoreUnavailable, create_backend, guarded


class TestInMemoryBackend:
    """Test cases for the in-memory backend."""

    @pytest.mark.asyncio
    async def test_set_get_delete(self, backend):
        assert await backend.set("k", "v")
        assert await backend.get("k") == "v"
        assert await backend.delete("k") is True
        assert await backend.get("k") is None
        assert await backend.delete("k") is False

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, backend, clock):
        await backend.set("k", "v", ttl=10)
        assert await backend.ttl("k") == 10

        clock.advance(seconds=9)
        assert await backend.exists("k")

        clock.advance(seconds=1)
        assert not await backend.exists("k")
        assert await backend.ttl("k") is None

    @pytest.mark.asyncio
    async def test_only_if_absent(self, backend, clock):
        assert await backend.set("k", "first", ttl=5, only_if_absent=True)
        assert not await backend.set("k", "second", only_if_absent=True)
        assert await backend.get("k") == "first"

        clock.advance(seconds=5)
        assert await backend.set("k", "third", only_if_absent=True)
        assert await backend.get("k") == "third"
        assert await backend.ttl("k") == -1

    @pytest.mark.asyncio
    async def test_expire_only_touches_live_keys(self, backend, clock):
        await backend.set("k", "v", ttl=5)
        assert await backend.expire("k", 60)
        clock.advance(seconds=30)
        assert await backend.get("k") == "v"
        assert not await backend.expire("missing", 60)

    @pytest.mark.asyncio
    async def test_incr_window_sets_ttl_once(self, backend, clock):
        assert await backend.incr_window("c", 60) == (1, 60)
        clock.advance(seconds=20)
        assert await backend.incr_window("c", 60) == (2, 40)

        clock.advance(seconds=40)
        assert await backend.incr_window("c", 60) == (1, 60)

    @pytest.mark.asyncio
    async def test_incr_window_is_atomic_under_concurrency(self, backend):
        results = await asyncio.gather(*(backend.incr_window("c", 60) for _ in range(50)))

        assert sorted(count for count, _ in results) == list(range(1, 51))

    @pytest.mark.asyncio
    async def test_set_members(self, backend, clock):
        await backend.add_member("s", "a", ttl=100)
        await backend.add_member("s", "b", ttl=100)
        await backend.remove_member("s", "a")
        assert await backend.members("s") == {"b"}

        clock.advance(seconds=100)
        assert await backend.members("s") == set()


class TestGuarded:
    """Test cases for bounded store calls."""

    @pytest.mark.asyncio
    async def test_timeout_raises_store_unavailable(self):
        with pytest.raises(StoreUnavailable) as exc_info:
            await guarded(asyncio.sleep(1), timeout=0.01, operation="slow")
        assert exc_info.value.operation == "slow"

    @pytest.mark.asyncio
    async def test_passes_result_through(self, backend):
        await backend.set("k", "v")
        assert await guarded(backend.get("k"), timeout=1, operation="get") == "v"


class TestCreateBackend:
    """Test cases for backend selection."""

    def test_memory_backend_by_default(self, settings):
        assert isinstance(create_backend(settings), InMemoryBackend)

    def test_redis_requires_url(self, settings_factory):
        with pytest.raises(ValueError):
            create_backend(settings_factory(STORE_BACKEND="redis"))
