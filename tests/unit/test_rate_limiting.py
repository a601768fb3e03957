"""
Unit tests for fixed-window rate limiting.
"""
import pytest

from secureshop.auth import RateLimiter, login_key, password_reset_key


@pytest.fixture
def limiter(backend) -> RateLimiter:
    return RateLimiter(backend)


class TestRateLimiter:
    """Test cases for the rate limiter."""

    @pytest.mark.asyncio
    async def test_allows_up_to_limit(self, limiter):
        results = [await limiter.check("login:1.2.3.4:a@b.c", 5, 900) for _ in range(6)]

        assert [r.allowed for r in results] == [True] * 5 + [False]
        assert results[0].remaining == 4
        assert results[4].remaining == 0
        assert results[5].retry_after == 900

    @pytest.mark.asyncio
    async def test_retry_after_counts_down(self, limiter, clock):
        for _ in range(5):
            await limiter.check("k", 5, 900)
        clock.advance(seconds=300)

        result = await limiter.check("k", 5, 900)

        assert not result.allowed
        assert result.retry_after == 600

    @pytest.mark.asyncio
    async def test_window_resets(self, limiter, clock):
        for _ in range(6):
            await limiter.check("k", 5, 900)

        clock.advance(seconds=900)

        assert (await limiter.check("k", 5, 900)).allowed

    @pytest.mark.asyncio
    async def test_keys_are_independent(self, limiter):
        for _ in range(5):
            await limiter.check(login_key("1.1.1.1", "a@example.com"), 5, 900)

        assert not (await limiter.check(login_key("1.1.1.1", "a@example.com"), 5, 900)).allowed
        assert (await limiter.check(login_key("1.1.1.1", "b@example.com"), 5, 900)).allowed
        assert (await limiter.check(login_key("2.2.2.2", "a@example.com"), 5, 900)).allowed

    @pytest.mark.asyncio
    async def test_boundary_burst_allows_twice_the_limit(self, limiter, clock):
        """Fixed windows admit up to 2x the limit across a window edge."""
        await limiter.check("k", 5, 900)
        clock.advance(seconds=899)
        late = [await limiter.check("k", 5, 900) for _ in range(4)]
        clock.advance(seconds=1)
        early = [await limiter.check("k", 5, 900) for _ in range(5)]

        assert all(r.allowed for r in late + early)


def test_key_helpers():
    assert login_key("10.0.0.1", " Shopper@Example.com ") == "login:10.0.0.1:shopper@example.com"
    assert password_reset_key("10.0.0.1") == "password-reset:10.0.0.1"
