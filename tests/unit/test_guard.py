"""Tests for the in-memory rate limiter and response cache."""

import pytest

from medichat.domain.ports.guard import cache_key, seconds_until_reset
from medichat.infrastructure.adapters.memory import InMemoryRateLimiter, InMemoryResponseCache
from tests.conftest import FakeClock

WINDOW_MS = 300_000


class TestRateLimiter:
    """Fixed-window limiter."""

    @pytest.mark.asyncio
    async def test_second_request_in_window_is_denied(self):
        clock = FakeClock(start_ms=WINDOW_MS * 10 + 1_000)
        limiter = InMemoryRateLimiter(limit=1, window_ms=WINDOW_MS, clock=clock)

        first = await limiter.check("visitor-1")
        second = await limiter.check("visitor-1")

        assert first.allowed is True
        assert second.allowed is False
        assert second.reset_seconds == 299

    @pytest.mark.asyncio
    async def test_allowed_again_after_window_boundary(self):
        clock = FakeClock(start_ms=WINDOW_MS * 10 + 250_000)
        limiter = InMemoryRateLimiter(limit=1, window_ms=WINDOW_MS, clock=clock)

        assert (await limiter.check("visitor-1")).allowed
        assert not (await limiter.check("visitor-1")).allowed

        clock.advance(50_000)
        assert (await limiter.check("visitor-1")).allowed

    @pytest.mark.asyncio
    async def test_visitors_are_limited_independently(self):
        limiter = InMemoryRateLimiter(limit=1, window_ms=WINDOW_MS, clock=FakeClock())

        assert (await limiter.check("a")).allowed
        assert (await limiter.check("b")).allowed
        assert not (await limiter.check("a")).allowed

    @pytest.mark.asyncio
    async def test_higher_limit_counts_remaining(self):
        limiter = InMemoryRateLimiter(limit=3, window_ms=WINDOW_MS, clock=FakeClock())

        decisions = [await limiter.check("v") for _ in range(4)]

        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions[:3]] == [2, 1, 0]

    @pytest.mark.asyncio
    async def test_past_windows_are_discarded(self):
        clock = FakeClock(start_ms=0)
        limiter = InMemoryRateLimiter(limit=1, window_ms=WINDOW_MS, clock=clock)

        for visitor in ("a", "b", "c"):
            await limiter.check(visitor)
        assert len(limiter) == 3

        clock.advance(WINDOW_MS)
        await limiter.check("d")
        assert len(limiter) == 1


def test_reset_seconds_rounds_up():
    assert seconds_until_reset(0, WINDOW_MS) == 300
    assert seconds_until_reset(WINDOW_MS - 1, WINDOW_MS) == 1
    assert seconds_until_reset(1_500, WINDOW_MS) == 299


def test_cache_key_ignores_case_and_surrounding_whitespace():
    assert cache_key("h1", "  What Are Your Hours?\n") == "h1:what are your hours?"
    assert cache_key("h1", "x") != cache_key("h2", "x")


class TestResponseCache:
    """TTL reply cache."""

    @pytest.mark.asyncio
    async def test_hit_within_ttl_for_normalized_question(self):
        cache = InMemoryResponseCache(ttl_ms=600_000, clock=FakeClock())
        await cache.set("h1", "Opening hours?", "8 to 6")

        assert await cache.get("h1", "  opening HOURS?  ") == "8 to 6"
        assert await cache.get("h2", "Opening hours?") is None

    @pytest.mark.asyncio
    async def test_expired_entry_is_evicted_on_read(self):
        clock = FakeClock()
        cache = InMemoryResponseCache(ttl_ms=600_000, clock=clock)
        await cache.set("h1", "q", "a")

        clock.advance(600_001)

        assert await cache.get("h1", "q") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_oldest_entry_evicted_when_full(self):
        cache = InMemoryResponseCache(ttl_ms=600_000, max_entries=2, clock=FakeClock())
        await cache.set("h1", "one", "1")
        await cache.set("h1", "two", "2")
        await cache.set("h1", "three", "3")

        assert len(cache) == 2
        assert await cache.get("h1", "one") is None
        assert await cache.get("h1", "three") == "3"
