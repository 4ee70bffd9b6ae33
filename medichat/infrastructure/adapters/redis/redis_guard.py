"""Redis-backed rate limiter and response cache shared across instances."""

import logging
import time
from typing import Callable, Optional

import redis.asyncio as redis

from medichat.domain.ports import RateLimiter, ResponseCache, RateLimitDecision
from medichat.domain.ports.guard import cache_key, seconds_until_reset, window_index

logger = logging.getLogger(__name__)

KEY_PREFIX = "medichat"


def _now_ms() -> int:
    return int(time.time() * 1000)


class RedisRateLimiter(RateLimiter):
    """
    Fixed-window counter stored in Redis.

    INCR creates the counter at 1 and is skipped once the limit is reached;
    the key expires with its window so no cleanup pass is needed.
    """

    def __init__(
        self,
        client: redis.Redis,
        limit: int = 1,
        window_ms: int = 300_000,
        clock: Callable[[], int] = _now_ms,
    ):
        self.client = client
        self.limit = max(1, limit)
        self.window_ms = window_ms
        self._clock = clock

    async def check(self, visitor_id: str) -> RateLimitDecision:
        now = self._clock()
        key = f"{KEY_PREFIX}:rl:{visitor_id}:{window_index(now, self.window_ms)}"

        current = await self.client.get(key)
        if current is not None and int(current) >= self.limit:
            return self._deny(visitor_id, now)

        count = await self.client.incr(key)
        if count == 1:
            await self.client.pexpire(key, self.window_ms)

        # Another instance may have taken the last slot between GET and INCR.
        if count > self.limit:
            return self._deny(visitor_id, now)

        return RateLimitDecision(allowed=True, remaining=self.limit - count)

    def _deny(self, visitor_id: str, now: int) -> RateLimitDecision:
        reset = seconds_until_reset(now, self.window_ms)
        logger.info(f"⛔ Rate limit hit for visitor {visitor_id[:20]} (reset in {reset}s)")
        return RateLimitDecision(allowed=False, reset_seconds=reset)


class RedisResponseCache(ResponseCache):
    """Reply cache with Redis-side expiry."""

    def __init__(self, client: redis.Redis, ttl_ms: int = 600_000):
        self.client = client
        self.ttl_ms = ttl_ms

    async def get(self, tenant_id: str, message: str) -> Optional[str]:
        return await self.client.get(f"{KEY_PREFIX}:cache:{cache_key(tenant_id, message)}")

    async def set(self, tenant_id: str, message: str, reply: str) -> None:
        await self.client.set(
            f"{KEY_PREFIX}:cache:{cache_key(tenant_id, message)}",
            reply,
            px=self.ttl_ms,
        )
