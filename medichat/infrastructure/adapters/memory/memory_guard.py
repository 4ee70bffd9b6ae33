"""In-memory rate limiter and response cache for single-instance deployments."""

import logging
import time
from collections import OrderedDict
from typing import Callable, Optional

from medichat.domain.ports import RateLimiter, ResponseCache, RateLimitDecision
from medichat.domain.ports.guard import cache_key, seconds_until_reset, window_index

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class InMemoryRateLimiter(RateLimiter):
    """
    Fixed-window counter per visitor.

    Counters live only in this process; several instances each enforce
    the limit on their own.
    """

    def __init__(
        self,
        limit: int = 1,
        window_ms: int = 300_000,
        clock: Callable[[], int] = now_ms,
    ):
        self.limit = max(1, limit)
        self.window_ms = window_ms
        self._clock = clock
        self._counts: dict[tuple[str, int], int] = {}
        self._current_window: Optional[int] = None

    async def check(self, visitor_id: str) -> RateLimitDecision:
        now = self._clock()
        window = window_index(now, self.window_ms)
        self._drop_past_windows(window)

        key = (visitor_id, window)
        count = self._counts.get(key)
        if count is None:
            self._counts[key] = 1
            return RateLimitDecision(allowed=True, remaining=self.limit - 1)

        if count >= self.limit:
            reset = seconds_until_reset(now, self.window_ms)
            logger.info(f"⛔ Rate limit hit for visitor {visitor_id[:20]} (reset in {reset}s)")
            return RateLimitDecision(allowed=False, reset_seconds=reset)

        self._counts[key] = count + 1
        return RateLimitDecision(allowed=True, remaining=self.limit - count - 1)

    def _drop_past_windows(self, window: int) -> None:
        if self._current_window == window:
            return
        self._current_window = window
        self._counts = {k: v for k, v in self._counts.items() if k[1] >= window}

    def __len__(self) -> int:
        return len(self._counts)


class InMemoryResponseCache(ResponseCache):
    """
    TTL cache of replies keyed by tenant and normalized question.

    Expired entries are evicted on read; `max_entries` bounds memory by
    evicting the oldest insertion first.
    """

    def __init__(
        self,
        ttl_ms: int = 600_000,
        max_entries: int = 10_000,
        clock: Callable[[], int] = now_ms,
    ):
        self.ttl_ms = ttl_ms
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: OrderedDict[str, tuple[str, int]] = OrderedDict()

    async def get(self, tenant_id: str, message: str) -> Optional[str]:
        key = cache_key(tenant_id, message)
        entry = self._entries.get(key)
        if entry is None:
            return None

        reply, created_at = entry
        if self._clock() - created_at > self.ttl_ms:
            del self._entries[key]
            return None
        return reply

    async def set(self, tenant_id: str, message: str, reply: str) -> None:
        key = cache_key(tenant_id, message)
        self._entries.pop(key, None)
        self._entries[key] = (reply, self._clock())
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def __len__(self) -> int:
        return len(self._entries)
