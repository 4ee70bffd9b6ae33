"""Ports for the guard layer in front of the AI reply path."""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate-limit check."""

    allowed: bool
    remaining: int = 0
    reset_seconds: int = 0


def window_index(now_ms: int, window_ms: int) -> int:
    return now_ms // window_ms


def seconds_until_reset(now_ms: int, window_ms: int) -> int:
    return math.ceil((window_ms - now_ms % window_ms) / 1000)


def cache_key(tenant_id: str, message: str) -> str:
    """Key shared by identical questions (case and surrounding whitespace ignored)."""
    return f"{tenant_id}:{message.strip().lower()}"


class RateLimiter(ABC):
    """Fixed-window request limiter keyed by visitor."""

    @abstractmethod
    async def check(self, visitor_id: str) -> RateLimitDecision:
        """
        Count a request for the visitor's current window.

        Args:
            visitor_id: Visitor/session identifier

        Returns:
            RateLimitDecision; denied requests are not counted
        """
        pass


class ResponseCache(ABC):
    """Short-TTL cache of assistant replies per tenant and question."""

    @abstractmethod
    async def get(self, tenant_id: str, message: str) -> Optional[str]:
        """Return a cached reply younger than the TTL, evicting expired ones."""
        pass

    @abstractmethod
    async def set(self, tenant_id: str, message: str, reply: str) -> None:
        """Store a reply for the normalized question."""
        pass
