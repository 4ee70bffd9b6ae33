from .redis_guard import RedisRateLimiter, RedisResponseCache

__all__ = ["RedisRateLimiter", "RedisResponseCache"]
