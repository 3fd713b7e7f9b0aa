import math
import time
from dataclasses import dataclass
from typing import Optional

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter
from redis.asyncio import Redis


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_after: int  # seconds until the window resets


class MemoryRateLimiter:
    """Fixed-window counter per client kept in process memory"""

    backend = "memory"

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.item = RateLimitItemPerSecond(max_requests, window_seconds)
        # Expired windows are dropped by the storage's own expiry timer
        self.storage = MemoryStorage()
        self.strategy = FixedWindowRateLimiter(self.storage)

    async def hit(self, key: str) -> RateLimitResult:
        allowed = self.strategy.hit(self.item, key)
        stats = self.strategy.get_window_stats(self.item, key)

        return RateLimitResult(
            allowed=allowed,
            limit=self.max_requests,
            remaining=stats.remaining,
            reset_after=max(0, math.ceil(stats.reset_time - time.time())),
        )

    async def close(self) -> None:
        self.storage.reset()


class RedisRateLimiter:
    """Fixed-window counter per client shared through Redis"""

    backend = "redis"

    def __init__(self, redis, max_requests: int, window_seconds: int, prefix: str = "rate_limit"):
        self.redis = redis
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.prefix = prefix

    async def hit(self, key: str) -> RateLimitResult:
        redis_key = f"{self.prefix}:{key}"
        requests = await self.redis.incr(redis_key)

        if requests == 1:
            await self.redis.expire(redis_key, self.window_seconds)
            ttl = self.window_seconds
        else:
            ttl = await self.redis.ttl(redis_key)
            if ttl is None or ttl < 0:
                # Key lost its expiry, start the window again
                await self.redis.expire(redis_key, self.window_seconds)
                ttl = self.window_seconds

        return RateLimitResult(
            allowed=requests <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - requests),
            reset_after=int(ttl),
        )

    async def close(self) -> None:
        await self.redis.aclose()


def create_rate_limiter(settings, redis=None):
    """Pick the Redis backend when a client or REDIS_URL is available"""
    if redis is None and settings.REDIS_URL:
        redis = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)

    if redis is not None:
        return RedisRateLimiter(redis, settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_SECONDS)
    return MemoryRateLimiter(settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW_SECONDS)


def client_key(request) -> Optional[str]:
    if request.client is None:
        return None
    return request.client.host
