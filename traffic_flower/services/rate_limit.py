"""Sliding window rate limiting for the signup endpoints, shared through Redis."""

import logging
import math
import time
import uuid

import redis

from traffic_flower.config import get_settings
from traffic_flower.exceptions import RateLimitError

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per key inside a rolling window.

    Each key is a Redis sorted set of hit timestamps, so every worker sees
    the same window. Keys expire after one window of inactivity.
    """

    def __init__(
        self,
        name: str,
        limit: int,
        window_seconds: float,
        message: str,
        client: redis.Redis | None = None,
    ) -> None:
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message
        self.client = client

    def _get_redis(self) -> redis.Redis:
        if self.client is None:
            self.client = redis.from_url(get_settings().redis_url)
        return self.client

    def redis_key(self, key: str) -> str:
        """Redis key holding the window for ``key``."""
        return f"rate_limit:{self.name}:{key}"

    def hit(self, key: str, now: float | None = None) -> None:
        """Record an attempt for ``key`` or raise RateLimitError when over the limit.

        When Redis is unreachable the attempt is let through.
        """
        now = time.time() if now is None else now
        redis_key = self.redis_key(key)
        member = f"{now}:{uuid.uuid4().hex}"

        try:
            client = self._get_redis()
            pipe = client.pipeline()
            pipe.zremrangebyscore(redis_key, "-inf", now - self.window_seconds)
            pipe.zadd(redis_key, {member: now})
            pipe.zcard(redis_key)
            pipe.expire(redis_key, math.ceil(self.window_seconds))
            _, _, count, _ = pipe.execute()

            if count > self.limit:
                # Rejected attempts do not extend the window
                client.zrem(redis_key, member)
        except redis.RedisError as e:
            logger.error(f"Rate limit '{self.name}' unavailable, allowing request: {e}")
            return

        if count > self.limit:
            logger.warning(f"Rate limit '{self.name}' exceeded for {key}")
            raise RateLimitError(self.message)

    def remaining(self, key: str, now: float | None = None) -> int:
        """Attempts left for ``key`` in the current window."""
        now = time.time() if now is None else now
        redis_key = self.redis_key(key)

        pipe = self._get_redis().pipeline()
        pipe.zremrangebyscore(redis_key, "-inf", now - self.window_seconds)
        pipe.zcard(redis_key)
        _, count = pipe.execute()
        return max(self.limit - count, 0)
