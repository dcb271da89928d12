# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Fixed-window rate limiting keyed by arbitrary strings."""

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class RateLimiterError(Exception):
    """Raised when the rate limiter backend cannot be reached."""
    pass


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one check-and-increment."""
    allowed: bool
    limit: int
    remaining: int
    retry_after_seconds: int


class RateLimiter(ABC):
    """Counts hits per key inside a fixed window."""

    @abstractmethod
    def check(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        """Record one hit for ``key`` and report whether it is within ``limit``.

        The count and the decision are computed atomically, so concurrent
        callers sharing a key can never collectively exceed the limit.
        """
        pass


class InMemoryRateLimiter(RateLimiter):
    """Single-process rate limiter guarded by a lock.

    Expired windows are swept every ``sweep_every`` checks, so keys that stop
    arriving do not stay resident.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 256):
        self._windows: dict[str, tuple[float, int]] = {}
        self._clock = clock
        self._lock = threading.Lock()
        self._sweep_every = sweep_every
        self._checks = 0

    def check(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        with self._lock:
            now = self._clock()
            self._checks += 1
            if self._checks >= self._sweep_every:
                self._sweep(now)
            expires_at, count = self._windows.get(key, (now + window_seconds, 0))
            if now >= expires_at:
                expires_at, count = now + window_seconds, 0
            count += 1
            self._windows[key] = (expires_at, count)

        retry_after = max(1, math.ceil(expires_at - now))
        return RateLimitDecision(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            retry_after_seconds=retry_after,
        )

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._windows.items() if now >= expires_at]
        for key in expired:
            del self._windows[key]
        self._checks = 0
        if expired:
            logger.debug(f"InMemoryRateLimiter: swept {len(expired)} expired windows")

    def reset(self) -> None:
        """Forget every window (useful for testing)."""
        with self._lock:
            self._windows.clear()


class RedisRateLimiter(RateLimiter):
    """Rate limiter shared across instances via Redis INCR and EXPIRE."""

    def __init__(self, client: redis.Redis, prefix: str = "ratelimit:"):
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, redis_url: str, **kwargs) -> "RedisRateLimiter":
        """Build a limiter over a new client for ``redis_url``."""
        return cls(redis.Redis.from_url(redis_url, decode_responses=True, **kwargs))

    def check(self, key: str, limit: int, window_seconds: int) -> RateLimitDecision:
        redis_key = f"{self._prefix}{key}"
        try:
            count = int(self._client.incr(redis_key))
            if count == 1:
                self._client.expire(redis_key, window_seconds)
                ttl = window_seconds
            else:
                ttl = int(self._client.ttl(redis_key))
                if ttl < 0:
                    # A crash between INCR and EXPIRE leaves a key with no expiry
                    self._client.expire(redis_key, window_seconds)
                    ttl = window_seconds
        except RedisError as e:
            logger.error(f"RedisRateLimiter: check {redis_key} failed - {e}")
            raise RateLimiterError(f"Failed to check rate limit for {key}") from e

        return RateLimitDecision(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            retry_after_seconds=max(1, ttl),
        )
