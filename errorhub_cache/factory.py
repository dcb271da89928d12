# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory functions for caches and rate limiters."""

from .cache import Cache, InMemoryCache, RedisCache
from .rate_limiter import InMemoryRateLimiter, RateLimiter, RedisRateLimiter


def create_cache(cache_type: str = "inmemory", redis_url: str | None = None) -> Cache:
    """Create a cache for ``cache_type`` ("inmemory" or "redis").

    Raises:
        ValueError: If the type is unknown or redis is chosen without a URL
    """
    if cache_type == "inmemory":
        return InMemoryCache()
    elif cache_type == "redis":
        if not redis_url:
            raise ValueError("redis_url is required for the redis cache")
        return RedisCache.from_url(redis_url)
    raise ValueError(f"Unknown cache_type: {cache_type}. Must be one of: inmemory, redis")


def create_rate_limiter(rate_limiter_type: str = "inmemory", redis_url: str | None = None) -> RateLimiter:
    """Create a rate limiter for ``rate_limiter_type`` ("inmemory" or "redis").

    Raises:
        ValueError: If the type is unknown or redis is chosen without a URL
    """
    if rate_limiter_type == "inmemory":
        return InMemoryRateLimiter()
    elif rate_limiter_type == "redis":
        if not redis_url:
            raise ValueError("redis_url is required for the redis rate limiter")
        return RedisRateLimiter.from_url(redis_url)
    raise ValueError(
        f"Unknown rate_limiter_type: {rate_limiter_type}. Must be one of: inmemory, redis"
    )
