# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""errorhub cache adapter: TTL cache and fixed-window rate limiter."""

__version__ = "0.1.0"

from .cache import Cache, CacheError, InMemoryCache, RedisCache
from .factory import create_cache, create_rate_limiter
from .rate_limiter import (
    InMemoryRateLimiter,
    RateLimitDecision,
    RateLimiter,
    RateLimiterError,
    RedisRateLimiter,
)

__all__ = [
    "__version__",
    # Cache
    "Cache",
    "CacheError",
    "InMemoryCache",
    "RedisCache",
    "create_cache",
    # Rate limiting
    "RateLimitDecision",
    "RateLimiter",
    "RateLimiterError",
    "InMemoryRateLimiter",
    "RedisRateLimiter",
    "create_rate_limiter",
]
