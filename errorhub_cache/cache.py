# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Key/value cache with per-entry expiry."""

import copy
import json
import logging
import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheError(Exception):
    """Raised when the cache backend cannot be reached."""
    pass


class Cache(ABC):
    """Abstract cache of JSON-compatible values keyed by string."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the cached value for ``key``, or None when absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` if present."""
        pass


class InMemoryCache(Cache):
    """Process-local cache for tests and single-instance deployments.

    Values are deep-copied on the way in and out so callers can never mutate
    a cached entry. Expired entries are swept every ``sweep_every`` writes.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, sweep_every: int = 64):
        self._entries: dict[str, tuple[float, Any]] = {}
        self._clock = clock
        self._lock = threading.Lock()
        self._sweep_every = sweep_every
        self._writes = 0

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                logger.debug(f"InMemoryCache: {key} expired")
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        with self._lock:
            now = self._clock()
            self._writes += 1
            if self._writes >= self._sweep_every:
                self._sweep(now)
            self._entries[key] = (now + ttl_seconds, copy.deepcopy(value))
        logger.debug(f"InMemoryCache: stored {key} for {ttl_seconds}s")

    def _sweep(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._writes = 0
        if expired:
            logger.debug(f"InMemoryCache: swept {len(expired)} expired entries")

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop every entry (useful for testing)."""
        with self._lock:
            self._entries.clear()


class RedisCache(Cache):
    """Redis-backed cache; values are stored as JSON strings with SETEX."""

    def __init__(self, client: redis.Redis):
        self._client = client

    @classmethod
    def from_url(cls, redis_url: str, **kwargs) -> "RedisCache":
        """Build a cache over a new client for ``redis_url``."""
        return cls(redis.Redis.from_url(redis_url, decode_responses=True, **kwargs))

    def get(self, key: str) -> Any | None:
        try:
            raw = self._client.get(key)
        except RedisError as e:
            logger.error(f"RedisCache: get {key} failed - {e}")
            raise CacheError(f"Failed to read {key} from Redis") from e
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            self._client.setex(key, ttl_seconds, json.dumps(value))
        except RedisError as e:
            logger.error(f"RedisCache: set {key} failed - {e}")
            raise CacheError(f"Failed to write {key} to Redis") from e

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except RedisError as e:
            raise CacheError(f"Failed to delete {key} from Redis") from e
