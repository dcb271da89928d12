# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Windowed error statistics served from a TTL cache."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

from errorhub_cache import Cache, CacheError
from errorhub_logging import Logger
from errorhub_metrics import MetricsCollector
from errorhub_storage import DocumentStore, DocumentStoreError

from . import queries
from .errors import NotFoundError, PersistenceError
from .models import ERROR_REPORTS_COLLECTION, serialize_document
from .time_range import DEFAULT_TIME_RANGE, HOUR_MS, window_start

STATS_CACHE_PREFIX = "error_stats:"
DEFAULT_CACHE_TTL_SECONDS = 300


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


class StatisticsEngine:
    """Computes error statistics and point lookups.

    Results are cached per raw time range string; a cached entry is returned
    as-is until it expires, even if new reports arrive meanwhile.
    """

    def __init__(
        self,
        store: DocumentStore,
        cache: Cache,
        logger: Logger,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = _utcnow,
        cache_ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        self.store = store
        self.cache = cache
        self.logger = logger
        self.metrics = metrics
        self.clock = clock
        self.cache_ttl_seconds = cache_ttl_seconds

    def get_stats(self, time_range: str = DEFAULT_TIME_RANGE) -> dict[str, Any]:
        """Return statistics for the window ending now.

        Raises:
            PersistenceError: If any query fails; partial results are never returned
        """
        cache_key = f"{STATS_CACHE_PREFIX}{time_range}"

        cached = self._cache_get(cache_key)
        if cached is not None:
            self._count_cache("hit")
            return cached
        self._count_cache("miss")

        now = self.clock()
        since = window_start(now, time_range)
        hour_ago = now - timedelta(milliseconds=HOUR_MS)

        try:
            total = self._count(queries.count_since(since, "total"), "total")
            by_field = {
                field: self._breakdown(field, since) for field in queries.BREAKDOWN_FIELDS
            }
            top_rows = self.store.aggregate_documents(ERROR_REPORTS_COLLECTION, queries.top_errors(since))
            recent = self._count(queries.count_since(hour_ago, "recent"), "recent")
        except DocumentStoreError as e:
            self.logger.error(
                "Failed to get error statistics",
                error=str(e),
                time_range=time_range,
                exc_info=True,
            )
            raise PersistenceError("Failed to retrieve error statistics", details={"timeRange": time_range}) from e

        stats = {
            "totalErrors": total,
            "errorsByCategory": by_field["category"],
            "errorsBySeverity": by_field["severity"],
            "errorsByModule": by_field["module"],
            "recentErrorRate": recent,
            "topErrors": [
                {
                    "fingerprint": row["_id"],
                    "count": row["count"],
                    "firstSeen": _iso(row.get("first_seen")),
                    "lastSeen": _iso(row.get("last_seen")),
                    "message": row.get("message"),
                    "module": row.get("module"),
                    "severity": row.get("severity"),
                    "category": row.get("category"),
                }
                for row in top_rows
            ],
            "timeRange": time_range,
            "generatedAt": now.isoformat(),
        }

        self._cache_set(cache_key, stats)
        return stats

    def get_error_by_id(self, error_id: str) -> dict[str, Any]:
        """Fetch one stored error report, uncached.

        Raises:
            NotFoundError: If no report has that id
            PersistenceError: If the lookup fails
        """
        try:
            doc = self.store.get_document(ERROR_REPORTS_COLLECTION, error_id)
        except DocumentStoreError as e:
            self.logger.error("Failed to get error details", error=str(e), error_id=error_id, exc_info=True)
            raise PersistenceError("Failed to get error details", details={"errorId": error_id}) from e

        if doc is None:
            raise NotFoundError("Error report not found", details={"errorId": error_id})
        return serialize_document(doc)

    def _count(self, pipeline: list[dict[str, Any]], field: str) -> int:
        rows = self.store.aggregate_documents(ERROR_REPORTS_COLLECTION, pipeline)
        return int(rows[0][field]) if rows else 0

    def _breakdown(self, field: str, since: datetime) -> dict[str, int]:
        rows = self.store.aggregate_documents(ERROR_REPORTS_COLLECTION, queries.counts_by_field(field, since))
        # dicts keep insertion order, so the mapping stays sorted by count
        return {str(row["_id"]): int(row["count"]) for row in rows}

    def _cache_get(self, key: str) -> dict[str, Any] | None:
        try:
            return self.cache.get(key)
        except CacheError as e:
            self.logger.warning("Stats cache read failed, computing fresh", key=key, error=str(e))
            return None

    def _cache_set(self, key: str, value: dict[str, Any]) -> None:
        try:
            self.cache.set(key, value, self.cache_ttl_seconds)
        except CacheError as e:
            self.logger.warning("Stats cache write failed", key=key, error=str(e))

    def _count_cache(self, result: str) -> None:
        if self.metrics:
            self.metrics.increment("error_stats_cache_total", tags={"result": result})
