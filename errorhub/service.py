# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Service container wiring the pipeline, statistics and access control together."""

from typing import Any

from errorhub_auth import AuthenticationError, Authenticator, PermissionDeniedError, Principal
from errorhub_cache import RateLimitDecision, RateLimiter, RateLimiterError
from errorhub_logging import Logger
from errorhub_metrics import MetricsCollector
from errorhub_storage import DocumentStore, DocumentStoreError

from .audit import AuditLog
from .dispatcher import BackgroundDispatcher
from .errors import AuthError, PersistenceError
from .models import ERROR_AGGREGATIONS_COLLECTION, RequestContext
from .pipeline import IngestionPipeline
from .stats import StatisticsEngine

READ_STATS_PERMISSION = "read:error-stats"
RATE_LIMIT_KEY_PREFIX = "error-reporting:"


class ErrorReportingService:
    """Everything one running instance needs, injected by the caller.

    Tests build this from in-memory drivers; ``errorhub.main.build_service``
    builds it from configuration.
    """

    def __init__(
        self,
        store: DocumentStore,
        pipeline: IngestionPipeline,
        stats: StatisticsEngine,
        authenticator: Authenticator,
        rate_limiter: RateLimiter,
        audit_log: AuditLog,
        dispatcher: BackgroundDispatcher,
        logger: Logger,
        metrics: MetricsCollector | None = None,
        rate_limit_requests: int = 30,
        rate_limit_window_seconds: int = 60,
    ):
        self.store = store
        self.pipeline = pipeline
        self.stats = stats
        self.authenticator = authenticator
        self.rate_limiter = rate_limiter
        self.audit_log = audit_log
        self.dispatcher = dispatcher
        self.logger = logger
        self.metrics = metrics
        self.rate_limit_requests = rate_limit_requests
        self.rate_limit_window_seconds = rate_limit_window_seconds
        self._started = False

    def start(self) -> None:
        """Connect storage, ensure indexes and start background work."""
        if self._started:
            return
        self.store.connect()
        self.store.ensure_unique_index(ERROR_AGGREGATIONS_COLLECTION, "fingerprint")
        self.dispatcher.start()
        self._started = True
        self.logger.info("Error reporting service started")

    def stop(self) -> None:
        """Drain background work and disconnect storage."""
        if not self._started:
            return
        self.dispatcher.stop()
        self.store.disconnect()
        self._started = False
        self.logger.info("Error reporting service stopped")

    def is_ready(self) -> bool:
        return self._started and self.dispatcher.is_running()

    def check_rate_limit(self, client_ip: str) -> RateLimitDecision | None:
        """Count one request from ``client_ip``.

        Returns None when the limiter backend is unavailable; the request is
        then let through and the outage is logged.
        """
        try:
            decision = self.rate_limiter.check(
                f"{RATE_LIMIT_KEY_PREFIX}{client_ip}",
                self.rate_limit_requests,
                self.rate_limit_window_seconds,
            )
        except RateLimiterError as e:
            self.logger.error("Rate limiter unavailable, allowing request", client_ip=client_ip, error=str(e))
            if self.metrics:
                self.metrics.increment("rate_limiter_errors_total")
            return None

        if not decision.allowed:
            self.logger.warning("Rate limit exceeded", client_ip=client_ip)
            if self.metrics:
                self.metrics.increment("rate_limit_rejections_total")
        return decision

    def ingest(self, payload: Any, context: RequestContext) -> str:
        return self.pipeline.ingest(payload, context)

    def authorize_stats_read(self, authorization: str | None, api_key: str | None) -> Principal:
        """Authenticate the caller and require the stats read permission.

        Raises:
            AuthError: 401 for missing/invalid credentials, 403 for missing permission
            PersistenceError: If the API key lookup fails
        """
        try:
            principal = self.authenticator.authenticate(authorization, api_key)
            self.authenticator.authorize(principal, READ_STATS_PERMISSION)
        except AuthenticationError as e:
            raise AuthError(str(e)) from e
        except PermissionDeniedError as e:
            raise AuthError.forbidden(str(e), details={"requiredPermission": e.required_permission}) from e
        except DocumentStoreError as e:
            self.logger.error("Failed to look up API key", error=str(e), exc_info=True)
            raise PersistenceError("Failed to verify credentials") from e
        return principal

    def read_stats(
        self,
        principal: Principal,
        client_ip: str,
        time_range: str,
        error_id: str | None = None,
    ) -> dict[str, Any]:
        """Serve a single error (``error_id``) or the aggregate statistics, then audit the access."""
        if error_id:
            data = self.stats.get_error_by_id(error_id)
        else:
            data = self.stats.get_stats(time_range)

        query = {"errorId": error_id} if error_id else {"timeRange": time_range}
        self.dispatcher.submit(
            "audit", self.audit_log.error_stats_accessed, principal.id, client_ip, error_id, query
        )
        return data
