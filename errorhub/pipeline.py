# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Ingestion pipeline: validate, fingerprint, persist, aggregate, side effects."""

import dataclasses
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from errorhub_logging import Logger
from errorhub_metrics import MetricsCollector
from errorhub_storage import DocumentStore, DocumentStoreError

from .audit import AuditLog
from .dispatcher import BackgroundDispatcher
from .errors import PersistenceError, ValidationError
from .escalation import CriticalErrorEscalator
from .fingerprint import fingerprint
from .models import (
    DEFAULT_MAX_STACK_LENGTH,
    ERROR_AGGREGATIONS_COLLECTION,
    ERROR_REPORTS_COLLECTION,
    ErrorReport,
    RequestContext,
    Severity,
    build_stored_error,
)
from .validation import validate_report


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def aggregate_update(report: ErrorReport, seen_at: datetime) -> dict[str, Any]:
    """Upsert operators that fold one occurrence into its fingerprint's aggregate.

    ``$min``/``$max`` keep first_seen and last_seen correct regardless of the
    order in which concurrent requests commit.
    """
    return {
        "$inc": {"count": 1},
        "$min": {"first_seen": seen_at},
        "$max": {"last_seen": seen_at},
        "$set": {"message": report.message},
        "$setOnInsert": {
            "module": report.module,
            "severity": report.severity.value,
            "category": report.category.value,
        },
    }


class IngestionPipeline:
    """Turns a submitted payload into a stored, aggregated error report.

    The stored record and the aggregate are two separate writes with no
    rollback: if the aggregate upsert fails the record stays, uncounted,
    and the failure is logged with the error id.
    """

    def __init__(
        self,
        store: DocumentStore,
        dispatcher: BackgroundDispatcher,
        audit_log: AuditLog,
        escalator: CriticalErrorEscalator,
        logger: Logger,
        metrics: MetricsCollector | None = None,
        clock: Callable[[], datetime] = _utcnow,
        max_stack_length: int = DEFAULT_MAX_STACK_LENGTH,
    ):
        self.store = store
        self.dispatcher = dispatcher
        self.audit_log = audit_log
        self.escalator = escalator
        self.logger = logger
        self.metrics = metrics
        self.clock = clock
        self.max_stack_length = max_stack_length

    def ingest(self, payload: Any, context: RequestContext) -> str:
        """Ingest one error report.

        Args:
            payload: Decoded JSON request body
            context: Request facts (client IP, User-Agent header)

        Returns:
            The new error id

        Raises:
            ValidationError: Payload does not match the schema; nothing was written
            PersistenceError: A storage write failed
        """
        start_time = time.monotonic()

        result = validate_report(payload, max_stack_length=self.max_stack_length)
        if not result.success:
            self._record_failure("validation")
            raise ValidationError("Invalid error report data", details={"errors": result.errors})

        report = result.report
        if context.user_id is None and report.user_id is not None:
            context = dataclasses.replace(context, user_id=str(report.user_id))

        error_fingerprint = fingerprint(report)
        now = self.clock()
        error_id = str(uuid.uuid4())

        try:
            self.store.insert_document(
                ERROR_REPORTS_COLLECTION,
                build_stored_error(report, error_id, error_fingerprint, context, now),
            )
        except DocumentStoreError as e:
            self.logger.error(
                "Failed to store error report",
                error=str(e),
                fingerprint=error_fingerprint,
                module=report.module,
                exc_info=True,
            )
            self._record_failure("store")
            raise PersistenceError("Failed to store error report") from e

        try:
            self.store.upsert_document(
                ERROR_AGGREGATIONS_COLLECTION,
                {"fingerprint": error_fingerprint},
                aggregate_update(report, now),
            )
        except DocumentStoreError as e:
            self.logger.error(
                "Stored error report but failed to update its aggregate",
                error=str(e),
                error_id=error_id,
                fingerprint=error_fingerprint,
                exc_info=True,
            )
            self._record_failure("aggregate")
            raise PersistenceError("Failed to update error aggregation") from e

        self.dispatcher.submit("audit", self.audit_log.error_reported, report, error_id, error_fingerprint, context)
        if report.severity is Severity.CRITICAL:
            self.dispatcher.submit("escalation", self.escalator.escalate, report, error_id, error_fingerprint)

        duration = time.monotonic() - start_time
        self.logger.info(
            "Error reported",
            error_id=error_id,
            fingerprint=error_fingerprint,
            severity=report.severity.value,
            category=report.category.value,
            module=report.module,
            duration_seconds=duration,
        )
        if self.metrics:
            self.metrics.increment(
                "error_reports_ingested_total",
                tags={"severity": report.severity.value, "category": report.category.value},
            )
            self.metrics.observe("error_report_ingest_duration_seconds", duration)

        return error_id

    def _record_failure(self, stage: str) -> None:
        if self.metrics:
            self.metrics.increment("error_reports_failed_total", tags={"stage": stage})
