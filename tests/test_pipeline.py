# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the ingestion pipeline."""

import threading
from unittest.mock import patch

import pytest

from errorhub.errors import PersistenceError, ValidationError
from errorhub.escalation import CRITICAL_MESSAGE
from errorhub.models import (
    AUDIT_LOGS_COLLECTION,
    ERROR_AGGREGATIONS_COLLECTION,
    ERROR_REPORTS_COLLECTION,
    RequestContext,
)
from errorhub_storage import DocumentStoreError
from tests.fixtures import create_valid_report

CONTEXT = RequestContext(ip_address="203.0.113.7", user_agent="pytest-agent")


def _aggregates(store):
    return store.query_documents(ERROR_AGGREGATIONS_COLLECTION, {})


class TestIngest:
    """Tests for the happy path."""

    def test_stores_report(self, pipeline, store, clock):
        error_id = pipeline.ingest(create_valid_report(), CONTEXT)

        stored = store.get_document(ERROR_REPORTS_COLLECTION, error_id)
        assert stored["id"] == error_id
        assert stored["message"] == "Payment failed for order 1234"
        assert stored["function_name"] == "charge_card"
        assert stored["ip_address"] == "203.0.113.7"
        assert stored["user_agent"] == "pytest-agent"
        assert stored["environment"] == "production"
        assert stored["created_at"] == clock.now
        assert stored["reported_at"] == clock.now

    def test_report_user_agent_wins_over_header(self, pipeline, store):
        error_id = pipeline.ingest(create_valid_report(userAgent="reported-agent"), CONTEXT)

        assert store.get_document(ERROR_REPORTS_COLLECTION, error_id)["user_agent"] == "reported-agent"

    def test_error_ids_are_unique(self, pipeline):
        ids = {pipeline.ingest(create_valid_report(), CONTEXT) for _ in range(5)}

        assert len(ids) == 5

    def test_first_occurrence_creates_aggregate(self, pipeline, store, clock):
        pipeline.ingest(create_valid_report(), CONTEXT)

        [aggregate] = _aggregates(store)
        assert aggregate["count"] == 1
        assert aggregate["first_seen"] == aggregate["last_seen"] == clock.now
        assert aggregate["module"] == "billing"
        assert aggregate["severity"] == "high"
        assert aggregate["category"] == "api"

    def test_repeat_occurrences_share_aggregate(self, pipeline, store, clock):
        first_seen = clock.now
        pipeline.ingest(create_valid_report(message="Payment failed for order 1"), CONTEXT)
        clock.advance(minutes=5)
        pipeline.ingest(create_valid_report(message="Payment failed for order 2", severity="low"), CONTEXT)

        [aggregate] = _aggregates(store)
        assert aggregate["count"] == 2
        assert aggregate["first_seen"] == first_seen
        assert aggregate["last_seen"] == clock.now
        assert aggregate["message"] == "Payment failed for order 2"
        assert aggregate["severity"] == "high"

    def test_stored_fingerprint_matches_aggregate(self, pipeline, store):
        error_id = pipeline.ingest(create_valid_report(), CONTEXT)

        stored = store.get_document(ERROR_REPORTS_COLLECTION, error_id)
        assert _aggregates(store)[0]["fingerprint"] == stored["fingerprint"]

    def test_caller_fingerprint_groups_reports(self, pipeline, store):
        pipeline.ingest(create_valid_report(module="a", fingerprint="shared"), CONTEXT)
        pipeline.ingest(create_valid_report(module="b", fingerprint="shared"), CONTEXT)

        [aggregate] = _aggregates(store)
        assert aggregate["fingerprint"] == "shared"
        assert aggregate["count"] == 2

    def test_concurrent_ingestion_counts_every_report(self, pipeline, store):
        """Concurrent ingestions of one fingerprint all land in the count."""
        workers = 16
        barrier = threading.Barrier(workers)

        def ingest():
            barrier.wait()
            pipeline.ingest(create_valid_report(), CONTEXT)

        threads = [threading.Thread(target=ingest) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        [aggregate] = _aggregates(store)
        assert aggregate["count"] == workers
        assert len(store.query_documents(ERROR_REPORTS_COLLECTION, {}, limit=1000)) == workers

    def test_records_metrics(self, pipeline, metrics):
        pipeline.ingest(create_valid_report(), CONTEXT)

        assert metrics.get_counter_total(
            "error_reports_ingested_total", tags={"severity": "high", "category": "api"}
        ) == 1
        assert len(metrics.get_observations("error_report_ingest_duration_seconds")) == 1

    def test_logs_ingestion(self, pipeline, logger):
        error_id = pipeline.ingest(create_valid_report(), CONTEXT)

        [entry] = [log for log in logger.get_logs("INFO") if log["message"] == "Error reported"]
        assert entry["extra"]["error_id"] == error_id


class TestSideEffects:
    """Tests for audit and escalation side effects."""

    def test_audit_event_written(self, pipeline, store, dispatcher):
        error_id = pipeline.ingest(create_valid_report(userId="0b5e6f1e-8f0e-4a5c-9e7d-2f8c2b0d9a11"), CONTEXT)
        assert dispatcher.flush()

        [event] = store.query_documents(AUDIT_LOGS_COLLECTION, {})
        assert event["event_type"] == "error_reported"
        assert event["target_id"] == error_id
        assert event["actor_type"] == "user"
        assert event["actor_id"] == "0b5e6f1e-8f0e-4a5c-9e7d-2f8c2b0d9a11"
        assert event["actor_ip_address"] == "203.0.113.7"

    def test_critical_report_escalates_once(self, pipeline, dispatcher, error_reporter, logger):
        error_id = pipeline.ingest(create_valid_report(severity="critical"), CONTEXT)
        assert dispatcher.flush()

        [message] = error_reporter.get_messages("critical")
        assert message["message"] == CRITICAL_MESSAGE
        assert message["context"]["error_id"] == error_id
        assert len([log for log in logger.get_logs("ERROR") if log["message"] == CRITICAL_MESSAGE]) == 1

    @pytest.mark.parametrize("severity", ["low", "medium", "high"])
    def test_non_critical_report_does_not_escalate(self, pipeline, dispatcher, error_reporter, severity):
        pipeline.ingest(create_valid_report(severity=severity), CONTEXT)
        assert dispatcher.flush()

        assert error_reporter.get_messages() == []

    def test_audit_failure_does_not_fail_ingestion(self, pipeline, store, dispatcher, logger, metrics):
        with patch.object(pipeline.audit_log, "record", side_effect=DocumentStoreError("audit down")):
            error_id = pipeline.ingest(create_valid_report(), CONTEXT)
            assert dispatcher.flush()

        assert store.get_document(ERROR_REPORTS_COLLECTION, error_id) is not None
        assert logger.has_log("Background task failed", level="ERROR")
        assert metrics.get_counter_total("background_task_failures_total", tags={"task": "audit"}) == 1


class TestFailures:
    """Tests for validation and storage failures."""

    def test_invalid_report_writes_nothing(self, pipeline, store, dispatcher, metrics):
        with pytest.raises(ValidationError) as exc_info:
            pipeline.ingest({"module": "billing"}, CONTEXT)
        assert dispatcher.flush()

        assert exc_info.value.message == "Invalid error report data"
        assert exc_info.value.details["errors"][0]["field"] == "message"
        assert store.query_documents(ERROR_REPORTS_COLLECTION, {}) == []
        assert _aggregates(store) == []
        assert store.query_documents(AUDIT_LOGS_COLLECTION, {}) == []
        assert metrics.get_counter_total("error_reports_failed_total", tags={"stage": "validation"}) == 1

    def test_store_failure_skips_aggregate_and_audit(self, pipeline, store, dispatcher, metrics):
        with patch.object(store, "insert_document", side_effect=DocumentStoreError("disk full")):
            with pytest.raises(PersistenceError, match="Failed to store error report"):
                pipeline.ingest(create_valid_report(severity="critical"), CONTEXT)
        assert dispatcher.flush()

        assert _aggregates(store) == []
        assert store.query_documents(AUDIT_LOGS_COLLECTION, {}) == []
        assert metrics.get_counter_total("error_reports_failed_total", tags={"stage": "store"}) == 1

    def test_aggregate_failure_keeps_stored_report(self, pipeline, store, dispatcher, logger, error_reporter):
        with patch.object(store, "upsert_document", side_effect=DocumentStoreError("conflict")):
            with pytest.raises(PersistenceError, match="Failed to update error aggregation"):
                pipeline.ingest(create_valid_report(severity="critical"), CONTEXT)
        assert dispatcher.flush()

        [stored] = store.query_documents(ERROR_REPORTS_COLLECTION, {})
        assert _aggregates(store) == []
        assert error_reporter.get_messages() == []
        [entry] = logger.get_logs("ERROR")
        assert entry["extra"]["error_id"] == stored["id"]
