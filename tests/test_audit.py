# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the audit trail."""

from errorhub.models import AUDIT_LOGS_COLLECTION, ErrorReport, RequestContext
from tests.fixtures import create_valid_report


class TestDocumentStoreAuditLog:
    """Tests for DocumentStoreAuditLog."""

    def test_error_reported_by_anonymous_client(self, audit_log, store, clock):
        report = ErrorReport.model_validate(create_valid_report())

        audit_log.error_reported(report, "err-1", "abc123", RequestContext(ip_address="198.51.100.4"))

        [event] = store.query_documents(AUDIT_LOGS_COLLECTION, {})
        assert event["event_type"] == "error_reported"
        assert event["event_action"] == "create"
        assert event["actor_type"] == "system"
        assert event["actor_id"] is None
        assert event["actor_ip_address"] == "198.51.100.4"
        assert event["target_type"] == "error_report"
        assert event["target_id"] == "err-1"
        assert event["event_data"] == {
            "fingerprint": "abc123",
            "severity": "high",
            "category": "api",
            "module": "billing",
        }
        assert event["module_name"] == "core"
        assert event["function_name"] == "error_reporting"
        assert event["created_at"] == clock.now

    def test_event_message_is_truncated(self, audit_log, store):
        report = ErrorReport.model_validate(create_valid_report(message="m" * 500))

        audit_log.error_reported(report, "err-1", "abc123", RequestContext())

        [event] = store.query_documents(AUDIT_LOGS_COLLECTION, {})
        assert event["event_message"] == "Error reported: " + "m" * 100

    def test_stats_access(self, audit_log, store):
        audit_log.error_stats_accessed("user-1", "198.51.100.4", None, {"timeRange": "24h"})

        [event] = store.query_documents(AUDIT_LOGS_COLLECTION, {})
        assert event["event_type"] == "error_stats_accessed"
        assert event["event_category"] == "data_access"
        assert event["event_action"] == "read"
        assert event["actor_id"] == "user-1"
        assert event["target_type"] == "error_stats"
        assert event["event_data"] == {"timeRange": "24h"}

    def test_single_error_access(self, audit_log, store):
        audit_log.error_stats_accessed("user-1", None, "err-9", {"errorId": "err-9"})

        [event] = store.query_documents(AUDIT_LOGS_COLLECTION, {})
        assert event["target_type"] == "error_report"
        assert event["target_id"] == "err-9"

    def test_events_get_distinct_ids(self, audit_log, store):
        for _ in range(3):
            audit_log.error_stats_accessed("user-1", None, None, {})

        events = store.query_documents(AUDIT_LOGS_COLLECTION, {})
        assert len({event["_id"] for event in events}) == 3
