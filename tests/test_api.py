# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""HTTP API tests for the error reporting service."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from errorhub.config import load_service_config
from errorhub.gateway import SECURITY_HEADERS
from errorhub.main import build_service, create_app
from errorhub.models import AUDIT_LOGS_COLLECTION, ERROR_REPORTS_COLLECTION
from errorhub_cache import RateLimiterError
from errorhub_config import EnvConfigProvider
from errorhub_logging import SilentLogger
from errorhub_storage import DocumentStoreError
from tests.fixtures import TEST_AUDIENCE, TEST_SECRET, create_valid_report, make_token


def assert_security_headers(response):
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


def assert_error(response, status_code, code):
    assert response.status_code == status_code
    body = response.json()
    assert body["success"] is False
    assert body["error"]["code"] == code
    assert "timestamp" in body
    assert_security_headers(response)
    return body["error"]


class TestHealth:
    """Tests for liveness and readiness endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert_security_headers(response)

    def test_readyz(self, client):
        assert client.get("/readyz").json() == {"status": "ready"}

    def test_readyz_before_start(self, service):
        # No lifespan without the context manager, so the service never starts
        response = TestClient(create_app(service)).get("/readyz")

        assert response.status_code == 503

    def test_health_is_not_rate_limited(self, client, service):
        service.rate_limit_requests = 1

        for _ in range(5):
            assert client.get("/health").status_code == 200


class TestSubmitErrorReport:
    """Tests for POST /error-reports."""

    def test_accepts_valid_report(self, client, store):
        response = client.post("/error-reports", json=create_valid_report(), headers={
            "X-Forwarded-For": "203.0.113.7, 10.0.0.1",
            "User-Agent": "checkout-web/2.1",
        })

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["message"] == "Error report submitted successfully"
        assert_security_headers(response)

        stored = store.get_document(ERROR_REPORTS_COLLECTION, body["data"]["errorId"])
        assert stored["ip_address"] == "203.0.113.7"
        assert stored["user_agent"] == "checkout-web/2.1"

    def test_real_ip_header(self, client, store):
        response = client.post("/error-reports", json=create_valid_report(), headers={"X-Real-IP": "198.51.100.9"})

        stored = store.get_document(ERROR_REPORTS_COLLECTION, response.json()["data"]["errorId"])
        assert stored["ip_address"] == "198.51.100.9"

    def test_unknown_client_ip_is_not_stored(self, client, store):
        response = client.post("/error-reports", json=create_valid_report())

        stored = store.get_document(ERROR_REPORTS_COLLECTION, response.json()["data"]["errorId"])
        assert stored["ip_address"] is None

    def test_invalid_json(self, client):
        response = client.post(
            "/error-reports", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        error = assert_error(response, 400, "VALIDATION_ERROR")
        assert error["message"] == "Request body must be valid JSON"

    def test_invalid_report(self, client, store):
        response = client.post("/error-reports", json=create_valid_report(severity="fatal", message=""))

        error = assert_error(response, 400, "VALIDATION_ERROR")
        assert error["message"] == "Invalid error report data"
        assert {e["field"] for e in error["details"]["errors"]} == {"severity", "message"}
        assert store.query_documents(ERROR_REPORTS_COLLECTION, {}) == []

    def test_message_length_boundary(self, client):
        assert client.post("/error-reports", json=create_valid_report(message="x" * 1000)).status_code == 201
        assert client.post("/error-reports", json=create_valid_report(message="x" * 1001)).status_code == 400

    def test_array_body(self, client):
        assert_error(client.post("/error-reports", json=[create_valid_report()]), 400, "VALIDATION_ERROR")

    def test_storage_failure(self, client, store):
        with patch.object(store, "insert_document", side_effect=DocumentStoreError("down")):
            response = client.post("/error-reports", json=create_valid_report())

        error = assert_error(response, 500, "DATABASE_ERROR")
        assert error["message"] == "Failed to store error report"

    def test_unexpected_failure(self, client, service, logger):
        with patch.object(service.pipeline, "ingest", side_effect=RuntimeError("bug")):
            response = client.post("/error-reports", json=create_valid_report())

        error = assert_error(response, 500, "INTERNAL_ERROR")
        assert error["message"] == "Failed to process error report"
        assert logger.has_log("Failed to process error report", level="ERROR")

    def test_critical_report_is_escalated(self, client, dispatcher, error_reporter):
        response = client.post("/error-reports", json=create_valid_report(severity="critical"))
        assert dispatcher.flush()

        [message] = error_reporter.get_messages("critical")
        assert message["context"]["error_id"] == response.json()["data"]["errorId"]


class TestRateLimiting:
    """Tests for per-client throttling of /error-reports."""

    def test_thirty_first_request_is_rejected(self, client):
        for i in range(30):
            response = client.post("/error-reports", json=create_valid_report())
            assert response.status_code == 201, f"request {i + 1}"

        response = client.post("/error-reports", json=create_valid_report())

        error = assert_error(response, 429, "RATE_LIMIT_EXCEEDED")
        assert error["message"] == "Rate limit exceeded"
        assert response.headers["Retry-After"] == "60"
        assert response.headers["X-RateLimit-Limit"] == "30"
        assert response.headers["X-RateLimit-Remaining"] == "0"

    def test_limit_is_per_client(self, client, service):
        service.rate_limit_requests = 1

        assert client.post("/error-reports", json=create_valid_report(),
                           headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 201
        assert client.post("/error-reports", json=create_valid_report(),
                           headers={"X-Forwarded-For": "10.0.0.1"}).status_code == 429
        assert client.post("/error-reports", json=create_valid_report(),
                           headers={"X-Forwarded-For": "10.0.0.2"}).status_code == 201

    def test_rejected_before_validation(self, client, service, store):
        service.rate_limit_requests = 1
        client.post("/error-reports", content=b"garbage", headers={"Content-Type": "application/json"})

        response = client.post("/error-reports", json=create_valid_report())

        assert response.status_code == 429
        assert store.query_documents(ERROR_REPORTS_COLLECTION, {}) == []

    def test_window_resets(self, client, service, monotonic):
        service.rate_limit_requests = 1
        client.post("/error-reports", json=create_valid_report())
        monotonic.advance(60)

        assert client.post("/error-reports", json=create_valid_report()).status_code == 201

    def test_limiter_outage_fails_open(self, client, rate_limiter, metrics, logger):
        with patch.object(rate_limiter, "check", side_effect=RateLimiterError("redis down")):
            response = client.post("/error-reports", json=create_valid_report())

        assert response.status_code == 201
        assert metrics.get_counter_total("rate_limiter_errors_total") == 1
        assert logger.has_log("Rate limiter unavailable", level="ERROR")


class TestGetErrorReports:
    """Tests for GET /error-reports."""

    def test_requires_authentication(self, client):
        error = assert_error(client.get("/error-reports"), 401, "AUTHENTICATION_REQUIRED")

        assert error["message"] == "Authentication required"

    def test_invalid_token(self, client):
        response = client.get("/error-reports", headers={"Authorization": "Bearer nope"})

        assert_error(response, 401, "AUTHENTICATION_REQUIRED")

    def test_expired_token(self, client, jwt_manager):
        token = make_token(jwt_manager, permissions=["read:error-stats"], expires_in=-600)

        error = assert_error(client.get("/error-reports", headers={"Authorization": f"Bearer {token}"}),
                             401, "AUTHENTICATION_REQUIRED")
        assert error["message"] == "Token has expired"

    def test_missing_permission(self, client, jwt_manager):
        token = make_token(jwt_manager, permissions=["read:something-else"])

        error = assert_error(client.get("/error-reports", headers={"Authorization": f"Bearer {token}"}),
                             403, "INSUFFICIENT_PERMISSIONS")
        assert error["details"] == {"requiredPermission": "read:error-stats"}

    def test_admin_role_grants_access(self, client, jwt_manager):
        token = make_token(jwt_manager, roles=["admin"])

        assert client.get("/error-reports", headers={"Authorization": f"Bearer {token}"}).status_code == 200

    def test_stats(self, client, auth_headers):
        client.post("/error-reports", json=create_valid_report())
        client.post("/error-reports", json=create_valid_report(module="auth", message="Token rejected"))

        response = client.get("/error-reports", headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["totalErrors"] == 2
        assert data["timeRange"] == "24h"
        assert data["errorsByModule"] == {"auth": 1, "billing": 1}
        assert len(data["topErrors"]) == 2
        assert_security_headers(response)

    def test_stats_time_range(self, client, auth_headers):
        data = client.get("/error-reports", params={"timeRange": "1w"}, headers=auth_headers).json()["data"]

        assert data["timeRange"] == "1w"

    def test_stats_huge_time_range(self, client, auth_headers):
        response = client.get("/error-reports", params={"timeRange": "1000000d"}, headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"]["timeRange"] == "1000000d"

    def test_stats_with_api_key(self, client, api_key_store):
        api_key, _ = api_key_store.create_api_key("dashboards", "svc-1", ["read:error-stats"])

        response = client.get("/error-reports", headers={"X-API-Key": api_key})

        assert response.status_code == 200

    def test_revoked_api_key(self, client, api_key_store):
        api_key, record = api_key_store.create_api_key("dashboards", "svc-1", ["read:error-stats"])
        api_key_store.revoke(record["_id"])

        assert_error(client.get("/error-reports", headers={"X-API-Key": api_key}), 401, "AUTHENTICATION_REQUIRED")

    def test_api_key_lookup_failure(self, client, store):
        with patch.object(store, "query_documents", side_effect=DocumentStoreError("down")):
            response = client.get("/error-reports", headers={"X-API-Key": "ehk_unknown"})

        assert_error(response, 500, "DATABASE_ERROR")

    def test_single_error(self, client, auth_headers):
        error_id = client.post("/error-reports", json=create_valid_report()).json()["data"]["errorId"]

        response = client.get("/error-reports", params={"errorId": error_id}, headers=auth_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["id"] == error_id
        assert data["module"] == "billing"

    def test_single_error_not_found(self, client, auth_headers):
        response = client.get("/error-reports", params={"errorId": "missing"}, headers=auth_headers)

        error = assert_error(response, 404, "NOT_FOUND")
        assert error["details"] == {"errorId": "missing"}

    def test_stats_storage_failure(self, client, auth_headers, store):
        with patch.object(store, "aggregate_documents", side_effect=DocumentStoreError("down")):
            response = client.get("/error-reports", headers=auth_headers)

        assert_error(response, 500, "DATABASE_ERROR")

    def test_access_is_audited(self, client, auth_headers, dispatcher, store):
        client.get("/error-reports", params={"timeRange": "2h"}, headers={**auth_headers, "X-Real-IP": "192.0.2.1"})
        assert dispatcher.flush()

        [event] = store.query_documents(AUDIT_LOGS_COLLECTION, {"event_type": "error_stats_accessed"})
        assert event["actor_id"] == "user-1"
        assert event["actor_ip_address"] == "192.0.2.1"
        assert event["event_data"] == {"timeRange": "2h"}


class TestMethodsAndRouting:
    """Tests for OPTIONS, disallowed methods and unknown paths."""

    def test_options(self, client):
        response = client.options("/error-reports")

        assert response.status_code == 200
        assert response.headers["Allow"] == "POST, GET, OPTIONS"
        assert_security_headers(response)

    @pytest.mark.parametrize("method", ["put", "delete", "patch"])
    def test_method_not_allowed(self, client, method):
        response = client.request(method.upper(), "/error-reports")

        error = assert_error(response, 405, "METHOD_NOT_ALLOWED")
        assert error["message"] == "Method not allowed"
        assert response.headers["Allow"] == "POST, GET, OPTIONS"

    def test_unknown_path(self, client):
        assert_error(client.get("/nope"), 404, "NOT_FOUND")


class TestBuildService:
    """Tests for wiring the service from configuration."""

    @pytest.fixture
    def configured_client(self, monkeypatch):
        monkeypatch.delenv("SCHEMA_DIR", raising=False)
        config = load_service_config(env_provider=EnvConfigProvider(environ={
            "METRICS_TYPE": "prometheus",
            "JWT_SECRET_KEY": TEST_SECRET,
            "AUTH_AUDIENCE": TEST_AUDIENCE,
            "ERROR_REPORTER_TYPE": "silent",
            "RATE_LIMIT_REQUESTS": "100",
        }))
        service = build_service(config, logger=SilentLogger())
        with TestClient(create_app(service)) as test_client:
            yield test_client, service

    def test_end_to_end(self, configured_client):
        client, service = configured_client
        token = make_token(service.authenticator.jwt_manager, permissions=["read:error-stats"])

        assert client.post("/error-reports", json=create_valid_report()).status_code == 201
        stats = client.get("/error-reports", headers={"Authorization": f"Bearer {token}"}).json()["data"]

        assert stats["totalErrors"] == 1

    def test_metrics_endpoint(self, configured_client):
        client, _ = configured_client
        client.post("/error-reports", json=create_valid_report())

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "errorhub_error_reports_ingested_total" in response.text

    def test_no_metrics_endpoint_without_prometheus(self, client):
        assert client.get("/metrics").status_code == 404
