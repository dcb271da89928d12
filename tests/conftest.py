# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Shared fixtures: in-memory collaborators, a wired service and an HTTP client."""

import pytest
from fastapi.testclient import TestClient

from errorhub.audit import DocumentStoreAuditLog
from errorhub.dispatcher import BackgroundDispatcher
from errorhub.escalation import CriticalErrorEscalator
from errorhub.main import create_app
from errorhub.pipeline import IngestionPipeline
from errorhub.service import ErrorReportingService
from errorhub.stats import StatisticsEngine
from errorhub_auth import ApiKeyStore, Authenticator, JWTManager
from errorhub_cache import InMemoryCache, InMemoryRateLimiter
from errorhub_logging import SilentLogger
from errorhub_metrics import NoOpMetricsCollector
from errorhub_reporting import SilentErrorReporter
from errorhub_storage import InMemoryDocumentStore
from tests.fixtures import TEST_AUDIENCE, TEST_SECRET, FakeClock, FakeMonotonic, make_token


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def monotonic():
    return FakeMonotonic()


@pytest.fixture
def store():
    document_store = InMemoryDocumentStore()
    document_store.connect()
    return document_store


@pytest.fixture
def logger():
    return SilentLogger()


@pytest.fixture
def metrics():
    return NoOpMetricsCollector()


@pytest.fixture
def error_reporter():
    return SilentErrorReporter()


@pytest.fixture
def dispatcher(logger, metrics):
    background = BackgroundDispatcher(logger, metrics, max_queue_size=100)
    background.start()
    yield background
    background.stop()


@pytest.fixture
def audit_log(store, clock):
    return DocumentStoreAuditLog(store, clock=clock)


@pytest.fixture
def pipeline(store, dispatcher, audit_log, logger, metrics, error_reporter, clock):
    return IngestionPipeline(
        store=store,
        dispatcher=dispatcher,
        audit_log=audit_log,
        escalator=CriticalErrorEscalator(logger, error_reporter, clock=clock),
        logger=logger,
        metrics=metrics,
        clock=clock,
    )


@pytest.fixture
def cache(monotonic):
    return InMemoryCache(clock=monotonic)


@pytest.fixture
def stats_engine(store, cache, logger, metrics, clock):
    return StatisticsEngine(store=store, cache=cache, logger=logger, metrics=metrics, clock=clock)


@pytest.fixture
def jwt_manager():
    return JWTManager(issuer=None, algorithm="HS256", secret_key=TEST_SECRET)


@pytest.fixture
def api_key_store(store, clock):
    return ApiKeyStore(store, clock=clock)


@pytest.fixture
def rate_limiter(monotonic):
    return InMemoryRateLimiter(clock=monotonic)


@pytest.fixture
def service(store, pipeline, stats_engine, jwt_manager, api_key_store, rate_limiter,
            audit_log, dispatcher, logger, metrics):
    return ErrorReportingService(
        store=store,
        pipeline=pipeline,
        stats=stats_engine,
        authenticator=Authenticator(jwt_manager, api_key_store, audience=TEST_AUDIENCE),
        rate_limiter=rate_limiter,
        audit_log=audit_log,
        dispatcher=dispatcher,
        logger=logger,
        metrics=metrics,
    )


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(jwt_manager):
    token = make_token(jwt_manager, permissions=["read:error-stats"])
    return {"Authorization": f"Bearer {token}"}
