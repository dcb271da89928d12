# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Error Reporting Service: ingest error events and serve aggregate statistics."""

from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from errorhub_auth import ApiKeyStore, Authenticator, JWTManager
from errorhub_cache import create_cache, create_rate_limiter
from errorhub_config import TypedConfig
from errorhub_logging import Logger, create_logger, create_uvicorn_log_config
from errorhub_metrics import MetricsCollector, PrometheusMetricsCollector, create_metrics_collector
from errorhub_reporting import ErrorReporter, create_error_reporter
from errorhub_storage import create_document_store

from . import __version__
from .audit import DocumentStoreAuditLog
from .config import load_service_config
from .dispatcher import BackgroundDispatcher
from .errors import InternalError, MethodNotAllowedError, ServiceError, ValidationError
from .escalation import CriticalErrorEscalator
from .gateway import (
    ALLOWED_METHODS,
    UNKNOWN_CLIENT,
    RateLimitMiddleware,
    SecurityHeadersMiddleware,
    client_ip,
    error_response,
)
from .models import RequestContext
from .pipeline import IngestionPipeline
from .service import ErrorReportingService
from .stats import StatisticsEngine
from .time_range import DEFAULT_TIME_RANGE

ERROR_REPORTS_PATH = "/error-reports"


def _build_jwt_manager(config: TypedConfig, logger: Logger) -> JWTManager | None:
    if config.jwt_algorithm == "RS256":
        return JWTManager(
            issuer=config.auth_issuer,
            algorithm="RS256",
            public_key_path=config.jwt_public_key_path,
        )
    if config.jwt_secret_key:
        return JWTManager(issuer=config.auth_issuer, algorithm="HS256", secret_key=config.jwt_secret_key)
    logger.warning("No JWT key configured; bearer tokens will be rejected")
    return None


def build_service(
    config: TypedConfig,
    logger: Logger | None = None,
    metrics: MetricsCollector | None = None,
    error_reporter: ErrorReporter | None = None,
) -> ErrorReportingService:
    """Create every collaborator from configuration and wire the service."""
    logger = logger or create_logger(logger_type=config.log_type, level=config.log_level, name="errorhub")
    metrics = metrics or create_metrics_collector(config.metrics_type)
    error_reporter = error_reporter or create_error_reporter(
        config.error_reporter_type,
        dsn=config.sentry_dsn,
        environment=config.sentry_environment,
    )

    store_kwargs: dict[str, Any] = {}
    if config.document_store_type == "mongodb":
        store_kwargs = {
            "host": config.doc_store_host,
            "port": config.doc_store_port,
            "database": config.doc_store_name,
            "username": config.doc_store_user,
            "password": config.doc_store_password,
        }
    store = create_document_store(config.document_store_type, **store_kwargs)

    dispatcher = BackgroundDispatcher(logger, metrics, max_queue_size=config.dispatcher_queue_size)
    audit_log = DocumentStoreAuditLog(store)
    pipeline = IngestionPipeline(
        store=store,
        dispatcher=dispatcher,
        audit_log=audit_log,
        escalator=CriticalErrorEscalator(logger, error_reporter),
        logger=logger,
        metrics=metrics,
        max_stack_length=config.max_stack_trace_length,
    )
    stats = StatisticsEngine(
        store=store,
        cache=create_cache(config.cache_type, redis_url=config.redis_url),
        logger=logger,
        metrics=metrics,
        cache_ttl_seconds=config.stats_cache_ttl_seconds,
    )
    authenticator = Authenticator(
        jwt_manager=_build_jwt_manager(config, logger),
        api_key_store=ApiKeyStore(store),
        audience=config.auth_audience,
    )

    return ErrorReportingService(
        store=store,
        pipeline=pipeline,
        stats=stats,
        authenticator=authenticator,
        rate_limiter=create_rate_limiter(config.rate_limiter_type, redis_url=config.redis_url),
        audit_log=audit_log,
        dispatcher=dispatcher,
        logger=logger,
        metrics=metrics,
        rate_limit_requests=config.rate_limit_requests,
        rate_limit_window_seconds=config.rate_limit_window_seconds,
    )


def create_app(service: ErrorReportingService) -> FastAPI:
    """Build the FastAPI application around an already-wired service."""
    logger = service.logger

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Error Reporting Service", version=__version__)
        service.start()
        yield
        logger.info("Shutting down Error Reporting Service")
        service.stop()

    app = FastAPI(
        title="Error Reporting Service",
        version=__version__,
        description="Error ingestion, fingerprint grouping and cached statistics",
        lifespan=lifespan,
    )
    app.state.service = service

    # Added last means outermost: security headers wrap the rate limiter's 429s too
    app.add_middleware(RateLimitMiddleware, service=service, path_prefix=ERROR_REPORTS_PATH)
    app.add_middleware(SecurityHeadersMiddleware)

    async def run_guarded(failure_message: str, func, *args):
        """Run blocking service work off the event loop; unexpected errors become INTERNAL_ERROR."""
        try:
            return await run_in_threadpool(func, *args)
        except ServiceError:
            raise
        except Exception as e:
            logger.exception(failure_message, error=str(e), error_type=type(e).__name__)
            raise InternalError(failure_message) from e

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        return error_response(exc)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == 405:
            allowed = ALLOWED_METHODS if request.url.path == ERROR_REPORTS_PATH else (exc.headers or {}).get("Allow", "")
            error = MethodNotAllowedError("Method not allowed", allowed=[m.strip() for m in allowed.split(",") if m.strip()])
            return error_response(error, headers={"Allow": allowed})
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_ERROR"
        return error_response(
            ServiceError(str(exc.detail), code=code, status_code=exc.status_code),
            headers=exc.headers,
        )

    @app.get("/health")
    async def health() -> dict[str, Any]:
        """Liveness check; never rate limited."""
        return {"status": "healthy", "service": "error-reporting", "version": __version__}

    @app.get("/readyz")
    async def readyz():
        """Readiness check: storage connected and background worker running."""
        if not service.is_ready():
            return JSONResponse(status_code=503, content={"status": "not ready"})
        return {"status": "ready"}

    if isinstance(service.metrics, PrometheusMetricsCollector):
        collector = service.metrics

        @app.get("/metrics")
        async def metrics_endpoint() -> Response:
            return Response(content=collector.render(), media_type=CONTENT_TYPE_LATEST)

    @app.post(ERROR_REPORTS_PATH, status_code=201)
    async def submit_error_report(request: Request) -> dict[str, Any]:
        try:
            payload = await request.json()
        except ValueError as e:
            raise ValidationError("Request body must be valid JSON") from e

        ip = client_ip(request.headers)
        context = RequestContext(
            ip_address=None if ip == UNKNOWN_CLIENT else ip,
            user_agent=request.headers.get("user-agent"),
        )
        error_id = await run_guarded("Failed to process error report", service.ingest, payload, context)
        return {
            "success": True,
            "data": {"errorId": error_id, "message": "Error report submitted successfully"},
        }

    @app.get(ERROR_REPORTS_PATH)
    async def get_error_reports(
        request: Request,
        time_range: str = Query(DEFAULT_TIME_RANGE, alias="timeRange"),
        error_id: str | None = Query(None, alias="errorId"),
    ) -> dict[str, Any]:
        principal = await run_guarded(
            "Failed to authenticate request",
            service.authorize_stats_read,
            request.headers.get("authorization"),
            request.headers.get("x-api-key"),
        )
        data = await run_guarded(
            "Failed to get error statistics",
            service.read_stats,
            principal,
            client_ip(request.headers),
            time_range,
            error_id,
        )
        return {"success": True, "data": data}

    @app.options(ERROR_REPORTS_PATH)
    async def error_reports_options() -> Response:
        return Response(status_code=200, headers={"Allow": ALLOWED_METHODS})

    return app


def main():
    """Main entry point for the error reporting service."""
    config = load_service_config()
    service = build_service(config)
    service.logger.info("Configuration loaded", schema_version=config.get_schema_version())

    uvicorn.run(
        create_app(service),
        host="0.0.0.0",
        port=config.http_port,
        log_config=create_uvicorn_log_config("error-reporting", config.log_level),
    )


if __name__ == "__main__":
    main()
