# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""HTTP edge concerns: client identification, rate limiting, security headers, error bodies."""

from datetime import datetime, timezone
from typing import Any

from starlette.concurrency import run_in_threadpool
from starlette.datastructures import Headers
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .errors import RateLimitError, ServiceError

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "X-XSS-Protection": "1; mode=block",
}

ALLOWED_METHODS = "POST, GET, OPTIONS"
UNKNOWN_CLIENT = "unknown"


def client_ip(headers: Headers) -> str:
    """First X-Forwarded-For hop, else X-Real-IP, else ``"unknown"``."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop
    real_ip = headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    return UNKNOWN_CLIENT


def apply_security_headers(response: Response) -> Response:
    for name, value in SECURITY_HEADERS.items():
        response.headers[name] = value
    return response


def error_body(error: dict[str, Any]) -> dict[str, Any]:
    return {
        "success": False,
        "error": error,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def error_response(exc: ServiceError, headers: dict[str, str] | None = None) -> JSONResponse:
    """Render a service error with its status and the uniform error body."""
    response = JSONResponse(status_code=exc.status_code, content=error_body(exc.to_dict()), headers=headers)
    return apply_security_headers(response)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds the security headers to every response leaving the app."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        return apply_security_headers(response)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Throttles the error reporting endpoint per client IP before any other processing.

    Args:
        app: ASGI app
        service: Object exposing ``check_rate_limit(client_ip)``
        path_prefix: Only requests under this path are counted
    """

    def __init__(self, app, service: Any, path_prefix: str = "/error-reports"):
        super().__init__(app)
        self.service = service
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith(self.path_prefix):
            return await call_next(request)

        ip = client_ip(request.headers)
        decision = await run_in_threadpool(self.service.check_rate_limit, ip)
        if decision is not None and not decision.allowed:
            exc = RateLimitError("Rate limit exceeded", retry_after_seconds=decision.retry_after_seconds)
            return error_response(exc, headers={
                "Retry-After": str(exc.retry_after_seconds),
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": "0",
            })
        return await call_next(request)
