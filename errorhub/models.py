# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Data models for error reports, stored errors and aggregates."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, field_validator

ERROR_REPORTS_COLLECTION = "error_reports"
ERROR_AGGREGATIONS_COLLECTION = "error_aggregations"
AUDIT_LOGS_COLLECTION = "audit_logs"

MAX_MESSAGE_LENGTH = 1000
DEFAULT_MAX_STACK_LENGTH = 50_000


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class Category(str, Enum):
    FRONTEND = "frontend"
    BACKEND = "backend"
    API = "api"
    DATABASE = "database"
    NETWORK = "network"
    SECURITY = "security"
    PERFORMANCE = "performance"


class Environment(str, Enum):
    DEVELOPMENT = "development"
    TEST = "test"
    PRODUCTION = "production"


class BrowserInfo(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    version: str | None = None
    platform: str | None = None


class ErrorReport(BaseModel):
    """An error event as submitted by a caller.

    JSON field names are camelCase; unknown fields are ignored. The stack
    length cap is enforced by ``validate_report`` because it is configurable.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    message: str = Field(min_length=1, max_length=MAX_MESSAGE_LENGTH)
    error_code: str | None = Field(default=None, alias="errorCode")
    stack: str | None = None

    url: AnyUrl | None = None
    user_agent: str | None = Field(default=None, alias="userAgent", max_length=500)
    user_id: UUID | None = Field(default=None, alias="userId")
    session_id: str | None = Field(default=None, alias="sessionId")

    module: str = Field(min_length=1, max_length=50)
    function: str | None = Field(default=None, min_length=1, max_length=100)
    version: str | None = None
    environment: Environment | None = None

    severity: Severity = Severity.MEDIUM
    category: Category = Category.BACKEND
    tags: list[str] = Field(default_factory=list, max_length=10)

    additional_data: dict[str, Any] | None = Field(default=None, alias="additionalData")
    fingerprint: str | None = None

    timestamp: datetime | None = None
    browser_info: BrowserInfo | None = Field(default=None, alias="browserInfo")

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp_must_be_iso_string(cls, value: Any) -> Any:
        # Numbers would otherwise be accepted as epoch seconds
        if value is not None and not isinstance(value, (str, datetime)):
            raise ValueError("timestamp must be an ISO-8601 string")
        return value

    @field_validator("timestamp")
    @classmethod
    def _timestamp_as_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@dataclass(frozen=True)
class RequestContext:
    """Facts about the HTTP request that carried a report."""
    ip_address: str | None = None
    user_agent: str | None = None
    user_id: str | None = None


def build_stored_error(
    report: ErrorReport,
    error_id: str,
    fingerprint: str,
    context: RequestContext,
    now: datetime,
) -> dict[str, Any]:
    """Build the ``error_reports`` document for one ingestion."""
    return {
        "_id": error_id,
        "id": error_id,
        "message": report.message,
        "error_code": report.error_code,
        "stack_trace": report.stack,
        "url": str(report.url) if report.url is not None else None,
        "user_agent": report.user_agent or context.user_agent,
        "user_id": str(report.user_id) if report.user_id is not None else None,
        "session_id": report.session_id,
        "module": report.module,
        "function_name": report.function,
        "version": report.version,
        "environment": (report.environment or Environment.PRODUCTION).value,
        "severity": report.severity.value,
        "category": report.category.value,
        "tags": list(report.tags),
        "additional_data": dict(report.additional_data or {}),
        "fingerprint": fingerprint,
        "ip_address": context.ip_address,
        "browser_info": report.browser_info.model_dump() if report.browser_info else {},
        "reported_at": report.timestamp or now,
        "created_at": now,
    }


def serialize_document(doc: dict[str, Any]) -> dict[str, Any]:
    """Render a stored document as JSON-ready data (ISO datetimes, no ``_id``)."""
    result = {}
    for key, value in doc.items():
        if key == "_id":
            continue
        result[key] = value.isoformat() if isinstance(value, datetime) else value
    return result
