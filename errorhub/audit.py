# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Append-only audit trail of error reporting activity."""

import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from errorhub_storage import DocumentStore

from .models import AUDIT_LOGS_COLLECTION, ErrorReport, RequestContext

MODULE_NAME = "core"
FUNCTION_NAME = "error_reporting"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditLog(ABC):
    """Records who did what to which error report."""

    @abstractmethod
    def record(self, event: dict[str, Any]) -> None:
        """Append one audit event."""
        pass

    def error_reported(
        self, report: ErrorReport, error_id: str, fingerprint: str, context: RequestContext
    ) -> None:
        self.record({
            "event_type": "error_reported",
            "event_action": "create",
            "event_category": "system",
            "actor_type": "user" if context.user_id else "system",
            "actor_id": context.user_id,
            "actor_ip_address": context.ip_address,
            "target_type": "error_report",
            "target_id": error_id,
            "event_data": {
                "fingerprint": fingerprint,
                "severity": report.severity.value,
                "category": report.category.value,
                "module": report.module,
            },
            "event_result": "success",
            "event_message": f"Error reported: {report.message[:100]}",
        })

    def error_stats_accessed(
        self, actor_id: str, ip_address: str | None, target_id: str | None, query: dict[str, Any]
    ) -> None:
        self.record({
            "event_type": "error_stats_accessed",
            "event_action": "read",
            "event_category": "data_access",
            "actor_type": "user",
            "actor_id": actor_id,
            "actor_ip_address": ip_address,
            "target_type": "error_report" if target_id else "error_stats",
            "target_id": target_id,
            "event_data": query,
            "event_result": "success",
            "event_message": "Error statistics accessed",
        })


class DocumentStoreAuditLog(AuditLog):
    """Audit log persisted to the ``audit_logs`` collection."""

    def __init__(self, store: DocumentStore, clock: Callable[[], datetime] = _utcnow):
        self.store = store
        self.clock = clock

    def record(self, event: dict[str, Any]) -> None:
        document = {
            "_id": str(uuid.uuid4()),
            **event,
            "module_name": MODULE_NAME,
            "function_name": FUNCTION_NAME,
            "created_at": self.clock(),
        }
        self.store.insert_document(AUDIT_LOGS_COLLECTION, document)
