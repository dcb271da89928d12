# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Aggregation pipelines behind the error statistics.

Each builder takes its parameters as values and returns a pipeline for
``DocumentStore.aggregate_documents``; nothing is ever spliced into a query
string.
"""

from datetime import datetime
from typing import Any

TOP_ERRORS_LIMIT = 10
BREAKDOWN_FIELDS = ("category", "severity", "module")


def _since(cutoff: datetime) -> dict[str, Any]:
    return {"$match": {"created_at": {"$gte": cutoff}}}


def count_since(cutoff: datetime, output_field: str = "total") -> list[dict[str, Any]]:
    """Number of reports ingested at or after ``cutoff``.

    Yields ``[{output_field: n}]``, or no rows when there are none.
    """
    return [_since(cutoff), {"$count": output_field}]


def counts_by_field(field: str, cutoff: datetime) -> list[dict[str, Any]]:
    """Report counts grouped by ``field``, largest first.

    Rows look like ``{"_id": <field value>, "count": n}``.
    """
    if field not in BREAKDOWN_FIELDS:
        raise ValueError(f"Unsupported breakdown field: {field}")
    return [
        _since(cutoff),
        {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
    ]


def top_errors(cutoff: datetime, limit: int = TOP_ERRORS_LIMIT) -> list[dict[str, Any]]:
    """Most frequent fingerprints since ``cutoff``.

    Descriptive fields come from each group's most recent report. Ties on
    count are broken by most recent occurrence, then by fingerprint.
    """
    return [
        _since(cutoff),
        {"$sort": {"created_at": 1}},
        {"$group": {
            "_id": "$fingerprint",
            "count": {"$sum": 1},
            "first_seen": {"$min": "$created_at"},
            "last_seen": {"$max": "$created_at"},
            "message": {"$last": "$message"},
            "module": {"$last": "$module"},
            "severity": {"$last": "$severity"},
            "category": {"$last": "$category"},
        }},
        {"$sort": {"count": -1, "last_seen": -1, "_id": 1}},
        {"$limit": limit},
    ]
