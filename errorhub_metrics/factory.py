# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Factory functions for creating metrics collectors."""

import os

from .base import MetricsCollector


def create_metrics_collector(metrics_type: str | None = None, **kwargs) -> MetricsCollector:
    """Create a metrics collector based on driver type.

    Supported drivers:
    - "prometheus": Prometheus metrics with registry-based collection
    - "noop": No-op collector for testing

    Args:
        metrics_type: Driver name. Defaults to METRICS_TYPE env or "noop".
        **kwargs: Driver-specific options (e.g. namespace, registry for prometheus)

    Returns:
        MetricsCollector instance configured for the specified driver

    Raises:
        ValueError: If driver type is unknown

    Examples:
        >>> collector = create_metrics_collector("noop")
        >>> collector.increment("error_reports_ingested_total", tags={"severity": "high"})
    """
    metrics_type = (metrics_type or os.getenv("METRICS_TYPE") or "noop").lower()

    if metrics_type == "prometheus":
        from .prometheus_metrics import PrometheusMetricsCollector
        return PrometheusMetricsCollector(**kwargs)
    elif metrics_type == "noop":
        from .noop_metrics import NoOpMetricsCollector
        return NoOpMetricsCollector()
    else:
        raise ValueError(
            f"Unknown metrics_type: {metrics_type}. "
            f"Must be one of: prometheus, noop"
        )
