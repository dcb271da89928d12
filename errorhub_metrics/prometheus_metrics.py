# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Prometheus metrics collector implementation."""

import logging
import threading
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

from .base import MetricsCollector

logger = logging.getLogger(__name__)


class PrometheusMetricsCollector(MetricsCollector):
    """Prometheus metrics collector for production observability.

    Metrics are registered lazily on first use and exposed in the Prometheus
    text format via ``render()`` (served at ``/metrics`` by the service).

    Important: All calls to the same metric name must use consistent label keys.
    Using different label keys for one name raises a ValueError from Prometheus.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None, namespace: str = "errorhub",
                 raise_on_error: bool = False):
        """Initialize Prometheus metrics collector.

        Args:
            registry: Optional Prometheus registry (a private one is created if None)
            namespace: Namespace prefix for all metrics
            raise_on_error: If True, raise exceptions on metric errors (useful for testing).
                           If False, log errors and continue.
        """
        self.registry = registry if registry is not None else CollectorRegistry()
        self.namespace = namespace
        self.raise_on_error = raise_on_error
        self._counters: dict[tuple, Counter] = {}
        self._histograms: dict[tuple, Histogram] = {}
        self._gauges: dict[tuple, Gauge] = {}
        # Request threads register metrics concurrently
        self._lock = threading.Lock()

    def _get_or_create(self, cache: dict, metric_cls: type, kind: str, name: str,
                       tags: dict[str, str] | None):
        labelnames = tuple(sorted(tags.keys())) if tags else ()
        cache_key = (name, labelnames)

        with self._lock:
            if cache_key not in cache:
                cache[cache_key] = metric_cls(
                    name=name,
                    documentation=f"{kind} metric: {name}",
                    labelnames=labelnames,
                    namespace=self.namespace,
                    registry=self.registry,
                )
            return cache[cache_key]

    def _record(self, action: str, name: str, tags: dict[str, str] | None, apply) -> None:
        try:
            apply()
            logger.debug(f"PrometheusMetricsCollector: {action} {name} with tags {tags}")
        except Exception as e:
            logger.error(f"Failed to {action} metric {name}: {e}")
            if self.raise_on_error:
                raise

    def increment(self, name: str, value: float = 1.0, tags: dict[str, str] | None = None) -> None:
        def apply() -> None:
            counter = self._get_or_create(self._counters, Counter, "Counter", name, tags)
            (counter.labels(**tags) if tags else counter).inc(value)

        self._record("increment", name, tags, apply)

    def observe(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        def apply() -> None:
            histogram = self._get_or_create(self._histograms, Histogram, "Histogram", name, tags)
            (histogram.labels(**tags) if tags else histogram).observe(value)

        self._record("observe", name, tags, apply)

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        def apply() -> None:
            gauge = self._get_or_create(self._gauges, Gauge, "Gauge", name, tags)
            (gauge.labels(**tags) if tags else gauge).set(value)

        self._record("set", name, tags, apply)

    def render(self) -> bytes:
        """Render all registered metrics in the Prometheus exposition format."""
        return generate_latest(self.registry)
