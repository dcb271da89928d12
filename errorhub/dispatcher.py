# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Background dispatcher for best-effort side effects (audit, escalation)."""

import queue
import threading
import time
from collections.abc import Callable
from typing import Any

from errorhub_logging import Logger
from errorhub_metrics import MetricsCollector


class BackgroundDispatcher:
    """Runs submitted tasks on a single daemon worker thread.

    ``submit`` never blocks the caller: when the bounded queue is full the
    task is dropped and a warning is logged. A task that raises is logged,
    counted and otherwise ignored.
    """

    def __init__(
        self,
        logger: Logger,
        metrics: MetricsCollector | None = None,
        max_queue_size: int = 1000,
    ):
        """Initialize the dispatcher.

        Args:
            logger: Logger instance
            metrics: Optional metrics collector
            max_queue_size: Maximum number of pending tasks
        """
        self.logger = logger
        self.metrics = metrics
        self._queue: queue.Queue[tuple[str, Callable[..., Any], tuple, dict] | None] = queue.Queue(
            maxsize=max_queue_size
        )
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        self._running = False

    def start(self) -> None:
        """Start the worker thread (idempotent)."""
        with self._lock:
            if self._running:
                return
            self._thread = threading.Thread(
                target=self._run_loop, name="errorhub-dispatcher", daemon=True
            )
            self._thread.start()
            self._running = True
        self.logger.info("Background dispatcher started", max_queue_size=self._queue.maxsize)

    def submit(self, name: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """Queue ``func(*args, **kwargs)`` for the worker.

        Returns:
            True if queued, False if dropped
        """
        if not self._running:
            self.start()

        try:
            self._queue.put_nowait((name, func, args, kwargs))
        except queue.Full:
            self.logger.warning("Background queue full, dropping task", task=name)
            if self.metrics:
                self.metrics.increment("background_tasks_dropped_total", tags={"task": name})
            return False
        return True

    def flush(self, timeout: float = 5.0) -> bool:
        """Wait until every queued task has run.

        Returns:
            True if the queue drained within ``timeout``
        """
        deadline = time.monotonic() + timeout
        while self._queue.unfinished_tasks:
            if time.monotonic() >= deadline:
                return False
            time.sleep(0.005)
        return True

    def stop(self, timeout: float = 10.0) -> None:
        """Drain pending tasks and join the worker."""
        with self._lock:
            if not self._running:
                return
            self._running = False
            thread = self._thread

        # The sentinel queues behind pending tasks, so they still run
        self._queue.put(None)
        if thread is not None and thread.is_alive():
            thread.join(timeout=timeout)
        self.logger.info("Background dispatcher stopped")

    def is_running(self) -> bool:
        return self._running

    def _run_loop(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is None:
                    return
                self._run_task(*item)
            finally:
                self._queue.task_done()

    def _run_task(self, name: str, func: Callable[..., Any], args: tuple, kwargs: dict) -> None:
        try:
            func(*args, **kwargs)
        except Exception as e:
            self.logger.error(
                "Background task failed",
                task=name,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            if self.metrics:
                self.metrics.increment("background_task_failures_total", tags={"task": name})
