# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the background dispatcher."""

import threading

from errorhub.dispatcher import BackgroundDispatcher


class TestBackgroundDispatcher:
    """Tests for BackgroundDispatcher."""

    def test_runs_submitted_task(self, dispatcher):
        results = []

        assert dispatcher.submit("append", results.append, 1)
        assert dispatcher.flush()

        assert results == [1]

    def test_passes_keyword_arguments(self, dispatcher):
        results = {}

        dispatcher.submit("update", results.update, answer=42)
        dispatcher.flush()

        assert results == {"answer": 42}

    def test_preserves_submission_order(self, dispatcher):
        results = []
        for i in range(20):
            dispatcher.submit("append", results.append, i)
        dispatcher.flush()

        assert results == list(range(20))

    def test_failing_task_is_logged_and_counted(self, dispatcher, logger, metrics):
        def explode():
            raise RuntimeError("boom")

        results = []
        dispatcher.submit("explode", explode)
        dispatcher.submit("append", results.append, "after")
        dispatcher.flush()

        assert results == ["after"]
        [entry] = [log for log in logger.get_logs("ERROR") if log["message"] == "Background task failed"]
        assert entry["extra"]["task"] == "explode"
        assert entry["extra"]["error_type"] == "RuntimeError"
        assert metrics.get_counter_total("background_task_failures_total", tags={"task": "explode"}) == 1

    def test_submit_starts_worker(self, logger):
        background = BackgroundDispatcher(logger)
        results = []
        try:
            assert not background.is_running()
            background.submit("append", results.append, 1)
            assert background.is_running()
            assert background.flush()
        finally:
            background.stop()

        assert results == [1]

    def test_start_is_idempotent(self, logger):
        background = BackgroundDispatcher(logger)
        background.start()
        background.start()
        background.stop()

        assert len([log for log in logger.get_logs() if log["message"] == "Background dispatcher started"]) == 1

    def test_full_queue_drops_task(self, logger, metrics):
        background = BackgroundDispatcher(logger, metrics, max_queue_size=1)
        release = threading.Event()
        started = threading.Event()

        def block():
            started.set()
            release.wait(5)

        try:
            background.submit("block", block)
            assert started.wait(5)
            assert background.submit("queued", lambda: None)
            assert not background.submit("dropped", lambda: None)
        finally:
            release.set()
            background.stop()

        assert logger.has_log("Background queue full", level="WARNING")
        assert metrics.get_counter_total("background_tasks_dropped_total", tags={"task": "dropped"}) == 1

    def test_stop_drains_pending_tasks(self, logger):
        background = BackgroundDispatcher(logger)
        results = []
        for i in range(10):
            background.submit("append", results.append, i)

        background.stop()

        assert results == list(range(10))
        assert not background.is_running()

    def test_flush_times_out(self, logger):
        background = BackgroundDispatcher(logger)
        release = threading.Event()
        try:
            background.submit("block", release.wait, 5)
            assert not background.flush(timeout=0.05)
        finally:
            release.set()
            background.stop()
