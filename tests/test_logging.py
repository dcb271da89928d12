# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Tests for the logging adapter."""

import json
import logging

import pytest

from errorhub_logging import SilentLogger, StdoutLogger, create_logger, create_uvicorn_log_config
from errorhub_logging.uvicorn_config import JSONFormatter


class TestCreateLogger:
    """Tests for create_logger."""

    def test_stdout_default(self, monkeypatch):
        monkeypatch.delenv("LOG_TYPE", raising=False)

        assert isinstance(create_logger(), StdoutLogger)

    def test_silent(self):
        logger = create_logger(logger_type="silent", level="debug", name="errorhub.test")

        assert isinstance(logger, SilentLogger)
        assert logger.level == "DEBUG"
        assert logger.name == "errorhub.test"

    def test_env_selection(self, monkeypatch):
        monkeypatch.setenv("LOG_TYPE", "silent")

        assert isinstance(create_logger(), SilentLogger)

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown logger_type"):
            create_logger(logger_type="syslog")


class TestStdoutLogger:
    """Tests for StdoutLogger."""

    def test_emits_json(self, capsys):
        StdoutLogger(level="INFO", name="errorhub.test").info("Error reported", error_id="e-1")

        entry = json.loads(capsys.readouterr().out.strip())
        assert entry["level"] == "INFO"
        assert entry["logger"] == "errorhub.test"
        assert entry["message"] == "Error reported"
        assert entry["extra"] == {"error_id": "e-1"}
        assert entry["timestamp"].endswith("Z")

    def test_filters_below_level(self, capsys):
        logger = StdoutLogger(level="WARNING")
        logger.info("hidden")
        logger.debug("hidden")
        logger.warning("shown")

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["message"] for line in lines] == ["shown"]

    def test_exc_info_is_not_serialized(self, capsys):
        try:
            raise ValueError("boom")
        except ValueError:
            StdoutLogger().exception("Failed", error="boom")

        entry = json.loads(capsys.readouterr().out.strip())
        assert entry["extra"] == {"error": "boom"}

    def test_forwards_to_stdlib_logging(self, caplog):
        with caplog.at_level(logging.INFO, logger="errorhub.caplog"):
            StdoutLogger(name="errorhub.caplog").error("Stored error report but failed", error_id="e-1")

        assert caplog.records[0].levelno == logging.ERROR
        assert caplog.records[0].extra == {"error_id": "e-1"}

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            StdoutLogger(level="TRACE")


class TestSilentLogger:
    """Tests for SilentLogger."""

    def test_records_and_filters(self):
        logger = SilentLogger()
        logger.info("one", a=1)
        logger.warning("two")
        logger.exception("three", exc_info=True)

        assert logger.get_logs("INFO") == [{"level": "INFO", "message": "one", "extra": {"a": 1}}]
        assert logger.has_log("thr", level="ERROR")
        assert not logger.has_log("two", level="ERROR")
        assert logger.get_logs("ERROR")[0].get("extra") is None

        logger.clear_logs()
        assert logger.get_logs() == []


class TestUvicornLogConfig:
    """Tests for the uvicorn logging configuration."""

    def test_shape(self):
        config = create_uvicorn_log_config("error-reporting", "WARNING")

        assert config["formatters"]["json"]["logger_name"] == "error-reporting"
        assert config["loggers"]["uvicorn"]["level"] == "WARNING"
        assert config["loggers"]["uvicorn.access"]["level"] == "DEBUG"

    def test_formatter_renders_json(self):
        record = logging.LogRecord("uvicorn", logging.INFO, __file__, 1, "Started %s", ("server",), None)

        entry = json.loads(JSONFormatter("error-reporting").format(record))

        assert entry == {
            "timestamp": entry["timestamp"],
            "level": "INFO",
            "logger": "error-reporting",
            "message": "Started server",
        }
