"""Tests for structured logging configuration."""

import json
import logging
import sys

import pytest

from doseguard.logging_config import (
    JsonFormatter,
    StructuredLogger,
    TextFormatter,
    correlation_id_ctx,
    get_logger,
    setup_logging,
)


def _record(level=logging.INFO, msg="Dose calculation completed", extra_fields=None):
    record = logging.LogRecord(
        name="doseguard.services.dose_calculation",
        level=level,
        pathname="dose_calculation.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    if extra_fields is not None:
        record.extra_fields = extra_fields
    return record


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestJsonFormatter:
    def test_basic_keys(self):
        parsed = json.loads(JsonFormatter(service_name="dose-test").format(_record()))

        assert parsed["level"] == "INFO"
        assert parsed["service"] == "dose-test"
        assert parsed["logger"] == "doseguard.services.dose_calculation"
        assert parsed["message"] == "Dose calculation completed"
        assert "timestamp" in parsed
        assert "correlation_id" not in parsed
        assert "location" not in parsed

    def test_structured_fields_are_top_level(self):
        record = _record(extra_fields={"state": "finalized", "final_dose": 8.5})
        parsed = json.loads(JsonFormatter().format(record))

        assert parsed["state"] == "finalized"
        assert parsed["final_dose"] == 8.5

    def test_correlation_id(self):
        token = correlation_id_ctx.set("req-42")
        try:
            parsed = json.loads(JsonFormatter().format(_record()))
        finally:
            correlation_id_ctx.reset(token)

        assert parsed["correlation_id"] == "req-42"

    def test_error_includes_location(self):
        parsed = json.loads(JsonFormatter().format(_record(level=logging.ERROR)))
        assert parsed["location"]["line"] == 42

    def test_exception_text(self):
        try:
            raise ConnectionError("database unavailable")
        except ConnectionError:
            record = _record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        parsed = json.loads(JsonFormatter().format(record))
        assert "ConnectionError: database unavailable" in parsed["exception"]


class TestTextFormatter:
    def test_line_shape(self):
        line = TextFormatter(service_name="dose-test").format(_record())
        assert " - dose-test - INFO - [-] - Dose calculation completed" in line

    def test_fields_appended(self):
        line = TextFormatter().format(_record(extra_fields={"state": "hypo_blocked"}))
        assert line.endswith("state=hypo_blocked")


class TestStructuredLogger:
    def test_get_logger(self):
        assert isinstance(get_logger("doseguard.test"), StructuredLogger)

    def test_fields_attached_to_record(self, caplog):
        logger = get_logger("doseguard.test")
        with caplog.at_level(logging.INFO, logger="doseguard.test"):
            logger.info("Dose recorded", units=4.5)

        record = caplog.records[-1]
        assert record.getMessage() == "Dose recorded"
        assert record.extra_fields == {"units": 4.5}

    def test_debug_filtered_at_info(self, caplog):
        logger = get_logger("doseguard.test")
        with caplog.at_level(logging.INFO, logger="doseguard.test"):
            logger.debug("Dose gate transition")
        assert caplog.records == []

    def test_exception_keeps_traceback(self, caplog):
        logger = get_logger("doseguard.test")
        with caplog.at_level(logging.ERROR, logger="doseguard.test"):
            try:
                raise RuntimeError("boom")
            except RuntimeError:
                logger.exception("Request failed", path="/health")

        record = caplog.records[-1]
        assert record.exc_info is not None
        assert record.extra_fields == {"path": "/health"}


class TestSetupLogging:
    def test_json(self, restore_root_logger):
        setup_logging(log_format="json", log_level="DEBUG")
        handler = restore_root_logger.handlers[0]
        assert isinstance(handler.formatter, JsonFormatter)
        assert restore_root_logger.level == logging.DEBUG

    def test_text_with_service_name(self, restore_root_logger):
        setup_logging(log_format="text", service_name="dose-worker")
        handler = restore_root_logger.handlers[0]
        assert isinstance(handler.formatter, TextFormatter)
        assert handler.formatter.service_name == "dose-worker"

    def test_unknown_level_falls_back_to_info(self, restore_root_logger):
        setup_logging(log_level="LOUD")
        assert restore_root_logger.level == logging.INFO
