"""Tests for structured JSON logging."""

import json
import logging
import sys

from bulk_upload.common.logger import JSONFormatter, get_logger, log_with_context


def _record(msg, level=logging.INFO, exc_info=None):
    return logging.LogRecord(
        name="test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestJSONFormatter:
    def test_basic_format(self):
        parsed = json.loads(JSONFormatter().format(_record("test message")))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "test message"
        assert parsed["logger"] == "test"
        assert parsed["service"] == "bulk-upload"
        assert "timestamp" in parsed

    def test_format_with_extra_data(self):
        record = _record("with extras")
        record.extra_data = {"key1": "value1", "key2": 42}
        record.batch_id = "batch-123"
        parsed = json.loads(JSONFormatter().format(record))
        assert parsed["key1"] == "value1"
        assert parsed["key2"] == 42
        assert parsed["batch_id"] == "batch-123"

    def test_format_with_exception(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(
            JSONFormatter().format(_record("error occurred", logging.ERROR, exc_info))
        )
        assert parsed["exception"]["type"] == "ValueError"
        assert parsed["exception"]["message"] == "test error"


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test_module")
        assert logger.name == "test_module"
        assert len(logger.handlers) == 1

    def test_idempotent(self):
        logger1 = get_logger("idempotent_test")
        logger2 = get_logger("idempotent_test")
        assert logger1 is logger2
        assert len(logger1.handlers) == 1


class TestLogWithContext:
    def test_log_with_context(self, capfd):
        logger = get_logger("context_test")
        log_with_context(
            logger,
            logging.INFO,
            "test message",
            batch_id="batch-456",
            operation="put_object",
            count=5,
        )
        parsed = json.loads(capfd.readouterr().err)
        assert parsed["message"] == "test message"
        assert parsed["batch_id"] == "batch-456"
        assert parsed["operation"] == "put_object"
        assert parsed["count"] == 5
