"""
Tests for structured logging utilities module.

Tests cover JSON formatting, run ID correlation,
and standardized log methods for checks and external calls.
"""

import json
import logging
import os
import sys
import uuid
from io import StringIO
from unittest.mock import patch

from shared.logging_utils import (
    StructuredFormatter,
    configure_structured_logging,
    log_check_result,
    log_external_call,
    run_id_var,
    set_run_id,
)


def make_record(msg="Test message", level=logging.INFO, args=(), exc_info=None):
    return logging.LogRecord(
        name="test.logger",
        level=level,
        pathname="test.py",
        lineno=10,
        msg=msg,
        args=args,
        exc_info=exc_info,
    )


class TestStructuredFormatter:
    """Tests for StructuredFormatter class."""

    def test_format_includes_required_fields(self):
        """Formatter should include timestamp, level, logger, message."""
        parsed = json.loads(StructuredFormatter().format(make_record("Warning message", logging.WARNING)))

        assert "timestamp" in parsed
        assert parsed["level"] == "WARNING"
        assert parsed["logger"] == "test.logger"
        assert parsed["message"] == "Warning message"

    def test_format_includes_run_id_from_context(self):
        token = run_id_var.set("run-12345")
        try:
            parsed = json.loads(StructuredFormatter().format(make_record()))
            assert parsed["run_id"] == "run-12345"
        finally:
            run_id_var.reset(token)

    def test_format_includes_lambda_function_name(self):
        with patch.dict(os.environ, {"AWS_LAMBDA_FUNCTION_NAME": "tenant-health"}):
            parsed = json.loads(StructuredFormatter().format(make_record()))

        assert parsed["function_name"] == "tenant-health"

    def test_format_includes_extra_fields(self):
        record = make_record()
        record.check = "tenant_isolation"
        record.findings = 2

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["check"] == "tenant_isolation"
        assert parsed["findings"] == 2

    def test_format_excludes_standard_record_fields(self):
        parsed = json.loads(StructuredFormatter().format(make_record()))

        assert "pathname" not in parsed
        assert "lineno" not in parsed
        assert "msg" not in parsed

    def test_format_includes_exception_info(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = make_record("Failed", logging.ERROR, exc_info=sys.exc_info())

        parsed = json.loads(StructuredFormatter().format(record))

        assert "ValueError: boom" in parsed["exception"]

    def test_format_handles_non_serializable_extra(self):
        record = make_record()
        record.tenant = object()

        parsed = json.loads(StructuredFormatter().format(record))

        assert parsed["tenant"].startswith("<object")

    def test_format_handles_message_with_args(self):
        parsed = json.loads(StructuredFormatter().format(make_record("%d tenants", args=(3,))))
        assert parsed["message"] == "3 tenants"


class TestConfigureStructuredLogging:
    def test_sets_log_level(self):
        root = configure_structured_logging(logging.WARNING)
        assert root.level == logging.WARNING

    def test_single_structured_handler(self):
        configure_structured_logging()
        root = configure_structured_logging()

        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, StructuredFormatter)

    def test_writes_to_given_stream(self):
        stream = StringIO()
        configure_structured_logging(logging.INFO, stream=stream)

        logging.getLogger("tenant.test").info("hello")

        assert json.loads(stream.getvalue().strip())["message"] == "hello"


class TestSetRunId:
    def test_uses_eventbridge_id(self):
        assert set_run_id({"id": "evt-1"}) == "evt-1"
        assert run_id_var.get() == "evt-1"

    def test_uses_api_gateway_request_id(self):
        assert set_run_id({"requestContext": {"requestId": "req-9"}}) == "req-9"

    def test_event_id_takes_priority(self):
        assert set_run_id({"id": "evt-1", "requestContext": {"requestId": "req-9"}}) == "evt-1"

    def test_generates_uuid_when_no_id_found(self):
        run_id = set_run_id({})
        uuid.UUID(run_id)

    def test_handles_no_event(self):
        run_id = set_run_id()
        assert run_id_var.get() == run_id


class TestLogCheckResult:
    def test_passed_check_logged_at_info(self, caplog):
        logger = logging.getLogger("test.checks")
        with caplog.at_level(logging.INFO, logger="test.checks"):
            log_check_result(logger, "tenant_capacity", True, 12.5)

        record = caplog.records[0]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "Check tenant_capacity -> passed"
        assert record.check == "tenant_capacity"
        assert record.findings == 0

    def test_failed_check_logged_at_warning(self, caplog):
        logger = logging.getLogger("test.checks")
        with caplog.at_level(logging.INFO, logger="test.checks"):
            log_check_result(logger, "tenant_isolation", False, 3.0, findings=2, error="orphans")

        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.findings == 2
        assert record.error == "orphans"


class TestLogExternalCall:
    def test_successful_call_logged_at_info(self, caplog):
        logger = logging.getLogger("test.external")
        with caplog.at_level(logging.INFO, logger="test.external"):
            log_external_call(logger, "postgres", "connect", True, 8.0)

        record = caplog.records[0]
        assert record.levelno == logging.INFO
        assert record.getMessage() == "External call to postgres: connect -> success"
        assert record.error is None

    def test_failed_call_logged_at_warning(self, caplog):
        logger = logging.getLogger("test.external")
        with caplog.at_level(logging.INFO, logger="test.external"):
            log_external_call(logger, "auth", "GET /api/health", False, 5000.0, error="Request timeout")

        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.error == "Request timeout"
