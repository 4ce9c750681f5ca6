"""
Structured logging utilities for CloudWatch Logs Insights.
"""

import json
import logging
import os
import sys
import uuid
from contextvars import ContextVar
from typing import Optional

# Context variable correlating every log line of one health-check pass
run_id_var: ContextVar[str] = ContextVar("run_id", default="")

_RESERVED_ATTRS = frozenset(
    (
        "name", "msg", "args", "created", "filename", "funcName",
        "levelname", "levelno", "lineno", "module", "msecs",
        "pathname", "process", "processName", "relativeCreated",
        "stack_info", "exc_info", "exc_text", "thread", "threadName",
        "message", "asctime", "taskName",
    )
)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": run_id_var.get(""),
            "function_name": os.environ.get("AWS_LAMBDA_FUNCTION_NAME", ""),
        }

        # Add extra fields
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        # Add exception info
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_structured_logging(level: int = logging.INFO, stream=None) -> logging.Logger:
    """
    Configure structured JSON logging.

    Lambda handlers call this at import time. Scripts pass stream=sys.stderr
    so stdout stays reserved for the report.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter())
    root_logger.addHandler(handler)

    return root_logger


def set_run_id(event: Optional[dict] = None) -> str:
    """
    Extract or generate the run ID and set it in context.

    Scheduled EventBridge events carry an "id"; API Gateway invocations carry
    requestContext.requestId. Anything else gets a fresh UUID.
    """
    event = event or {}
    run_id = event.get("id") or event.get("requestContext", {}).get("requestId")

    if not run_id:
        run_id = str(uuid.uuid4())

    run_id_var.set(run_id)
    return run_id


def log_check_result(
    logger: logging.Logger,
    check: str,
    passed: bool,
    latency_ms: float,
    findings: int = 0,
    error: Optional[str] = None,
) -> None:
    """Log the outcome of one health check with standard fields."""
    level = logging.INFO if passed else logging.WARNING
    logger.log(
        level,
        f"Check {check} -> {'passed' if passed else 'failed'}",
        extra={
            "check": check,
            "passed": passed,
            "latency_ms": latency_ms,
            "findings": findings,
            "error": error,
        },
    )


def log_external_call(
    logger: logging.Logger,
    service: str,
    operation: str,
    success: bool,
    latency_ms: float,
    error: Optional[str] = None,
) -> None:
    """Log external service call."""
    level = logging.INFO if success else logging.WARNING
    logger.log(
        level,
        f"External call to {service}: {operation} -> {'success' if success else 'failed'}",
        extra={
            "service": service,
            "operation": operation,
            "success": success,
            "latency_ms": latency_ms,
            "error": error,
        }
    )
