"""
Check-level errors for tenant and service health checks.

Data violations (isolation mismatches, orphans, exceeded capacity) are not
errors: they are returned as data. The exceptions below describe failures
to *run* a check.
"""

from typing import Optional


class HealthCheckError(Exception):
    """Base class for check-level failures."""

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[dict] = None,
    ):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class RowSourceConnectionError(HealthCheckError):
    """Raised when the row source cannot be reached."""

    def __init__(self, message: str = "Row source unreachable", details: Optional[dict] = None):
        super().__init__(
            code="connection_error",
            message=message,
            details=details,
        )


class RowSourceQueryError(HealthCheckError):
    """Raised when a row source query fails (malformed SQL, schema drift)."""

    def __init__(self, check: str, message: str, details: Optional[dict] = None):
        super().__init__(
            code="query_error",
            message=message,
            details=details,
        )
        self.check = check


class SchemaContractError(RowSourceQueryError):
    """Raised when a result row lacks a column the caller depends on."""

    def __init__(self, check: str, missing_columns: list[str], available_columns: list[str]):
        super().__init__(
            check=check,
            message=(
                f"{check}: result is missing column(s) {', '.join(missing_columns)}"
                f" (got {', '.join(available_columns) or 'none'})"
            ),
            details={
                "missing_columns": missing_columns,
                "available_columns": available_columns,
            },
        )
        self.code = "schema_contract_mismatch"
        self.missing_columns = missing_columns


class ValidationStepFailed(HealthCheckError):
    """Raised when a deployment validation step does not pass."""

    def __init__(self, step: str, reason: str = "check did not pass"):
        super().__init__(
            code="validation_step_failed",
            message=f"{step}: {reason}",
            details={"step": step},
        )
        self.step = step
