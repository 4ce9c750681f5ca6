"""
Tenant health evaluation pipeline.

One pass: isolation check, then capacity classification of every active
tenant, then the production-readiness verdict. The evaluator holds no state
between passes and never retries; callers re-run the whole pass if they want
another attempt.

Failure handling:
- RowSourceConnectionError aborts the pass. The report carries a
  "connection" check failure and production_ready is False.
- RowSourceQueryError is recorded against the check that raised it and the
  remaining checks still run.
- Isolation violations and exceeded capacity are data, not errors.
- Checks the row source cannot verify come back as notices. They are
  reported but do not block readiness.
"""

import logging
import time
from typing import Optional

from .capacity import evaluate_tenant_capacity
from .config import TenantHealthConfig
from .constants import BUCKET_CRITICAL, BUCKET_HEALTHY, BUCKET_WARNING
from .errors import RowSourceConnectionError, RowSourceQueryError
from .isolation import isolation_check_passed
from .logging_utils import log_check_result
from .tenant_models import (
    CheckFailure,
    EvaluationReport,
    TenantResult,
    UtilizationStatus,
)

logger = logging.getLogger(__name__)

CHECK_CONNECTION = "connection"
CHECK_ISOLATION = "tenant_isolation"
CHECK_TENANTS = "active_tenants"
CHECK_CAPACITY = "tenant_capacity"


class _PassAborted(Exception):
    """Internal: the row source became unreachable mid-pass."""

    def __init__(self, failure: CheckFailure):
        self.failure = failure
        super().__init__(failure.message)


def _failure(check: str, error: Exception) -> CheckFailure:
    return CheckFailure(check=check, error_type=type(error).__name__, message=str(error))


def blocks_production(result: TenantResult, config: TenantHealthConfig) -> bool:
    """True when any blocking dimension of the tenant is EXCEEDED."""
    return any(
        usage.status is UtilizationStatus.EXCEEDED and usage.dimension in config.blocking_dimensions
        for usage in result.dimensions
    )


class TenantHealthEvaluator:
    def __init__(self, row_source, config: Optional[TenantHealthConfig] = None):
        self.row_source = row_source
        self.config = config or TenantHealthConfig()

    def evaluate(self) -> EvaluationReport:
        """Run one evaluation pass over the row source."""
        failures: list[CheckFailure] = []

        try:
            violations = self._check_isolation(failures)
            tenants = self._list_tenants(failures)
            results = self._check_capacity(tenants, failures)
        except _PassAborted as aborted:
            logger.error(
                f"Tenant health pass aborted: {aborted.failure.message}",
                extra={"check": aborted.failure.check, "error_type": aborted.failure.error_type},
            )
            return EvaluationReport(
                production_ready=False,
                check_failures=tuple(failures) + (aborted.failure,),
            )

        notices = list(self.row_source.isolation_notices())
        for notice in notices:
            logger.warning(notice)
        if tenants is not None and not tenants:
            logger.warning("No active tenants found - potential database issue")
            notices.append("No active tenants found")

        summary = {BUCKET_HEALTHY: 0, BUCKET_WARNING: 0, BUCKET_CRITICAL: 0}
        for result in results:
            summary[result.bucket] += 1

        production_ready = (
            isolation_check_passed(violations)
            and not any(blocks_production(r, self.config) for r in results)
            and not failures
        )

        logger.info(
            "Tenant health evaluation completed",
            extra={
                "production_ready": production_ready,
                "violations": len(violations),
                "tenants": len(results),
                "check_failures": len(failures),
                **summary,
            },
        )

        return EvaluationReport(
            tenants=tuple(results),
            violations=tuple(violations),
            summary=summary,
            production_ready=production_ready,
            check_failures=tuple(failures),
            notices=tuple(notices),
        )

    def _check_isolation(self, failures: list[CheckFailure]) -> list:
        start = time.time()
        try:
            violations = list(self.row_source.find_isolation_violations())
        except RowSourceConnectionError as e:
            raise _PassAborted(_failure(CHECK_CONNECTION, e)) from e
        except RowSourceQueryError as e:
            failures.append(_failure(CHECK_ISOLATION, e))
            log_check_result(logger, CHECK_ISOLATION, False, (time.time() - start) * 1000, error=str(e))
            return []

        passed = isolation_check_passed(violations)
        if not passed:
            for violation in violations:
                logger.error(
                    f"CRITICAL: tenant isolation violation - {violation.describe()}",
                    extra={"tenant_id": str(violation.tenant_id), "kind": violation.kind.value},
                )
        log_check_result(
            logger, CHECK_ISOLATION, passed, (time.time() - start) * 1000, findings=len(violations)
        )
        return violations

    def _list_tenants(self, failures: list[CheckFailure]):
        try:
            return list(self.row_source.list_active_tenants())
        except RowSourceConnectionError as e:
            raise _PassAborted(_failure(CHECK_CONNECTION, e)) from e
        except RowSourceQueryError as e:
            failures.append(_failure(CHECK_TENANTS, e))
            return None

    def _check_capacity(self, tenants, failures: list[CheckFailure]) -> list[TenantResult]:
        if tenants is None:
            return []

        start = time.time()
        results = []
        for tenant in tenants:
            try:
                snapshot = self.row_source.get_usage_snapshot(tenant.id, self.config.usage_window_days)
                results.append(evaluate_tenant_capacity(tenant, snapshot, self.config.thresholds))
            except RowSourceConnectionError as e:
                raise _PassAborted(_failure(CHECK_CONNECTION, e)) from e
            except (RowSourceQueryError, ValueError) as e:
                failures.append(_failure(f"{CHECK_CAPACITY}:{tenant.id}", e))

        exceeded = sum(1 for r in results if r.status is UtilizationStatus.EXCEEDED)
        log_check_result(
            logger,
            CHECK_CAPACITY,
            exceeded == 0 and not any(f.check.startswith(CHECK_CAPACITY) for f in failures),
            (time.time() - start) * 1000,
            findings=exceeded,
        )
        return results


def connection_failure_report(error: Exception) -> EvaluationReport:
    return EvaluationReport(
        production_ready=False,
        check_failures=(_failure(CHECK_CONNECTION, error),),
    )


def run_tenant_health_pass(row_source, config: Optional[TenantHealthConfig] = None) -> EvaluationReport:
    """
    Connect, evaluate and disconnect.

    row_source must be a context manager (PostgresRowSource, InMemoryRowSource).
    A connection failure on entry yields a report with a single "connection"
    check failure instead of an exception.
    """
    try:
        with row_source:
            return TenantHealthEvaluator(row_source, config).evaluate()
    except RowSourceConnectionError as e:
        logger.error(f"Tenant health check could not connect: {e}")
        return connection_failure_report(e)
