# Shared tenant health utilities package
from .capacity import classify_utilization, overall_status, utilization_pct
from .config import ServiceHealthConfig, TenantHealthConfig
from .errors import HealthCheckError, RowSourceConnectionError, RowSourceQueryError
from .evaluator import TenantHealthEvaluator
from .isolation import find_isolation_violations
from .tenant_models import EvaluationReport, UtilizationStatus

__all__ = [
    "classify_utilization",
    "overall_status",
    "utilization_pct",
    "TenantHealthConfig",
    "ServiceHealthConfig",
    "HealthCheckError",
    "RowSourceConnectionError",
    "RowSourceQueryError",
    "TenantHealthEvaluator",
    "find_isolation_violations",
    "EvaluationReport",
    "UtilizationStatus",
]
