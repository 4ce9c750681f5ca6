"""
Tenant health data model.

Tenants and usage snapshots are read-only inputs supplied by a row source.
Everything the evaluator produces (violations, per-tenant results, the
report) is plain data and serializes with to_dict().
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .constants import BUCKET_CRITICAL, BUCKET_HEALTHY, BUCKET_WARNING


class UtilizationStatus(Enum):
    UNLIMITED = "UNLIMITED"
    OK = "OK"
    HIGH = "HIGH"
    EXCEEDED = "EXCEEDED"


class ResourceDimension(Enum):
    USERS = "users"
    API_CALLS = "api_calls"


class ViolationKind(Enum):
    MISMATCHED_USER = "mismatched_user"
    MISMATCHED_USAGE = "mismatched_usage"
    ORPHANED_RECORD = "orphaned_record"


@dataclass(frozen=True)
class TenantLimits:
    """Per-dimension limits; -1 means unlimited."""

    users: int
    api_calls: int

    def for_dimension(self, dimension: ResourceDimension) -> int:
        if dimension is ResourceDimension.USERS:
            return self.users
        return self.api_calls


@dataclass(frozen=True)
class Tenant:
    id: Any
    name: str
    plan: str
    status: str
    limits: TenantLimits


@dataclass(frozen=True)
class TenantUsageSnapshot:
    """Usage aggregated over the trailing window for one tenant."""

    tenant_id: Any
    active_user_count: int
    api_call_count: int

    def for_dimension(self, dimension: ResourceDimension) -> int:
        if dimension is ResourceDimension.USERS:
            return self.active_user_count
        return self.api_call_count


@dataclass(frozen=True)
class ChildRecord:
    """
    A membership or usage row that must belong to exactly one tenant.

    parent_tenant_id is the tenant reached through the join path used to
    fetch the row, or None when the row was read directly.
    """

    table: str
    record_id: Any
    tenant_id: Any
    parent_tenant_id: Optional[Any] = None


@dataclass(frozen=True)
class IsolationViolation:
    tenant_id: Any
    kind: ViolationKind
    count: int
    table: Optional[str] = None

    def to_dict(self) -> dict:
        body = {
            "tenantId": self.tenant_id,
            "kind": self.kind.value,
            "count": self.count,
        }
        if self.table:
            body["table"] = self.table
        return body

    def describe(self) -> str:
        if self.kind is ViolationKind.ORPHANED_RECORD:
            return f"{self.count} orphaned records in {self.table} referencing tenant {self.tenant_id}"
        return f"Tenant {self.tenant_id}: {self.count} {self.kind.value} violations"


@dataclass(frozen=True)
class DimensionUsage:
    dimension: ResourceDimension
    count: int
    limit: int
    status: UtilizationStatus
    utilization_pct: Optional[int]

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "limit": self.limit,
            "status": self.status.value,
            "utilizationPct": self.utilization_pct,
        }


@dataclass(frozen=True)
class TenantResult:
    id: Any
    name: str
    plan: str
    status: UtilizationStatus
    users: DimensionUsage
    api_calls: DimensionUsage

    @property
    def user_utilization_pct(self) -> Optional[int]:
        return self.users.utilization_pct

    @property
    def api_utilization_pct(self) -> Optional[int]:
        return self.api_calls.utilization_pct

    @property
    def dimensions(self) -> tuple[DimensionUsage, DimensionUsage]:
        return (self.users, self.api_calls)

    @property
    def bucket(self) -> str:
        if self.status is UtilizationStatus.EXCEEDED:
            return BUCKET_CRITICAL
        if self.status is UtilizationStatus.HIGH:
            return BUCKET_WARNING
        return BUCKET_HEALTHY

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "plan": self.plan,
            "status": self.status.value,
            "userUtilizationPct": self.user_utilization_pct,
            "apiUtilizationPct": self.api_utilization_pct,
            "users": self.users.to_dict(),
            "apiCalls": self.api_calls.to_dict(),
        }


@dataclass(frozen=True)
class CheckFailure:
    """An infrastructure failure that prevented a check from running."""

    check: str
    error_type: str
    message: str

    def to_dict(self) -> dict:
        return {
            "check": self.check,
            "errorType": self.error_type,
            "message": self.message,
        }


@dataclass(frozen=True)
class EvaluationReport:
    tenants: tuple[TenantResult, ...] = ()
    violations: tuple[IsolationViolation, ...] = ()
    summary: dict = field(default_factory=lambda: {BUCKET_HEALTHY: 0, BUCKET_WARNING: 0, BUCKET_CRITICAL: 0})
    production_ready: bool = False
    check_failures: tuple[CheckFailure, ...] = ()
    notices: tuple[str, ...] = ()

    @property
    def isolation_passed(self) -> bool:
        from .isolation import isolation_check_passed

        return isolation_check_passed(self.violations)

    def to_dict(self) -> dict:
        return {
            "tenants": [t.to_dict() for t in self.tenants],
            "violations": [v.to_dict() for v in self.violations],
            "summary": dict(self.summary),
            "productionReady": self.production_ready,
            "checkFailures": [f.to_dict() for f in self.check_failures],
            "notices": list(self.notices),
        }
