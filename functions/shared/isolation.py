"""
Tenant isolation checks.

A child record (membership or usage row) violates isolation when:
- its tenant_id differs from the tenant reached through the join path used
  to fetch it (mismatch), or
- its tenant_id references no existing tenant (orphan).

Zero tolerance: any violation fails the check. Nothing here remediates.
"""

from collections import Counter
from typing import Iterable

from .constants import TENANT_USAGE_TABLE, TENANT_USERS_TABLE
from .tenant_models import ChildRecord, IsolationViolation, Tenant, ViolationKind

# Child tables and the mismatch kind they produce
MISMATCH_KINDS = {
    TENANT_USERS_TABLE: ViolationKind.MISMATCHED_USER,
    TENANT_USAGE_TABLE: ViolationKind.MISMATCHED_USAGE,
}


def mismatch_kind_for(table: str) -> ViolationKind:
    """Usage-style tables map to mismatched_usage, everything else to mismatched_user."""
    if table in MISMATCH_KINDS:
        return MISMATCH_KINDS[table]
    return ViolationKind.MISMATCHED_USAGE if "usage" in table else ViolationKind.MISMATCHED_USER


def classify_record(record: ChildRecord, tenant_ids: frozenset):
    """Return the ViolationKind for one record, or None if it is clean."""
    if record.tenant_id not in tenant_ids:
        return ViolationKind.ORPHANED_RECORD
    if record.parent_tenant_id is not None and record.tenant_id != record.parent_tenant_id:
        return mismatch_kind_for(record.table)
    return None


def find_isolation_violations(
    tenants: Iterable[Tenant],
    records: Iterable[ChildRecord],
) -> list[IsolationViolation]:
    """
    Detect isolation violations across all child records.

    tenants must be the full tenant set (any status): a record pointing at a
    suspended tenant is not an orphan. Violations are aggregated per
    (tenant_id, kind, table) and returned in a stable order.
    """
    tenant_ids = frozenset(t.id for t in tenants)
    counts = Counter()

    for record in records:
        kind = classify_record(record, tenant_ids)
        if kind is not None:
            counts[(record.tenant_id, kind, record.table)] += 1

    violations = [
        IsolationViolation(tenant_id=tenant_id, kind=kind, count=count, table=table)
        for (tenant_id, kind, table), count in counts.items()
    ]
    return sort_violations(violations)


def sort_violations(violations: Iterable[IsolationViolation]) -> list[IsolationViolation]:
    return sorted(
        violations,
        key=lambda v: (v.kind.value, v.table or "", str(v.tenant_id)),
    )


def isolation_check_passed(violations: Iterable[IsolationViolation]) -> bool:
    """Zero tolerance: the check passes only with no violations at all."""
    return not any(v.count > 0 for v in violations)
