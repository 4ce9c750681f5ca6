"""
Capacity classification for tenant resource dimensions.

Policy, per dimension:

    limit == -1               -> UNLIMITED
    count >= limit            -> EXCEEDED
    count >  limit * ratio    -> HIGH
    otherwise                 -> OK

ratio is the HIGH threshold configured for the dimension
(DEFAULT_HIGH_UTILIZATION_RATIO unless overridden).
"""

import math
from typing import Iterable, Optional

from .constants import (
    DEFAULT_HIGH_UTILIZATION_RATIO,
    UNLIMITED_LIMIT,
    UNLIMITED_SYMBOL,
)
from .tenant_models import (
    DimensionUsage,
    ResourceDimension,
    Tenant,
    TenantResult,
    TenantUsageSnapshot,
    UtilizationStatus,
)


def _validate_limit(limit: int) -> None:
    if limit < UNLIMITED_LIMIT:
        raise ValueError(f"Invalid limit {limit}: must be -1 (unlimited) or >= 0")


def classify_utilization(
    count: int,
    limit: int,
    high_ratio: float = DEFAULT_HIGH_UTILIZATION_RATIO,
) -> UtilizationStatus:
    """Classify one (count, limit) pair."""
    _validate_limit(limit)

    if limit == UNLIMITED_LIMIT:
        return UtilizationStatus.UNLIMITED
    if count >= limit:
        return UtilizationStatus.EXCEEDED
    if count > limit * high_ratio:
        return UtilizationStatus.HIGH
    return UtilizationStatus.OK


def utilization_pct(count: int, limit: int) -> Optional[int]:
    """
    Percentage of the limit in use, rounded half-up.

    None for unlimited dimensions. A zero limit has no headroom at all and
    reports 100.
    """
    _validate_limit(limit)

    if limit == UNLIMITED_LIMIT:
        return None
    if limit == 0:
        return 100
    return int(math.floor(count / limit * 100 + 0.5))


def overall_status(statuses: Iterable[UtilizationStatus]) -> UtilizationStatus:
    """Worst status across dimensions; UNLIMITED only when every dimension is."""
    statuses = list(statuses)

    if UtilizationStatus.EXCEEDED in statuses:
        return UtilizationStatus.EXCEEDED
    if UtilizationStatus.HIGH in statuses:
        return UtilizationStatus.HIGH
    if statuses and all(s is UtilizationStatus.UNLIMITED for s in statuses):
        return UtilizationStatus.UNLIMITED
    return UtilizationStatus.OK


def format_limit(limit: int) -> str:
    return UNLIMITED_SYMBOL if limit == UNLIMITED_LIMIT else str(limit)


def format_pct(pct: Optional[int]) -> str:
    return UNLIMITED_SYMBOL if pct is None else f"{pct}%"


def measure_dimension(
    dimension: ResourceDimension,
    count: int,
    limit: int,
    high_ratio: float = DEFAULT_HIGH_UTILIZATION_RATIO,
) -> DimensionUsage:
    return DimensionUsage(
        dimension=dimension,
        count=count,
        limit=limit,
        status=classify_utilization(count, limit, high_ratio),
        utilization_pct=utilization_pct(count, limit),
    )


def evaluate_tenant_capacity(
    tenant: Tenant,
    snapshot: TenantUsageSnapshot,
    thresholds=None,
) -> TenantResult:
    """
    Classify both dimensions of one tenant.

    thresholds is a CapacityThresholds (or anything with high_ratio_for());
    None applies the default ratio to every dimension.
    """
    dimensions = {}
    for dimension in ResourceDimension:
        ratio = thresholds.high_ratio_for(dimension) if thresholds else DEFAULT_HIGH_UTILIZATION_RATIO
        dimensions[dimension] = measure_dimension(
            dimension,
            snapshot.for_dimension(dimension),
            tenant.limits.for_dimension(dimension),
            ratio,
        )

    users = dimensions[ResourceDimension.USERS]
    api_calls = dimensions[ResourceDimension.API_CALLS]

    return TenantResult(
        id=tenant.id,
        name=tenant.name,
        plan=tenant.plan,
        status=overall_status([users.status, api_calls.status]),
        users=users,
        api_calls=api_calls,
    )
