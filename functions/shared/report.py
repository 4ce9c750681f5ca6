"""
Plain-text rendering of an EvaluationReport.
"""

from .capacity import format_limit, format_pct
from .constants import BUCKET_CRITICAL, BUCKET_HEALTHY, BUCKET_WARNING
from .tenant_models import EvaluationReport, TenantResult, UtilizationStatus

STATUS_MARKS = {
    BUCKET_HEALTHY: "✓",
    BUCKET_WARNING: "⚠",
    BUCKET_CRITICAL: "✗",
}

STATUS_LABELS = {
    UtilizationStatus.EXCEEDED: "CRITICAL",
    UtilizationStatus.HIGH: "WARNING",
    UtilizationStatus.OK: "OK",
    UtilizationStatus.UNLIMITED: "OK",
}


def format_tenant_line(result: TenantResult) -> str:
    """e.g. '✗ Acme - CRITICAL: Users: 11/10 (110%), API: 200/1000 (20%)'"""
    users, api = result.users, result.api_calls
    return (
        f"{STATUS_MARKS[result.bucket]} {result.name} - {STATUS_LABELS[result.status]}: "
        f"Users: {users.count}/{format_limit(users.limit)} ({format_pct(users.utilization_pct)}), "
        f"API: {api.count}/{format_limit(api.limit)} ({format_pct(api.utilization_pct)})"
    )


def render_report(report: EvaluationReport) -> str:
    lines = ["═══ Tenant Isolation ═══"]

    if report.violations:
        lines.append(f"✗ CRITICAL: {len(report.violations)} tenant isolation violation(s)")
        lines.extend(f"  - {v.describe()}" for v in report.violations)
    else:
        lines.append("✓ Tenant isolation verified - no data leakage detected")

    lines.append("")
    lines.append("═══ Tenant Capacity ═══")
    lines.extend(format_tenant_line(r) for r in report.tenants)
    lines.append(
        f"Summary: {report.summary.get(BUCKET_HEALTHY, 0)} healthy, "
        f"{report.summary.get(BUCKET_WARNING, 0)} warnings, "
        f"{report.summary.get(BUCKET_CRITICAL, 0)} critical"
    )

    if report.notices:
        lines.append("")
        lines.extend(f"⚠ {notice}" for notice in report.notices)

    if report.check_failures:
        lines.append("")
        lines.append("═══ Check Failures ═══")
        lines.extend(f"✗ {f.check}: {f.message}" for f in report.check_failures)

    lines.append("")
    if report.production_ready:
        lines.append("✅ TENANT SYSTEM PRODUCTION READY")
    else:
        lines.append("❌ PRODUCTION DEPLOYMENT BLOCKED")

    return "\n".join(lines)
