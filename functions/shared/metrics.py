"""
CloudWatch Metrics Helper

Provides utilities for emitting custom metrics to CloudWatch.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .aws_clients import get_cloudwatch
from .constants import BUCKET_CRITICAL, BUCKET_HEALTHY, BUCKET_WARNING

logger = logging.getLogger(__name__)

# CloudWatch allows up to 20 metrics per request
MAX_METRICS_PER_REQUEST = 20


def _namespace() -> str:
    return os.environ.get("CLOUDWATCH_NAMESPACE", "TenantHealth")


def _metric_datum(
    metric_name: str,
    value: float,
    unit: str,
    dimensions: Optional[Dict[str, str]],
) -> dict:
    data = {
        "MetricName": metric_name,
        "Value": value,
        "Unit": unit,
        "Timestamp": datetime.now(timezone.utc),
    }
    if dimensions:
        data["Dimensions"] = [{"Name": k, "Value": v} for k, v in dimensions.items()]
    return data


def emit_metric(
    metric_name: str,
    value: float = 1.0,
    unit: str = "Count",
    dimensions: Optional[Dict[str, str]] = None,
) -> None:
    """
    Emit a custom metric to CloudWatch.

    Args:
        metric_name: Name of the metric
        value: Metric value (default: 1.0)
        unit: Unit of measurement (Count, Seconds, Percent, etc.)
        dimensions: Optional dimensions for filtering metrics

    Example:
        emit_metric("IsolationViolations", 0)
        emit_metric("ProbeLatency", 120, unit="Milliseconds", dimensions={"Service": "auth"})
    """
    try:
        get_cloudwatch().put_metric_data(
            Namespace=_namespace(),
            MetricData=[_metric_datum(metric_name, value, unit, dimensions)],
        )

        logger.debug(
            f"Emitted metric: {metric_name}={value} {unit}",
            extra={"dimensions": dimensions},
        )

    except (ClientError, BotoCoreError) as e:
        # Metrics never fail a health check
        logger.warning(f"Failed to emit metric {metric_name}: {e}")


def emit_batch_metrics(metrics: list[Dict[str, Any]]) -> None:
    """
    Emit multiple metrics, batching up to 20 per API call.

    Args:
        metrics: List of metric dictionaries with keys:
            - metric_name (str)
            - value (float)
            - unit (str, optional)
            - dimensions (dict, optional)
    """
    try:
        metric_data = [
            _metric_datum(
                metric["metric_name"],
                metric.get("value", 1.0),
                metric.get("unit", "Count"),
                metric.get("dimensions"),
            )
            for metric in metrics
        ]

        for i in range(0, len(metric_data), MAX_METRICS_PER_REQUEST):
            get_cloudwatch().put_metric_data(
                Namespace=_namespace(),
                MetricData=metric_data[i : i + MAX_METRICS_PER_REQUEST],
            )

        logger.debug(f"Emitted {len(metric_data)} metrics in batch")

    except (ClientError, BotoCoreError) as e:
        # Metrics never fail a health check
        logger.warning(f"Failed to emit batch metrics: {e}")


def emit_tenant_health_metrics(report, environment: Optional[str] = None) -> None:
    """Publish the headline numbers of an EvaluationReport."""
    dimensions = {"Environment": environment} if environment else None
    emit_batch_metrics(
        [
            {"metric_name": "TenantsHealthy", "value": report.summary.get(BUCKET_HEALTHY, 0), "dimensions": dimensions},
            {"metric_name": "TenantsWarning", "value": report.summary.get(BUCKET_WARNING, 0), "dimensions": dimensions},
            {"metric_name": "TenantsCritical", "value": report.summary.get(BUCKET_CRITICAL, 0), "dimensions": dimensions},
            {
                "metric_name": "IsolationViolations",
                "value": sum(v.count for v in report.violations),
                "dimensions": dimensions,
            },
            {"metric_name": "CheckFailures", "value": len(report.check_failures), "dimensions": dimensions},
            {"metric_name": "TenantProductionReady", "value": 1 if report.production_ready else 0, "dimensions": dimensions},
        ]
    )


def emit_service_health_metrics(summary, environment: Optional[str] = None) -> None:
    """Publish probe outcomes and per-service latency."""
    base = {"Environment": environment} if environment else {}
    metrics = [
        {"metric_name": "ServiceHealthScore", "value": summary.health_score, "unit": "Percent", "dimensions": base or None},
        {"metric_name": "ServiceCriticalFailures", "value": summary.failed, "dimensions": base or None},
    ]
    for result in summary.results:
        metrics.append(
            {
                "metric_name": "ServiceResponseTime",
                "value": result.response_time_ms,
                "unit": "Milliseconds",
                "dimensions": {**base, "Service": result.name},
            }
        )
    emit_batch_metrics(metrics)
