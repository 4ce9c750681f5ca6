"""
Service health check - scheduled by EventBridge.

Probes every configured service's /api/health endpoint concurrently and
reports response times. Slow services are warnings; failed critical
services make the check unhealthy.
"""

import asyncio
import json
import os
import sys
from datetime import datetime, timezone

# Import shared utilities
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from shared.config import ServiceHealthConfig
from shared.logging_utils import configure_structured_logging, set_run_id
from shared.metrics import emit_service_health_metrics
from shared.service_probes import probe_services, targets_from_services

logger = configure_structured_logging()


def handler(event, context):
    """Return service health status."""
    run_id = set_run_id(event)

    try:
        config = ServiceHealthConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid service health configuration: {e}")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": {"code": "invalid_configuration", "message": str(e)}}),
        }

    logger.info("Starting service health check", extra={"services": list(config.services)})

    summary = asyncio.run(probe_services(targets_from_services(config.services), config))

    if summary.failed:
        status = "unhealthy"
    elif summary.slow_services or summary.warnings:
        status = "degraded"
    else:
        status = "healthy"

    for result in summary.results:
        if not result.healthy or result.slow:
            logger.warning(result.describe(), extra={"service": result.name})

    emit_service_health_metrics(summary, environment=config.environment)

    body = {
        "status": status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "runId": run_id,
        "environment": config.environment,
        **summary.to_dict(),
    }

    return {
        "statusCode": 503 if status == "unhealthy" else 200,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body),
    }
