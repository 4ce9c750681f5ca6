"""
Tenant health check - scheduled by EventBridge.

Checks:
- Tenant isolation (mismatched and orphaned child records)
- Tenant capacity (users and API calls against plan limits)

Returns 200 when the tenant system is production ready, 503 otherwise.
"""

import json
import os
import sys
import time
from datetime import datetime, timezone

# Import shared utilities
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))
from shared.config import TenantHealthConfig
from shared.evaluator import run_tenant_health_pass
from shared.logging_utils import configure_structured_logging, log_check_result, set_run_id
from shared.metrics import emit_tenant_health_metrics
from shared.row_source import PostgresRowSource

logger = configure_structured_logging()


def handler(event, context):
    """Run one tenant health pass and publish the result."""
    start_time = time.time()
    run_id = set_run_id(event)

    try:
        config = TenantHealthConfig.from_env()
    except ValueError as e:
        logger.error(f"Invalid tenant health configuration: {e}")
        return {
            "statusCode": 500,
            "headers": {"Content-Type": "application/json"},
            "body": json.dumps({"error": {"code": "invalid_configuration", "message": str(e)}}),
        }

    logger.info("Starting tenant health check", extra={"database": config.database.name})

    source = PostgresRowSource(config.database, config.connect_retry)
    report = run_tenant_health_pass(source, config)

    emit_tenant_health_metrics(report, environment=os.environ.get("ENVIRONMENT"))

    log_check_result(
        logger,
        "tenant_health",
        report.production_ready,
        (time.time() - start_time) * 1000,
        findings=len(report.violations) + report.summary.get("critical", 0),
    )

    body = {
        "status": "healthy" if report.production_ready else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "runId": run_id,
        **report.to_dict(),
    }

    return {
        "statusCode": 200 if report.production_ready else 503,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, default=str),
    }
