#!/usr/bin/env python3
"""
Deployment validation.

Runs the infrastructure health check and the tenant health check, each up
to --attempts times with --retry-delay seconds between attempts, and
approves or blocks the deployment.

Usage:
    python scripts/deployment_validation.py --environment staging
    python scripts/deployment_validation.py --attempts 1 --skip-infrastructure
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))
from shared.config import ServiceHealthConfig, TenantHealthConfig
from shared.constants import EXIT_NOT_READY, EXIT_READY
from shared.deployment import ValidationStep, validate_deployment, validation_retry_config
from shared.evaluator import run_tenant_health_pass
from shared.logging_utils import configure_structured_logging, set_run_id
from shared.row_source import PostgresRowSource
from shared.service_probes import probe_services, targets_from_services


def infrastructure_check(config: ServiceHealthConfig):
    def check() -> bool:
        summary = asyncio.run(probe_services(targets_from_services(config.services), config))
        return summary.production_ready

    return check


def tenant_health_check(config: TenantHealthConfig):
    def check() -> bool:
        source = PostgresRowSource(config.database, config.connect_retry)
        return run_tenant_health_pass(source, config).production_ready

    return check


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Validate deployment readiness")
    parser.add_argument("--environment", help="Environment name (default: ENVIRONMENT or staging)")
    parser.add_argument("--attempts", type=int, default=3, help="Attempts per step (default: 3)")
    parser.add_argument(
        "--retry-delay",
        type=float,
        default=10.0,
        help="Seconds between attempts (default: 10)",
    )
    parser.add_argument("--skip-infrastructure", action="store_true", help="Skip service probes")
    parser.add_argument("--skip-tenants", action="store_true", help="Skip tenant health check")
    parser.add_argument("--json", action="store_true", help="Print the verdict as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log step details to stderr")
    args = parser.parse_args(argv)

    configure_structured_logging(logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr)
    set_run_id()

    try:
        retry_config = validation_retry_config(args.attempts, args.retry_delay)
        service_config = ServiceHealthConfig.from_env()
        tenant_config = TenantHealthConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_NOT_READY

    environment = args.environment or os.environ.get("ENVIRONMENT", "staging")
    service_config = replace(service_config, environment=environment)

    steps = []
    if not args.skip_infrastructure:
        steps.append(ValidationStep("Infrastructure Health Check", infrastructure_check(service_config)))
    if not args.skip_tenants:
        steps.append(ValidationStep("Production Tenant Health Check", tenant_health_check(tenant_config)))

    verdict = validate_deployment(environment, steps, retry_config)

    if args.json:
        print(json.dumps(verdict.to_dict(), indent=2))
    else:
        print("╔════════════════════════════════════════╗")
        print("║      DEPLOYMENT READINESS REPORT       ║")
        print("╚════════════════════════════════════════╝")
        for step in verdict.steps:
            status = "✅ PASSED" if step.passed else f"❌ FAILED after {step.attempts} attempts"
            print(f"{step.name}: {status}")

        if verdict.approved:
            print(f"\n🚀 DEPLOYMENT APPROVED FOR {environment.upper()}")
        else:
            print(f"\n🛑 DEPLOYMENT BLOCKED FOR {environment.upper()}")

    return EXIT_READY if verdict.approved else EXIT_NOT_READY


if __name__ == "__main__":
    sys.exit(main())
