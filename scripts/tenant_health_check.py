#!/usr/bin/env python3
"""
Production tenant health check.

Verifies tenant isolation and tenant capacity against the tenants database
and prints a readiness report. Exit code 0 means production ready, 1 means
blocked (violations, exceeded capacity, or a check that could not run).

Usage:
    python scripts/tenant_health_check.py                  # Uses DB_* env vars
    python scripts/tenant_health_check.py --window-days 7  # Shorter usage window
    python scripts/tenant_health_check.py --json           # Machine-readable report
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime, timezone

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))
from shared.config import TenantHealthConfig
from shared.constants import EXIT_NOT_READY, EXIT_READY
from shared.evaluator import run_tenant_health_pass
from shared.logging_utils import configure_structured_logging, set_run_id
from shared.report import render_report
from shared.row_source import PostgresRowSource


def run(config: TenantHealthConfig, as_json: bool = False, row_source=None) -> bool:
    """Run one pass, print the report, return production readiness."""
    source = row_source or PostgresRowSource(config.database, config.connect_retry)
    report = run_tenant_health_pass(source, config)

    if as_json:
        print(json.dumps(report.to_dict(), indent=2, default=str))
    else:
        print("╔════════════════════════════════════════╗")
        print("║    PRODUCTION TENANT HEALTH VALIDATOR  ║")
        print("╚════════════════════════════════════════╝")
        print(datetime.now(timezone.utc).isoformat())
        print()
        print(render_report(report))

    return report.production_ready


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Check tenant isolation and capacity")
    parser.add_argument(
        "--window-days",
        type=int,
        default=None,
        help="Trailing window for API call usage (default: USAGE_WINDOW_DAYS or 30)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log check details to stderr",
    )
    args = parser.parse_args(argv)

    configure_structured_logging(logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr)
    set_run_id()

    try:
        config = TenantHealthConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_NOT_READY

    if args.window_days is not None:
        if args.window_days <= 0:
            parser.error("--window-days must be positive")
        config = replace(config, usage_window_days=args.window_days)

    return EXIT_READY if run(config, as_json=args.json) else EXIT_NOT_READY


if __name__ == "__main__":
    sys.exit(main())
