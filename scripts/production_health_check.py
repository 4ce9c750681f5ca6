#!/usr/bin/env python3
"""
Production health check suite.

Probes HTTP endpoints concurrently and checks that the environment's AWS
resources exist. Critical endpoint failures block production readiness;
non-critical failures and AWS resource checks only produce warnings.

Targets come from the *_SERVICE_URL env vars, from --service/--optional
flags, or from a JSON file (--targets) shaped like:

    [
      {"name": "API Gateway Auth", "url": "https://.../auth/health",
       "expectedStatus": [200, 403], "critical": true},
      {"name": "CloudFront", "url": "https://.../health",
       "fallback": "https://...", "timeout": 5}
    ]

Usage:
    python scripts/production_health_check.py --environment staging
    python scripts/production_health_check.py --targets targets.json --skip-aws
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import replace

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))
from shared.aws_checks import run_aws_checks
from shared.config import ServiceHealthConfig
from shared.constants import EXIT_NOT_READY, EXIT_READY
from shared.logging_utils import configure_structured_logging, set_run_id
from shared.service_probes import ProbeTarget, probe_services, targets_from_services


def parse_named_url(value: str) -> tuple[str, str]:
    name, sep, url = value.partition("=")
    if not sep or not name or not url:
        raise argparse.ArgumentTypeError(f"expected name=url, got {value!r}")
    return name, url


def load_targets(path: str) -> list[ProbeTarget]:
    """Load probe targets from a JSON file."""
    with open(path) as f:
        entries = json.load(f)

    targets = []
    for entry in entries:
        targets.append(
            ProbeTarget(
                name=entry["name"],
                url=entry["url"],
                fallback_url=entry.get("fallback"),
                expected_status=tuple(entry.get("expectedStatus", [200])),
                critical=entry.get("critical", True),
                timeout=entry.get("timeout"),
            )
        )
    return targets


def build_targets(args, config: ServiceHealthConfig) -> list[ProbeTarget]:
    targets = []
    if args.targets:
        targets.extend(load_targets(args.targets))
    targets.extend(ProbeTarget(name=name, url=url) for name, url in args.service)
    targets.extend(ProbeTarget(name=name, url=url, critical=False) for name, url in args.optional)

    if not targets:
        targets = targets_from_services(config.services)
    return targets


def run(config: ServiceHealthConfig, targets: list[ProbeTarget], skip_aws: bool = False, as_json: bool = False) -> bool:
    """Run all checks, print the summary, return production readiness."""
    summary = asyncio.run(probe_services(targets, config))
    aws_results = [] if skip_aws else run_aws_checks(config.environment, config.region, config.cognito_pool_filter)

    aws_passed = sum(1 for r in aws_results if r.passed)
    aws_warnings = len(aws_results) - aws_passed

    passed = summary.passed + aws_passed
    warnings = summary.warnings + aws_warnings
    total = passed + summary.failed + warnings
    health_score = int(passed / total * 100 + 0.5) if total else 0
    ready = summary.production_ready

    if as_json:
        print(
            json.dumps(
                {
                    "environment": config.environment,
                    "probes": summary.to_dict(),
                    "aws": [r.to_dict() for r in aws_results],
                    "healthScore": health_score,
                    "productionReady": ready,
                },
                indent=2,
            )
        )
        return ready

    print("╔════════════════════════════════════════╗")
    print("║     PRODUCTION HEALTH CHECK SUITE      ║")
    print(f"║     Environment: {config.environment.upper():<22}║")
    print("╚════════════════════════════════════════╝")

    print("\n═══ Endpoint Health ═══")
    for result in summary.results:
        mark = "✓" if result.healthy else ("✗" if result.critical else "⚠")
        print(f"{mark} {result.describe()}")

    if aws_results:
        print("\n═══ AWS Services Health ═══")
        for result in aws_results:
            print(f"{'✓' if result.passed else '⚠'} {result.describe()}")

    print("\n═══ Summary ═══")
    print(f"  ✓ Passed:   {passed}")
    print(f"  ✗ Failed:   {summary.failed}")
    print(f"  ⚠ Warnings: {warnings}")
    print(f"\n  Health Score: {health_score}%")

    if ready:
        print("\n🎉 PRODUCTION READY")
        if warnings:
            print(f"⚠️  {warnings} non-critical warnings (acceptable)")
    else:
        print("\n❌ NOT PRODUCTION READY")
        print("Critical services are failing:")
        for name in summary.critical_failures:
            print(f"   - {name}")

    return ready


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Probe service endpoints and AWS resources")
    parser.add_argument("--environment", help="Environment name (default: ENVIRONMENT or dev)")
    parser.add_argument("--region", help="AWS region (default: AWS_REGION or us-east-1)")
    parser.add_argument("--targets", help="JSON file with probe targets")
    parser.add_argument(
        "--service",
        action="append",
        default=[],
        type=parse_named_url,
        metavar="NAME=URL",
        help="Critical endpoint to probe (repeatable)",
    )
    parser.add_argument(
        "--optional",
        action="append",
        default=[],
        type=parse_named_url,
        metavar="NAME=URL",
        help="Non-critical endpoint to probe (repeatable)",
    )
    parser.add_argument("--skip-aws", action="store_true", help="Skip AWS resource checks")
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument("--verbose", action="store_true", help="Log probe details to stderr")
    args = parser.parse_args(argv)

    configure_structured_logging(logging.INFO if args.verbose else logging.WARNING, stream=sys.stderr)
    set_run_id()

    try:
        config = ServiceHealthConfig.from_env()
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return EXIT_NOT_READY

    if args.environment:
        config = replace(config, environment=args.environment)
    if args.region:
        config = replace(config, region=args.region)

    try:
        targets = build_targets(args, config)
    except (OSError, ValueError, KeyError) as e:
        print(f"Invalid targets file: {e}", file=sys.stderr)
        return EXIT_NOT_READY

    return EXIT_READY if run(config, targets, skip_aws=args.skip_aws, as_json=args.json) else EXIT_NOT_READY


if __name__ == "__main__":
    sys.exit(main())
