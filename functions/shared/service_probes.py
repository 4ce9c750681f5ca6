"""
Concurrent HTTP health probes.

Each target is probed independently with asyncio.gather(). A probe never
raises: timeouts, transport errors and malformed URLs degrade to a failed
ProbeResult, so one bad target cannot block or corrupt another's result.

Classification per probe:
- status in expected_status          -> passed (slow if over threshold)
- failed and critical                -> failed, blocks readiness
- failed and non-critical            -> warning
A failing primary URL is retried once against fallback_url if one is set.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

import httpx

from .config import ServiceHealthConfig
from .constants import DEFAULT_PROBE_TIMEOUT, DEFAULT_SLOW_RESPONSE_MS, HEALTH_PATH
from .logging_utils import log_external_call

logger = logging.getLogger(__name__)

# Response bodies are only kept for diagnostics
MAX_BODY_CHARS = 200


@dataclass(frozen=True)
class ProbeTarget:
    name: str
    url: str
    fallback_url: Optional[str] = None
    expected_status: tuple[int, ...] = (200,)
    critical: bool = True
    timeout: Optional[float] = None


@dataclass(frozen=True)
class ProbeResult:
    name: str
    url: str
    healthy: bool
    critical: bool
    response_time_ms: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    slow: bool = False
    body: str = ""

    @property
    def outcome(self) -> str:
        if self.healthy:
            return "slow" if self.slow else "passed"
        return "failed" if self.critical else "warning"

    def describe(self) -> str:
        if self.healthy:
            label = "SLOW" if self.slow else "OK"
            return f"{self.name} - {label} (status {self.status_code}, {self.response_time_ms}ms)"
        reason = self.error or f"status {self.status_code}"
        suffix = "" if self.critical else " (non-critical)"
        return f"{self.name} - FAILED ({reason}, {self.response_time_ms}ms){suffix}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "url": self.url,
            "healthy": self.healthy,
            "critical": self.critical,
            "statusCode": self.status_code,
            "responseTimeMs": self.response_time_ms,
            "slow": self.slow,
            "error": self.error,
        }


@dataclass(frozen=True)
class ProbeSummary:
    results: tuple[ProbeResult, ...] = ()
    passed: int = 0
    failed: int = 0
    warnings: int = 0
    critical_failures: tuple[str, ...] = field(default_factory=tuple)

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.warnings

    @property
    def slow_services(self) -> list[str]:
        return [r.name for r in self.results if r.slow]

    @property
    def health_score(self) -> int:
        """Share of probes that passed, as a whole percentage."""
        if self.total == 0:
            return 0
        return int(self.passed / self.total * 100 + 0.5)

    @property
    def production_ready(self) -> bool:
        return not self.critical_failures

    def to_dict(self) -> dict:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "warnings": self.warnings,
            "healthScore": self.health_score,
            "criticalFailures": list(self.critical_failures),
            "slowServices": self.slow_services,
            "productionReady": self.production_ready,
            "results": [r.to_dict() for r in self.results],
        }


def targets_from_services(services: Mapping[str, str], path: str = HEALTH_PATH) -> list[ProbeTarget]:
    """Build one critical target per service base URL."""
    return [ProbeTarget(name=name, url=f"{base_url.rstrip('/')}{path}") for name, base_url in services.items()]


async def _request(
    client: httpx.AsyncClient,
    url: str,
    expected_status: tuple[int, ...],
    timeout: float,
) -> tuple[bool, Optional[int], Optional[str], int, str]:
    start = time.monotonic()
    try:
        response = await client.get(url, timeout=timeout)
    except httpx.TimeoutException:
        elapsed = int((time.monotonic() - start) * 1000)
        return False, None, "Request timeout", elapsed, ""
    except httpx.InvalidURL as e:
        elapsed = int((time.monotonic() - start) * 1000)
        return False, None, f"Invalid URL: {e}", elapsed, ""
    except httpx.HTTPError as e:
        elapsed = int((time.monotonic() - start) * 1000)
        return False, None, str(e) or type(e).__name__, elapsed, ""

    elapsed = int((time.monotonic() - start) * 1000)
    ok = response.status_code in expected_status
    return ok, response.status_code, None, elapsed, response.text[:MAX_BODY_CHARS]


async def probe_endpoint(
    client: httpx.AsyncClient,
    target: ProbeTarget,
    default_timeout: float = DEFAULT_PROBE_TIMEOUT,
    slow_threshold_ms: int = DEFAULT_SLOW_RESPONSE_MS,
) -> ProbeResult:
    """Probe one target; never raises for network failures."""
    timeout = target.timeout or default_timeout
    url = target.url

    ok, status_code, error, elapsed, body = await _request(client, url, target.expected_status, timeout)

    if not ok and target.fallback_url:
        logger.info(f"{target.name}: primary probe failed, trying fallback {target.fallback_url}")
        url = target.fallback_url
        ok, status_code, error, elapsed, body = await _request(client, url, target.expected_status, timeout)

    log_external_call(logger, target.name, f"GET {url}", ok, elapsed, error=error)

    return ProbeResult(
        name=target.name,
        url=url,
        healthy=ok,
        critical=target.critical,
        response_time_ms=elapsed,
        status_code=status_code,
        error=error,
        slow=ok and elapsed > slow_threshold_ms,
        body=body,
    )


def summarize(results: Iterable[ProbeResult]) -> ProbeSummary:
    results = tuple(results)
    passed = failed = warnings = 0
    critical_failures = []

    for result in results:
        if result.healthy:
            passed += 1
        elif result.critical:
            failed += 1
            critical_failures.append(result.name)
        else:
            warnings += 1

    return ProbeSummary(
        results=results,
        passed=passed,
        failed=failed,
        warnings=warnings,
        critical_failures=tuple(critical_failures),
    )


async def probe_services(
    targets: Iterable[ProbeTarget],
    config: Optional[ServiceHealthConfig] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ProbeSummary:
    """
    Probe every target concurrently and summarize.

    Pass client to reuse a configured httpx.AsyncClient (tests inject one
    with httpx.MockTransport); otherwise a short-lived client is created.
    """
    config = config or ServiceHealthConfig()
    targets = list(targets)

    async def _run(http: httpx.AsyncClient) -> list[ProbeResult]:
        return await asyncio.gather(
            *(probe_endpoint(http, t, config.timeout_seconds, config.slow_response_ms) for t in targets)
        )

    if client is not None:
        results = await _run(client)
    else:
        async with httpx.AsyncClient(follow_redirects=True) as http:
            results = await _run(http)

    summary = summarize(results)
    logger.info(
        "Service probes completed",
        extra={
            "passed": summary.passed,
            "failed": summary.failed,
            "warnings": summary.warnings,
            "health_score": summary.health_score,
        },
    )
    return summary
