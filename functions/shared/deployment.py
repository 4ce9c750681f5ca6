"""
Deployment validation: infrastructure and tenant health as retried steps.

Each step is a callable returning True when it passes. A failing step is
re-run under the shared retry policy; only after the last attempt fails is
it marked failed. Deployment is approved when every step passed.
"""

import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, Optional

from .errors import ValidationStepFailed
from .retry import VALIDATION_RETRY_CONFIG, RetryConfig, retry_call

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationStep:
    name: str
    check: Callable[[], bool]


@dataclass(frozen=True)
class StepResult:
    name: str
    passed: bool
    attempts: int
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "passed": self.passed,
            "attempts": self.attempts,
            "error": self.error,
        }


@dataclass(frozen=True)
class DeploymentVerdict:
    environment: str
    steps: tuple[StepResult, ...]

    @property
    def approved(self) -> bool:
        return all(step.passed for step in self.steps)

    def to_dict(self) -> dict:
        return {
            "environment": self.environment,
            "approved": self.approved,
            "steps": [s.to_dict() for s in self.steps],
        }


def validation_retry_config(attempts: int, delay_seconds: float) -> RetryConfig:
    """Fixed-delay policy: `attempts` tries, `delay_seconds` apart."""
    if attempts < 1:
        raise ValueError(f"attempts must be at least 1, got {attempts}")
    return replace(
        VALIDATION_RETRY_CONFIG,
        max_retries=attempts - 1,
        base_delay=delay_seconds,
        max_delay=delay_seconds,
    )


def run_step(
    step: ValidationStep,
    retry_config: RetryConfig = VALIDATION_RETRY_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> StepResult:
    """Run one step under the retry policy; never raises for a failing check."""
    attempts = 0

    def _attempt() -> None:
        nonlocal attempts
        attempts += 1
        if not step.check():
            raise ValidationStepFailed(step.name)

    policy = replace(retry_config, retryable_exceptions=(ValidationStepFailed,))
    try:
        retry_call(_attempt, config=policy, sleep=sleep)
    except ValidationStepFailed as e:
        logger.error(f"{step.name} - FAILED after {attempts} attempts", extra={"step": step.name})
        return StepResult(step.name, False, attempts, error=e.message)

    logger.info(f"{step.name} - PASSED", extra={"step": step.name, "attempts": attempts})
    return StepResult(step.name, True, attempts)


def validate_deployment(
    environment: str,
    steps: Iterable[ValidationStep],
    retry_config: RetryConfig = VALIDATION_RETRY_CONFIG,
    sleep: Callable[[float], None] = time.sleep,
) -> DeploymentVerdict:
    results = tuple(run_step(step, retry_config, sleep) for step in steps)
    verdict = DeploymentVerdict(environment=environment, steps=results)
    logger.info(
        f"Deployment {'approved' if verdict.approved else 'blocked'} for {environment}",
        extra={"environment": environment, "approved": verdict.approved},
    )
    return verdict
