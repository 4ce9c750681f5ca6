"""
Centralized retry logic with exponential backoff and jitter.

Features:
- Configurable retry counts and delays
- Exponential backoff with jitter (prevents thundering herd)
- Retryable exception filtering
- Structured logging for observability

Every fallible external call (database connect, validation step)
goes through retry_call() with one of the configs below.
The evaluator itself never retries; the caller decides whether to re-run a
whole pass.
"""

import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    base_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter_factor: float = 0.3  # 0-30% jitter
    retryable_exceptions: Tuple[Type[Exception], ...] = (Exception,)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """Calculate delay with exponential backoff and jitter."""
    # Exponential backoff
    delay = min(config.base_delay * (config.exponential_base**attempt), config.max_delay)

    # Add jitter to prevent thundering herd
    jitter = random.uniform(0, delay * config.jitter_factor)

    return delay + jitter


def _log_exhausted(func: Callable, config: RetryConfig, e: Exception) -> None:
    logger.error(
        f"All {config.max_attempts} attempts failed for {func.__name__}",
        extra={
            "function": func.__name__,
            "attempts": config.max_attempts,
            "final_error": str(e),
            "error_type": type(e).__name__,
        },
    )


def _log_retry(func: Callable, config: RetryConfig, attempt: int, delay: float, e: Exception) -> None:
    logger.warning(
        f"Attempt {attempt + 1}/{config.max_attempts} failed for "
        f"{func.__name__}, retrying in {delay:.2f}s: {e}",
        extra={
            "function": func.__name__,
            "attempt": attempt + 1,
            "delay_seconds": delay,
            "error": str(e),
            "error_type": type(e).__name__,
        },
    )


def retry_call(
    func: Callable[..., T],
    *args,
    config: Optional[RetryConfig] = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs,
) -> T:
    """
    Execute a blocking function with retry logic.

    Used for psycopg connections and the deployment validation steps.
    sleep is called between attempts with the computed delay.
    """
    config = config or RetryConfig()
    last_exception: Optional[Exception] = None

    for attempt in range(config.max_attempts):
        try:
            return func(*args, **kwargs)
        except config.retryable_exceptions as e:
            last_exception = e

            if attempt == config.max_retries:
                _log_exhausted(func, config, e)
                raise

            delay = calculate_delay(attempt, config)
            _log_retry(func, config, attempt, delay, e)
            sleep(delay)

    raise last_exception or RuntimeError("Unexpected retry state")


# Pre-configured retry configs for different scenarios
DATABASE_RETRY_CONFIG = RetryConfig(
    max_retries=2,
    base_delay=0.5,
    max_delay=5.0,
    jitter_factor=0.2,
)

# Deployment validation: 3 attempts, 10s apart
VALIDATION_RETRY_CONFIG = RetryConfig(
    max_retries=2,
    base_delay=10.0,
    max_delay=10.0,
    exponential_base=1.0,
    jitter_factor=0.0,
)
