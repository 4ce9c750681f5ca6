"""
Health check configuration.

Configuration is read from the environment once, at the entry point
(handler or script), and passed into constructors as frozen dataclasses.
Nothing below is mutated after load.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .constants import (
    DEFAULT_COGNITO_POOL_FILTER,
    DEFAULT_HIGH_UTILIZATION_RATIO,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_SERVICES,
    DEFAULT_SLOW_RESPONSE_MS,
    DEFAULT_USAGE_WINDOW_DAYS,
)
from .retry import DATABASE_RETRY_CONFIG, RetryConfig
from .tenant_models import ResourceDimension

# Env var -> service name for the service probes
SERVICE_URL_ENV = {
    "auth": "AUTH_SERVICE_URL",
    "user": "USER_SERVICE_URL",
    "dashboard": "DASHBOARD_SERVICE_URL",
    "payments": "PAYMENTS_SERVICE_URL",
}


def _get_int(environ: Mapping[str, str], key: str, default: int) -> int:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from None


def _get_float(environ: Mapping[str, str], key: str, default: float) -> float:
    raw = environ.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None


def _get_ratio(environ: Mapping[str, str], key: str, default: float) -> float:
    ratio = _get_float(environ, key, default)
    if not 0 < ratio < 1:
        raise ValueError(f"{key} must be between 0 and 1 (exclusive), got {ratio}")
    return ratio


@dataclass(frozen=True)
class DatabaseConfig:
    host: str = "localhost"
    port: int = 5432
    name: str = "visualforge"
    user: str = "apiuser"
    password: str = field(default="", repr=False)
    connect_timeout: int = 10

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DatabaseConfig":
        environ = os.environ if environ is None else environ
        return cls(
            host=environ.get("DB_HOST", "localhost"),
            port=_get_int(environ, "DB_PORT", 5432),
            name=environ.get("DB_NAME", "visualforge"),
            user=environ.get("DB_USER", "apiuser"),
            password=environ.get("DB_PASSWORD", ""),
            connect_timeout=_get_int(environ, "DB_CONNECT_TIMEOUT", 10),
        )

    def connect_kwargs(self) -> dict:
        """Keyword arguments for psycopg.connect()."""
        return {
            "host": self.host,
            "port": self.port,
            "dbname": self.name,
            "user": self.user,
            "password": self.password,
            "connect_timeout": self.connect_timeout,
        }


@dataclass(frozen=True)
class CapacityThresholds:
    """HIGH-utilization ratio per resource dimension."""

    users: float = DEFAULT_HIGH_UTILIZATION_RATIO
    api_calls: float = DEFAULT_HIGH_UTILIZATION_RATIO

    def high_ratio_for(self, dimension: ResourceDimension) -> float:
        if dimension is ResourceDimension.USERS:
            return self.users
        return self.api_calls

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CapacityThresholds":
        environ = os.environ if environ is None else environ
        default = _get_ratio(environ, "HIGH_UTILIZATION_RATIO", DEFAULT_HIGH_UTILIZATION_RATIO)
        return cls(
            users=_get_ratio(environ, "USER_HIGH_UTILIZATION_RATIO", default),
            api_calls=_get_ratio(environ, "API_CALLS_HIGH_UTILIZATION_RATIO", default),
        )


def _parse_dimensions(raw: str) -> tuple[ResourceDimension, ...]:
    dimensions = []
    for name in raw.split(","):
        name = name.strip()
        if not name:
            continue
        try:
            dimensions.append(ResourceDimension(name))
        except ValueError:
            valid = ", ".join(d.value for d in ResourceDimension)
            raise ValueError(f"Unknown dimension {name!r} in BLOCKING_DIMENSIONS (valid: {valid})") from None
    return tuple(dimensions)


@dataclass(frozen=True)
class TenantHealthConfig:
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    thresholds: CapacityThresholds = field(default_factory=CapacityThresholds)
    usage_window_days: int = DEFAULT_USAGE_WINDOW_DAYS
    # Dimensions whose EXCEEDED state blocks production readiness
    blocking_dimensions: tuple[ResourceDimension, ...] = tuple(ResourceDimension)
    connect_retry: RetryConfig = DATABASE_RETRY_CONFIG

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "TenantHealthConfig":
        environ = os.environ if environ is None else environ

        window = _get_int(environ, "USAGE_WINDOW_DAYS", DEFAULT_USAGE_WINDOW_DAYS)
        if window <= 0:
            raise ValueError(f"USAGE_WINDOW_DAYS must be positive, got {window}")

        blocking = environ.get("BLOCKING_DIMENSIONS")
        return cls(
            database=DatabaseConfig.from_env(environ),
            thresholds=CapacityThresholds.from_env(environ),
            usage_window_days=window,
            blocking_dimensions=_parse_dimensions(blocking) if blocking else tuple(ResourceDimension),
        )


@dataclass(frozen=True)
class ServiceHealthConfig:
    environment: str = "dev"
    region: str = "us-east-1"
    services: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_SERVICES))
    timeout_seconds: float = DEFAULT_PROBE_TIMEOUT
    slow_response_ms: int = DEFAULT_SLOW_RESPONSE_MS
    cognito_pool_filter: str = DEFAULT_COGNITO_POOL_FILTER

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceHealthConfig":
        environ = os.environ if environ is None else environ
        services = {
            name: environ.get(env_key, DEFAULT_SERVICES[name])
            for name, env_key in SERVICE_URL_ENV.items()
        }
        timeout = _get_float(environ, "HEALTH_CHECK_TIMEOUT", DEFAULT_PROBE_TIMEOUT)
        if timeout <= 0:
            raise ValueError(f"HEALTH_CHECK_TIMEOUT must be positive, got {timeout}")

        return cls(
            environment=environ.get("ENVIRONMENT", "dev"),
            region=environ.get("AWS_REGION", "us-east-1"),
            services=services,
            timeout_seconds=timeout,
            slow_response_ms=_get_int(environ, "RESPONSE_TIME_THRESHOLD", DEFAULT_SLOW_RESPONSE_MS),
            cognito_pool_filter=environ.get("COGNITO_POOL_NAME_FILTER", DEFAULT_COGNITO_POOL_FILTER),
        )
