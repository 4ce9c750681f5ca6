"""
Shared constants for tenant health checks.
"""

# Capacity classification
UNLIMITED_LIMIT = -1

# Fraction of a limit above which utilization is reported as HIGH.
# Single source for every dimension unless overridden in TenantHealthConfig.
DEFAULT_HIGH_UTILIZATION_RATIO = 0.8

# Stored limits documents may omit a dimension; the tenants query has always
# coalesced a missing key to this value.
DEFAULT_MISSING_LIMIT = 999999

# Keys inside tenants.limits (JSONB)
LIMIT_KEYS = {
    "users": "users",
    "api_calls": "apiCalls",
}

UNLIMITED_SYMBOL = "∞"

# Usage aggregation
DEFAULT_USAGE_WINDOW_DAYS = 30

# Tenant tables
TENANT_USERS_TABLE = "tenant_users"
TENANT_USAGE_TABLE = "tenant_usage_stats"

ACTIVE_STATUS = "active"

# Report buckets
BUCKET_HEALTHY = "healthy"
BUCKET_WARNING = "warning"
BUCKET_CRITICAL = "critical"

# Service probes
DEFAULT_PROBE_TIMEOUT = 5.0
DEFAULT_SLOW_RESPONSE_MS = 5000
HEALTH_PATH = "/api/health"

DEFAULT_SERVICES = {
    "auth": "http://localhost:4000",
    "user": "http://localhost:4001",
    "dashboard": "http://localhost:4002",
    "payments": "http://localhost:4003",
}

# AWS resource checks
DEFAULT_COGNITO_POOL_FILTER = "visualforge"
COGNITO_LIST_PAGE_SIZE = 10

# Process exit codes
EXIT_READY = 0
EXIT_NOT_READY = 1
