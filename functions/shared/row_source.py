"""
Row sources for the tenant health evaluator.

A row source supplies tenants, per-tenant usage snapshots, and isolation
violations. The evaluator depends only on the RowSource protocol:

    list_active_tenants() -> list[Tenant]
    get_usage_snapshot(tenant_id, window_days=30) -> TenantUsageSnapshot
    find_isolation_violations() -> list[IsolationViolation]
    isolation_notices() -> list[str]

PostgresRowSource runs read-only SQL through psycopg (autocommit, so one
failed statement never poisons the next). It detects orphaned child rows;
mismatches need a second key path the schema does not have, so it reports
that check as unverified instead. InMemoryRowSource serves fixture rows for
tests and dry runs.
"""

import logging
import time
from dataclasses import replace
from typing import Any, Iterable, Mapping, Optional, Protocol

import psycopg
from psycopg.rows import dict_row

from .config import DatabaseConfig
from .constants import (
    ACTIVE_STATUS,
    DEFAULT_MISSING_LIMIT,
    DEFAULT_USAGE_WINDOW_DAYS,
    LIMIT_KEYS,
    TENANT_USAGE_TABLE,
    TENANT_USERS_TABLE,
)
from .errors import RowSourceConnectionError, RowSourceQueryError, SchemaContractError
from .isolation import find_isolation_violations, sort_violations
from .logging_utils import log_external_call
from .retry import DATABASE_RETRY_CONFIG, RetryConfig, retry_call
from .tenant_models import (
    ChildRecord,
    IsolationViolation,
    Tenant,
    TenantLimits,
    TenantUsageSnapshot,
    ViolationKind,
)

logger = logging.getLogger(__name__)


class RowSource(Protocol):
    def list_active_tenants(self) -> list[Tenant]:
        ...

    def get_usage_snapshot(self, tenant_id: Any, window_days: int = DEFAULT_USAGE_WINDOW_DAYS) -> TenantUsageSnapshot:
        ...

    def find_isolation_violations(self) -> list[IsolationViolation]:
        ...

    def isolation_notices(self) -> list[str]:
        ...


def parse_limit(value: Any) -> int:
    """Coerce a stored limit (int, numeric string, or missing) to an int."""
    if value is None or value == "":
        return DEFAULT_MISSING_LIMIT
    return int(value)


def parse_limits(limits: Optional[Mapping[str, Any]]) -> TenantLimits:
    limits = limits or {}
    return TenantLimits(
        users=parse_limit(limits.get(LIMIT_KEYS["users"])),
        api_calls=parse_limit(limits.get(LIMIT_KEYS["api_calls"])),
    )


def tenant_from_row(row: Mapping[str, Any]) -> Tenant:
    return Tenant(
        id=row["id"],
        name=row["name"],
        plan=row.get("plan") or "",
        status=row.get("status") or "",
        limits=parse_limits(row.get("limits")),
    )


# =============================================================================
# POSTGRES
# =============================================================================

LIST_ACTIVE_TENANTS_SQL = """
    SELECT id, name, plan, status, limits
    FROM tenants
    WHERE status = 'active'
    ORDER BY created_at DESC
"""

# Users and usage are aggregated in separate subqueries so the two child
# tables never multiply each other's rows.
USAGE_SNAPSHOT_SQL = """
    SELECT
        (SELECT COUNT(*)
           FROM tenant_users tu
          WHERE tu.tenant_id = %(tenant_id)s
            AND tu.status = 'active') AS active_user_count,
        (SELECT COALESCE(SUM(tus.api_calls_count), 0)
           FROM tenant_usage_stats tus
          WHERE tus.tenant_id = %(tenant_id)s
            AND tus.stat_date >= CURRENT_DATE - %(window_days)s::int) AS api_call_count
"""

ORPHAN_RECORDS_SQL = """
    SELECT 'tenant_users' AS table_name, tu.tenant_id, COUNT(*) AS orphan_count
    FROM tenant_users tu
    LEFT JOIN tenants t ON tu.tenant_id = t.id
    WHERE t.id IS NULL
    GROUP BY tu.tenant_id
    UNION ALL
    SELECT 'tenant_usage_stats' AS table_name, tus.tenant_id, COUNT(*) AS orphan_count
    FROM tenant_usage_stats tus
    LEFT JOIN tenants t ON tus.tenant_id = t.id
    WHERE t.id IS NULL
    GROUP BY tus.tenant_id
"""

# tenant_users and tenant_usage_stats reach a tenant only through their own
# tenant_id, so a cross-tenant mismatch cannot be observed from SQL. Only
# orphans are queried; the mismatch check is reported as unverified.
MISMATCH_UNVERIFIED_NOTICE = (
    f"Tenant mismatch check not verifiable: {TENANT_USERS_TABLE} and {TENANT_USAGE_TABLE} "
    "have no key path to a tenant other than tenant_id"
)

# Column contracts: every column the mapping code reads must be produced by
# the query. A missing column is a SchemaContractError, never a silent zero.
TENANT_COLUMNS = ("id", "name", "plan", "status", "limits")
USAGE_COLUMNS = ("active_user_count", "api_call_count")
ORPHAN_COLUMNS = ("table_name", "tenant_id", "orphan_count")


def require_columns(check: str, available: Iterable[str], required: Iterable[str]) -> None:
    available = list(available)
    missing = [column for column in required if column not in available]
    if missing:
        raise SchemaContractError(check, missing, available)


class PostgresRowSource:
    """
    Row source backed by the tenants schema in PostgreSQL.

    Use as a context manager; the connection is closed on exit even when a
    check fails:

        with PostgresRowSource(config.database) as source:
            report = TenantHealthEvaluator(source, config).evaluate()
    """

    def __init__(
        self,
        database: DatabaseConfig,
        retry_config: RetryConfig = DATABASE_RETRY_CONFIG,
        sleep=time.sleep,
    ):
        self.database = database
        # Only connection-level failures are worth reconnecting for
        self.retry_config = replace(retry_config, retryable_exceptions=(psycopg.OperationalError,))
        self._sleep = sleep
        self._conn = None

    @property
    def connected(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def connect(self) -> None:
        if self.connected:
            return

        start = time.time()
        try:
            self._conn = retry_call(
                psycopg.connect,
                config=self.retry_config,
                sleep=self._sleep,
                autocommit=True,
                row_factory=dict_row,
                **self.database.connect_kwargs(),
            )
        except psycopg.Error as e:
            log_external_call(
                logger, "postgres", "connect", False, (time.time() - start) * 1000, error=str(e)
            )
            raise RowSourceConnectionError(
                f"Database connection failed: {e}",
                details={"host": self.database.host, "database": self.database.name},
            ) from e

        log_external_call(logger, "postgres", "connect", True, (time.time() - start) * 1000)

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Database connection closed")

    def __enter__(self) -> "PostgresRowSource":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _query(self, check: str, sql: str, params: Optional[dict], required: Iterable[str]) -> list[dict]:
        """Run one read-only query, enforcing its column contract."""
        if not self.connected:
            raise RowSourceConnectionError("Database connection is not open")

        start = time.time()
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                columns = [column.name for column in cur.description or []]
                rows = cur.fetchall()
        except (psycopg.OperationalError, psycopg.InterfaceError) as e:
            log_external_call(logger, "postgres", check, False, (time.time() - start) * 1000, error=str(e))
            raise RowSourceConnectionError(f"{check}: connection lost: {e}") from e
        except psycopg.Error as e:
            log_external_call(logger, "postgres", check, False, (time.time() - start) * 1000, error=str(e))
            raise RowSourceQueryError(check, f"{check} query failed: {e}") from e

        log_external_call(logger, "postgres", check, True, (time.time() - start) * 1000)
        require_columns(check, columns, required)
        return rows

    def list_active_tenants(self) -> list[Tenant]:
        rows = self._query("list_active_tenants", LIST_ACTIVE_TENANTS_SQL, None, TENANT_COLUMNS)
        try:
            return [tenant_from_row(row) for row in rows]
        except (TypeError, ValueError) as e:
            raise RowSourceQueryError("list_active_tenants", f"Malformed tenant limits: {e}") from e

    def get_usage_snapshot(self, tenant_id: Any, window_days: int = DEFAULT_USAGE_WINDOW_DAYS) -> TenantUsageSnapshot:
        rows = self._query(
            "usage_snapshot",
            USAGE_SNAPSHOT_SQL,
            {"tenant_id": tenant_id, "window_days": window_days},
            USAGE_COLUMNS,
        )
        row = rows[0] if rows else {}
        return TenantUsageSnapshot(
            tenant_id=tenant_id,
            active_user_count=int(row.get("active_user_count") or 0),
            api_call_count=int(row.get("api_call_count") or 0),
        )

    def find_isolation_violations(self) -> list[IsolationViolation]:
        violations = []
        for row in self._query("orphaned_records", ORPHAN_RECORDS_SQL, None, ORPHAN_COLUMNS):
            count = int(row["orphan_count"] or 0)
            if count > 0:
                violations.append(
                    IsolationViolation(
                        tenant_id=row["tenant_id"],
                        kind=ViolationKind.ORPHANED_RECORD,
                        count=count,
                        table=row["table_name"],
                    )
                )

        return sort_violations(violations)

    def isolation_notices(self) -> list[str]:
        return [MISMATCH_UNVERIFIED_NOTICE]


# =============================================================================
# IN-MEMORY
# =============================================================================


class InMemoryRowSource:
    """
    Row source over fixture data.

    tenants is the full tenant set (any status); usage maps tenant id to a
    TenantUsageSnapshot; records are the child rows checked for isolation.
    """

    def __init__(
        self,
        tenants: Iterable[Tenant] = (),
        usage: Optional[Mapping[Any, TenantUsageSnapshot]] = None,
        records: Iterable[ChildRecord] = (),
    ):
        self.tenants = tuple(tenants)
        self.usage = dict(usage or {})
        self.records = tuple(records)

    def list_active_tenants(self) -> list[Tenant]:
        return [t for t in self.tenants if t.status == ACTIVE_STATUS]

    def get_usage_snapshot(self, tenant_id: Any, window_days: int = DEFAULT_USAGE_WINDOW_DAYS) -> TenantUsageSnapshot:
        return self.usage.get(tenant_id) or TenantUsageSnapshot(tenant_id, 0, 0)

    def find_isolation_violations(self) -> list[IsolationViolation]:
        return find_isolation_violations(self.tenants, self.records)

    def isolation_notices(self) -> list[str]:
        return []

    def __enter__(self) -> "InMemoryRowSource":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        return None
