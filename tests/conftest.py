"""
Shared pytest fixtures for tenant health tests.
"""

import os
import sys

import pytest

# Add functions directory to Python path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions"))


def pytest_configure(config):
    """Set AWS credentials before test collection.

    This runs before test collection starts, ensuring boto3 client
    creation during imports doesn't fail with NoRegionError.
    """
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
    os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
    os.environ.setdefault("AWS_REGION", "us-east-1")


@pytest.fixture(autouse=True)
def aws_credentials():
    """Set fake AWS credentials for all tests."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
    os.environ["AWS_REGION"] = "us-east-1"


@pytest.fixture(autouse=True)
def reset_aws_clients():
    """Reset shared AWS client singletons between tests."""
    from shared.aws_clients import reset_clients

    reset_clients()
    yield
    reset_clients()


def make_tenant(tenant_id, users=100, api_calls=10000, name=None, plan="pro", status="active"):
    """Build a Tenant with the given limits."""
    from shared.tenant_models import Tenant, TenantLimits

    return Tenant(
        id=tenant_id,
        name=name or f"tenant-{tenant_id}",
        plan=plan,
        status=status,
        limits=TenantLimits(users=users, api_calls=api_calls),
    )


def make_usage(tenant_id, users=0, api_calls=0):
    from shared.tenant_models import TenantUsageSnapshot

    return TenantUsageSnapshot(tenant_id=tenant_id, active_user_count=users, api_call_count=api_calls)


@pytest.fixture
def healthy_source():
    """Three tenants, all within limits, no isolation problems."""
    from shared.row_source import InMemoryRowSource
    from shared.tenant_models import ChildRecord

    tenants = [
        make_tenant(1, users=10, api_calls=1000, name="Acme"),
        make_tenant(2, users=-1, api_calls=-1, name="Globex", plan="enterprise"),
        make_tenant(3, users=50, api_calls=5000, name="Initech"),
    ]
    usage = {
        1: make_usage(1, users=5, api_calls=100),
        2: make_usage(2, users=500, api_calls=900000),
        3: make_usage(3, users=20, api_calls=2500),
    }
    records = [
        ChildRecord("tenant_users", 1, tenant_id=1, parent_tenant_id=1),
        ChildRecord("tenant_users", 2, tenant_id=2, parent_tenant_id=2),
        ChildRecord("tenant_usage_stats", 1, tenant_id=3, parent_tenant_id=3),
    ]
    return InMemoryRowSource(tenants, usage, records)
