"""
Tests for environment-driven configuration.
"""

import pytest

from shared.config import (
    CapacityThresholds,
    DatabaseConfig,
    ServiceHealthConfig,
    TenantHealthConfig,
)
from shared.tenant_models import ResourceDimension


class TestDatabaseConfig:
    def test_defaults(self):
        config = DatabaseConfig.from_env({})

        assert config.host == "localhost"
        assert config.port == 5432
        assert config.name == "visualforge"
        assert config.user == "apiuser"

    def test_reads_env(self):
        config = DatabaseConfig.from_env(
            {"DB_HOST": "db.prod", "DB_PORT": "6432", "DB_NAME": "tenants", "DB_PASSWORD": "s3cret"}
        )

        assert config.connect_kwargs() == {
            "host": "db.prod",
            "port": 6432,
            "dbname": "tenants",
            "user": "apiuser",
            "password": "s3cret",
            "connect_timeout": 10,
        }

    def test_password_not_in_repr(self):
        assert "s3cret" not in repr(DatabaseConfig(password="s3cret"))

    def test_bad_port(self):
        with pytest.raises(ValueError, match="DB_PORT"):
            DatabaseConfig.from_env({"DB_PORT": "postgres"})


class TestCapacityThresholds:
    def test_default_ratio(self):
        thresholds = CapacityThresholds.from_env({})
        assert thresholds.high_ratio_for(ResourceDimension.USERS) == 0.8
        assert thresholds.high_ratio_for(ResourceDimension.API_CALLS) == 0.8

    def test_global_override(self):
        thresholds = CapacityThresholds.from_env({"HIGH_UTILIZATION_RATIO": "0.9"})
        assert thresholds.users == 0.9
        assert thresholds.api_calls == 0.9

    def test_per_dimension_override(self):
        thresholds = CapacityThresholds.from_env(
            {"HIGH_UTILIZATION_RATIO": "0.9", "API_CALLS_HIGH_UTILIZATION_RATIO": "0.75"}
        )
        assert thresholds.users == 0.9
        assert thresholds.api_calls == 0.75

    @pytest.mark.parametrize("value", ["0", "1", "1.5", "-0.2"])
    def test_ratio_out_of_range(self, value):
        with pytest.raises(ValueError, match="between 0 and 1"):
            CapacityThresholds.from_env({"USER_HIGH_UTILIZATION_RATIO": value})


class TestTenantHealthConfig:
    def test_defaults(self):
        config = TenantHealthConfig.from_env({})

        assert config.usage_window_days == 30
        assert config.blocking_dimensions == (ResourceDimension.USERS, ResourceDimension.API_CALLS)

    def test_window_days(self):
        assert TenantHealthConfig.from_env({"USAGE_WINDOW_DAYS": "7"}).usage_window_days == 7

    def test_window_days_must_be_positive(self):
        with pytest.raises(ValueError, match="USAGE_WINDOW_DAYS"):
            TenantHealthConfig.from_env({"USAGE_WINDOW_DAYS": "0"})

    def test_blocking_dimensions(self):
        config = TenantHealthConfig.from_env({"BLOCKING_DIMENSIONS": "users"})
        assert config.blocking_dimensions == (ResourceDimension.USERS,)

    def test_unknown_blocking_dimension(self):
        with pytest.raises(ValueError, match="storage"):
            TenantHealthConfig.from_env({"BLOCKING_DIMENSIONS": "users, storage"})


class TestServiceHealthConfig:
    def test_default_services(self):
        config = ServiceHealthConfig.from_env({})

        assert config.services["auth"] == "http://localhost:4000"
        assert config.services["payments"] == "http://localhost:4003"
        assert config.timeout_seconds == 5.0
        assert config.slow_response_ms == 5000

    def test_service_url_override(self):
        config = ServiceHealthConfig.from_env({"AUTH_SERVICE_URL": "https://auth.example.com"})
        assert config.services["auth"] == "https://auth.example.com"
        assert config.services["user"] == "http://localhost:4001"

    def test_environment_and_region(self):
        config = ServiceHealthConfig.from_env({"ENVIRONMENT": "staging", "AWS_REGION": "eu-west-1"})
        assert config.environment == "staging"
        assert config.region == "eu-west-1"

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError, match="HEALTH_CHECK_TIMEOUT"):
            ServiceHealthConfig.from_env({"HEALTH_CHECK_TIMEOUT": "0"})
