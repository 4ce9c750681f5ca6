"""
Tests for the scheduled tenant health Lambda handler.

Run with: PYTHONPATH=functions:. pytest tests/test_tenant_health_handler.py -v
"""

import json
import os
import sys
from unittest.mock import patch

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "functions", "monitors"))

from conftest import make_tenant, make_usage
from shared.errors import RowSourceConnectionError
from shared.row_source import InMemoryRowSource

import tenant_health


@pytest.fixture
def mock_metrics():
    with patch.object(tenant_health, "emit_tenant_health_metrics") as emit:
        yield emit


def invoke_with_source(source, event=None):
    with patch.object(tenant_health, "PostgresRowSource", return_value=source):
        return tenant_health.handler(event or {"id": "evt-123"}, None)


class TestTenantHealthHandler:
    def test_ready_returns_200(self, healthy_source, mock_metrics):
        response = invoke_with_source(healthy_source)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body["status"] == "healthy"
        assert body["runId"] == "evt-123"
        assert body["productionReady"] is True
        assert body["summary"] == {"healthy": 3, "warning": 0, "critical": 0}
        mock_metrics.assert_called_once()

    def test_exceeded_tenant_returns_503(self, mock_metrics):
        source = InMemoryRowSource(tenants=[make_tenant(1, users=10)], usage={1: make_usage(1, users=11)})

        response = invoke_with_source(source)

        assert response["statusCode"] == 503
        body = json.loads(response["body"])
        assert body["status"] == "unhealthy"
        assert body["tenants"][0]["status"] == "EXCEEDED"

    def test_connection_failure_returns_503(self, mock_metrics):
        class Unreachable(InMemoryRowSource):
            def __enter__(self):
                raise RowSourceConnectionError("Database connection failed: timeout")

        response = invoke_with_source(Unreachable())

        assert response["statusCode"] == 503
        body = json.loads(response["body"])
        assert body["checkFailures"][0]["check"] == "connection"

    def test_invalid_config_returns_500(self, mock_metrics):
        with patch.dict(os.environ, {"USAGE_WINDOW_DAYS": "-3"}):
            response = tenant_health.handler({}, None)

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["error"]["code"] == "invalid_configuration"
        mock_metrics.assert_not_called()

    def test_uses_configured_database(self, healthy_source, mock_metrics):
        with patch.dict(os.environ, {"DB_HOST": "tenants.internal"}):
            with patch.object(tenant_health, "PostgresRowSource", return_value=healthy_source) as source_cls:
                tenant_health.handler({}, None)

        database = source_cls.call_args.args[0]
        assert database.host == "tenants.internal"
