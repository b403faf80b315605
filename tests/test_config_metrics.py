"""Tests for settings and the prometheus metrics sink."""

import pytest
from pydantic import ValidationError

from helpers import Project
from policygate.auth.context import RequestContext
from policygate.authz.config import AuthorizerSettings
from policygate.authz.engine import Authorizer
from policygate.authz.errors import RuleNotFoundError
from policygate.authz.metrics import PrometheusMetrics


class TestAuthorizerSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("POLICYGATE_SEPARATOR", raising=False)
        monkeypatch.delenv("POLICYGATE_METRICS_PORT", raising=False)

        settings = AuthorizerSettings()

        assert settings.separator == "."
        assert settings.auth_ctx_field == "auth_ctx"
        assert settings.metrics_port is None

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("POLICYGATE_SEPARATOR", ":")
        monkeypatch.setenv("POLICYGATE_METRICS_ENABLED", "false")

        settings = AuthorizerSettings()

        assert settings.separator == ":"
        assert settings.metrics_enabled is False

    def test_empty_separator_rejected(self):
        with pytest.raises(ValidationError):
            AuthorizerSettings(separator="")

    @pytest.mark.parametrize("field", ["_private", "not-an-identifier", ""])
    def test_invalid_auth_ctx_field_rejected(self, field):
        with pytest.raises(ValidationError):
            AuthorizerSettings(auth_ctx_field=field)

    def test_metrics_port_range(self):
        with pytest.raises(ValidationError):
            AuthorizerSettings(metrics_port=70000)


class TestPrometheusMetrics:
    """Test the histogram-backed sink."""

    def test_record_observation(self):
        metrics = PrometheusMetrics()

        metrics.record_observation("project", "create", 0.25)

        labels = {"policy": "project", "rule": "create"}
        registry = metrics.registry
        assert registry.get_sample_value("policygate_authorization_request_seconds_count", labels) == 1
        assert registry.get_sample_value("policygate_authorization_request_seconds_sum", labels) == 0.25

    def test_instances_do_not_share_registry(self):
        first = PrometheusMetrics()
        second = PrometheusMetrics()

        first.record_observation("project", "create", 0.1)

        labels = {"policy": "project", "rule": "create"}
        assert second.registry.get_sample_value(
            "policygate_authorization_request_seconds_count", labels
        ) is None

    def test_authorizer_records_failures(self, admin):
        metrics = PrometheusMetrics(namespace="gate")
        authorizer = Authorizer(settings=AuthorizerSettings(metrics_port=None), metrics=metrics)
        ctx = authorizer.set_auth_context(RequestContext(), admin)

        with pytest.raises(RuleNotFoundError):
            authorizer.authorize(ctx, "project.create", Project())

        count = metrics.registry.get_sample_value(
            "gate_authorization_request_seconds_count", {"policy": "default", "rule": "create"}
        )
        assert count == 1

    def test_authorizer_builds_prometheus_sink_by_default(self):
        settings = AuthorizerSettings(metrics_enabled=True, metrics_port=None)

        assert isinstance(Authorizer(settings=settings).metrics, PrometheusMetrics)
