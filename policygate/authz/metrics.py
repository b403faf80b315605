"""Authorization metrics.

The engine emits one observation per authorize call to a metrics sink.
PrometheusMetrics records them into a latency histogram labelled by
policy and rule.
"""

from __future__ import annotations

import logging
from typing import Protocol

from prometheus_client import CollectorRegistry, Histogram, start_http_server

logger = logging.getLogger(__name__)


class MetricsSink(Protocol):
    """Write-only receiver of authorization observations."""

    def record_observation(self, policy: str, rule: str, duration_seconds: float) -> None: ...


class NullMetrics:
    """Metrics sink that discards observations."""

    def record_observation(self, policy: str, rule: str, duration_seconds: float) -> None:
        return None


class PrometheusMetrics:
    """Prometheus-backed metrics sink.

    Uses its own CollectorRegistry so several authorizers can live in
    one process without clashing on metric names.
    """

    def __init__(self, namespace: str = "policygate", registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.authorization_requests = Histogram(
            name="authorization_request_seconds",
            documentation="All authorization request observations",
            namespace=namespace,
            labelnames=("policy", "rule"),
            registry=self.registry,
        )

    def record_observation(self, policy: str, rule: str, duration_seconds: float) -> None:
        self.authorization_requests.labels(policy=policy, rule=rule).observe(duration_seconds)

    def serve(self, port: int, addr: str = "0.0.0.0") -> None:
        """Expose /metrics for this registry on a background thread."""
        start_http_server(port, addr=addr, registry=self.registry)
        logger.info("Metrics server listening on %s:%d", addr, port)
