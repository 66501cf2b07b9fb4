"""
Shared metrics configuration for the licensing service.
"""

import threading
from typing import Dict, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, REGISTRY


class MetricsCollector:
    """Prometheus collectors for one service."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else REGISTRY

        self.http_requests = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["service", "method", "endpoint", "status_code"],
            registry=self.registry
        )
        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["service", "method", "endpoint"],
            registry=self.registry
        )
        self.license_resolutions = Counter(
            "license_resolutions_total",
            "Active license resolutions by outcome",
            ["service", "outcome"],
            registry=self.registry
        )
        self.upstream_calls = Counter(
            "license_upstream_calls_total",
            "Calls to the entitlement authority",
            ["service", "operation", "outcome"],
            registry=self.registry
        )

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self.http_requests.labels(
            service=self.service_name,
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()
        self.http_request_duration.labels(
            service=self.service_name,
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_license_resolution(self, outcome: str):
        """outcome is "found" or "synthetic"."""
        self.license_resolutions.labels(service=self.service_name, outcome=outcome).inc()

    def record_upstream_call(self, operation: str, outcome: str):
        self.upstream_calls.labels(
            service=self.service_name,
            operation=operation,
            outcome=outcome
        ).inc()


_collectors: Dict[str, MetricsCollector] = {}
_lock = threading.Lock()


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get the process-wide collector for ``service_name``.

    The default registry rejects duplicate metric names, so the collector is
    created once and shared by every caller in the process.
    """
    with _lock:
        if service_name not in _collectors:
            _collectors[service_name] = MetricsCollector(service_name)
        return _collectors[service_name]
