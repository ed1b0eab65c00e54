"""
Shared metrics configuration for the Realty Access Layer.
"""

import time
from contextlib import contextmanager
from typing import Dict, Any, Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, Info, generate_latest


class MetricsCollector:
    """Centralized metrics collector for services.

    Each collector owns its registry so several service instances can live
    in one process (tests build a fresh service per case).
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}
        self._setup_metrics()

    def _setup_metrics(self):
        """Set up common metrics for the service."""
        self._metrics["service_info"] = Info(
            "service_info",
            "Service information",
            registry=self.registry
        )
        self._metrics["service_info"].info({
            "service": self.service_name,
            "version": "1.0.0"
        })

        self._metrics["http_requests_total"] = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
            registry=self.registry
        )

        self._metrics["http_request_duration_seconds"] = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            registry=self.registry
        )

        self._metrics["health_check_total"] = Counter(
            "health_check_total",
            "Total health check requests",
            ["status"],
            registry=self.registry
        )

        self._metrics["errors_total"] = Counter(
            "errors_total",
            "Total errors",
            ["error_type"],
            registry=self.registry
        )

        if self.service_name == "entitlements":
            self._setup_entitlements_metrics()

    def _setup_entitlements_metrics(self):
        """Set up entitlements-specific metrics."""
        self._metrics["access_checks_total"] = Counter(
            "access_checks_total",
            "Total capability access checks",
            ["capability", "allowed", "reason"],
            registry=self.registry
        )

        self._metrics["access_check_duration_seconds"] = Histogram(
            "access_check_duration_seconds",
            "Capability access check duration in seconds",
            registry=self.registry
        )

        self._metrics["feature_toggle_changes_total"] = Counter(
            "feature_toggle_changes_total",
            "Total feature toggle changes",
            ["feature", "enabled"],
            registry=self.registry
        )

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        """Record HTTP request metrics."""
        self._metrics["http_requests_total"].labels(
            method=method,
            endpoint=endpoint,
            status_code=str(status_code)
        ).inc()

        self._metrics["http_request_duration_seconds"].labels(
            method=method,
            endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        """Record health check metrics."""
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str):
        """Record error metrics."""
        self._metrics["errors_total"].labels(error_type=error_type).inc()

    def record_access_check(self, capability: str, allowed: bool, reason: Optional[str]):
        """Record the outcome of one capability access check."""
        metric = self._metrics.get("access_checks_total")
        if metric is not None:
            metric.labels(
                capability=capability,
                allowed=str(allowed).lower(),
                reason=reason or "none"
            ).inc()

    def record_toggle_change(self, feature: str, enabled: bool):
        """Record a feature toggle change."""
        metric = self._metrics.get("feature_toggle_changes_total")
        if metric is not None:
            metric.labels(feature=feature, enabled=str(enabled).lower()).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Context manager to time an operation."""
        start_time = time.time()
        try:
            yield
        finally:
            duration = time.time() - start_time
            metric = self._metrics.get(operation_name)
            if metric is not None:
                (metric.labels(**labels) if labels else metric).observe(duration)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
