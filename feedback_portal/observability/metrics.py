"""
Prometheus metrics for the feedback portal.

Defines and exposes metrics for:
- Backend request latency and outcomes
- Backend errors by kind
- Optimistic updates that had to be compensated

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import (
    REGISTRY,
    Counter,
    Histogram,
    start_http_server,
)

from feedback_portal.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)


class MetricsCollector:
    """
    Prometheus metrics collector for backend calls and board actions.

    Usage:
        metrics = get_metrics()
        metrics.record_backend_call("fetch_feedback", 0.12)
        metrics.record_backend_error("fetch_feedback", "network")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.backend_requests = Counter(
            "feedback_portal_backend_requests_total",
            "Total backend requests issued",
            ["operation"],
        )

        self.backend_errors = Counter(
            "feedback_portal_backend_errors_total",
            "Total backend request failures",
            ["operation", "kind"],  # kind: validation, network, not_found, permission
        )

        self.backend_latency = Histogram(
            "feedback_portal_backend_latency_seconds",
            "Time spent waiting on the hosted backend",
            ["operation"],
            buckets=LATENCY_BUCKETS,
        )

        self.optimistic_compensations = Counter(
            "feedback_portal_optimistic_compensations_total",
            "Optimistic updates rolled back after a failed confirmation",
            ["action"],
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start HTTP server for Prometheus scraping.

        Args:
            port: Port to listen on (defaults to settings.metrics_port)
        """
        if port is None:
            port = get_settings().metrics_port
        start_http_server(port, registry=REGISTRY)
        logger.info("Metrics server started on port %d", port)

    def record_backend_call(self, operation: str, latency: float) -> None:
        """Record a completed backend request and its latency."""
        self.backend_requests.labels(operation=operation).inc()
        if latency > 0:
            self.backend_latency.labels(operation=operation).observe(latency)

    def record_backend_error(self, operation: str, kind: str) -> None:
        """Record a failed backend request by error kind."""
        self.backend_errors.labels(operation=operation, kind=kind).inc()

    def record_compensation(self, action: str) -> None:
        """Record a rolled-back optimistic update."""
        self.optimistic_compensations.labels(action=action).inc()


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
