"""Observability layer - logging and metrics."""

from feedback_portal.observability.logging import setup_logging
from feedback_portal.observability.metrics import MetricsCollector, get_metrics

__all__ = ["setup_logging", "MetricsCollector", "get_metrics"]
