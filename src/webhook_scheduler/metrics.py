"""Prometheus metrics collector."""

import logging
import time
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects and exposes Prometheus metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        """
        Initialize metrics.

        Args:
            registry: Registry to register the metrics with (tests use a private one)
        """
        self.registry = registry

        # Engine activity
        self.firings_total = Counter(
            "webhook_scheduler_firings_total",
            "Total schedule and deferred message firings",
            ["engine", "outcome"],
            registry=registry,
        )

        self.tick_duration_seconds = Histogram(
            "webhook_scheduler_tick_duration_seconds",
            "Duration of one engine run in seconds",
            ["engine"],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0],
            registry=registry,
        )

        self.last_tick_timestamp = Gauge(
            "webhook_scheduler_last_tick_timestamp_seconds",
            "Unix time of the last completed engine run",
            ["engine"],
            registry=registry,
        )

        self.ticks_skipped_total = Counter(
            "webhook_scheduler_ticks_skipped_total",
            "Engine runs skipped because the previous run was still in progress",
            ["engine"],
            registry=registry,
        )

        self.policy_fallbacks_total = Counter(
            "webhook_scheduler_policy_fallbacks_total",
            "Next-trigger computations that fell back to the default interval",
            registry=registry,
        )

        # Delivery
        self.delivery_latency_seconds = Histogram(
            "webhook_scheduler_delivery_latency_seconds",
            "Outbound webhook call latency in seconds",
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
            registry=registry,
        )

        # Database metrics
        self.db_cleanup_rows_deleted = Counter(
            "webhook_scheduler_db_cleanup_rows_deleted",
            "Rows deleted during retention cleanup",
            ["table"],
            registry=registry,
        )

        # Application health
        self.errors_total = Counter(
            "webhook_scheduler_errors_total",
            "Total errors encountered",
            ["component", "error_type"],
            registry=registry,
        )

    def record_firing(self, engine: str, success: bool) -> None:
        """Record one schedule or deferred message firing."""
        outcome = "success" if success else "failed"
        self.firings_total.labels(engine=engine, outcome=outcome).inc()

    def record_tick(self, engine: str, duration: float) -> None:
        """Record a completed engine run."""
        self.tick_duration_seconds.labels(engine=engine).observe(duration)
        self.last_tick_timestamp.labels(engine=engine).set(time.time())

    def record_tick_skipped(self, engine: str) -> None:
        """Record an engine run skipped due to overlap."""
        self.ticks_skipped_total.labels(engine=engine).inc()

    def record_policy_fallback(self) -> None:
        """Record a fallback next-trigger computation."""
        self.policy_fallbacks_total.inc()

    def record_delivery_latency(self, seconds: float) -> None:
        """Record outbound call latency."""
        self.delivery_latency_seconds.observe(seconds)

    def record_cleanup(self, table: str, count: int) -> None:
        """Record cleanup operation."""
        self.db_cleanup_rows_deleted.labels(table=table).inc(count)

    def record_error(self, component: str, error_type: str) -> None:
        """Record an error."""
        self.errors_total.labels(component=component, error_type=error_type).inc()


# Global metrics collector instance
_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
        logger.info("Metrics collector initialized")
    return _metrics
