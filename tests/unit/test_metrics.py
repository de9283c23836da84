"""Unit tests for Prometheus metrics collector."""

import pytest
from prometheus_client import CollectorRegistry

from webhook_scheduler import metrics as metrics_module
from webhook_scheduler.metrics import MetricsCollector


@pytest.fixture
def collector() -> MetricsCollector:
    return MetricsCollector(registry=CollectorRegistry())


def _value(collector: MetricsCollector, name: str, **labels) -> float:
    return collector.registry.get_sample_value(name, labels) or 0.0


class TestMetricsCollector:
    """Test MetricsCollector recording methods."""

    def test_record_firing(self, collector):
        collector.record_firing("recurring", True)
        collector.record_firing("recurring", False)
        collector.record_firing("recurring", False)

        assert _value(
            collector, "webhook_scheduler_firings_total", engine="recurring", outcome="success"
        ) == 1
        assert _value(
            collector, "webhook_scheduler_firings_total", engine="recurring", outcome="failed"
        ) == 2

    def test_record_tick(self, collector):
        collector.record_tick("deferred", 0.25)

        assert _value(
            collector, "webhook_scheduler_tick_duration_seconds_count", engine="deferred"
        ) == 1
        assert _value(
            collector, "webhook_scheduler_last_tick_timestamp_seconds", engine="deferred"
        ) > 0

    def test_record_tick_skipped(self, collector):
        collector.record_tick_skipped("recurring")
        assert _value(collector, "webhook_scheduler_ticks_skipped_total", engine="recurring") == 1

    def test_record_policy_fallback(self, collector):
        collector.record_policy_fallback()
        collector.record_policy_fallback()
        assert _value(collector, "webhook_scheduler_policy_fallbacks_total") == 2

    def test_record_delivery_latency(self, collector):
        collector.record_delivery_latency(0.3)
        assert _value(collector, "webhook_scheduler_delivery_latency_seconds_count") == 1
        assert _value(collector, "webhook_scheduler_delivery_latency_seconds_sum") == pytest.approx(0.3)

    def test_record_cleanup(self, collector):
        collector.record_cleanup("message_logs", 7)
        assert _value(
            collector, "webhook_scheduler_db_cleanup_rows_deleted_total", table="message_logs"
        ) == 7

    def test_record_error(self, collector):
        collector.record_error("ticker", "OperationalError")
        assert _value(
            collector,
            "webhook_scheduler_errors_total",
            component="ticker",
            error_type="OperationalError",
        ) == 1


class TestGetMetrics:
    """Test the global collector accessor."""

    def test_returns_singleton(self):
        first = metrics_module.get_metrics()
        assert metrics_module.get_metrics() is first
