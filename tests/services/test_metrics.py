"""Tests for MetricsRegistry."""

from __future__ import annotations

import pytest

from armory.services.metrics import MetricDefinition, MetricsRegistry
from armory.shared.constants import MetricNames
from armory.shared.errors import ErrorCode, MetricsError


class TestMetricsRegistryFailures:
    """Misuse fails fast."""

    def test_unknown_metric_raises(self, metrics: MetricsRegistry) -> None:
        with pytest.raises(MetricsError) as exc_info:
            metrics.increment("not_declared_total")

        assert exc_info.value.code is ErrorCode.METRICS_UNKNOWN_METRIC

    def test_counter_cannot_decrease(self, metrics: MetricsRegistry) -> None:
        with pytest.raises(MetricsError) as exc_info:
            metrics.increment(MetricNames.CACHE_HITS, amount=-1, labels={"prefix": "realms"})

        assert exc_info.value.code is ErrorCode.METRICS_INVALID_OPERATION

    def test_set_gauge_on_counter_raises(self, metrics: MetricsRegistry) -> None:
        with pytest.raises(MetricsError):
            metrics.set_gauge(MetricNames.CACHE_HITS, 3)


class TestMetricsRegistryRecording:
    """Counters and gauges keyed by label set."""

    def test_increment_accumulates_per_label_set(self, metrics: MetricsRegistry) -> None:
        """Each label combination is its own series."""
        # When
        metrics.increment(MetricNames.CACHE_HITS, labels={"prefix": "realms"})
        metrics.increment(MetricNames.CACHE_HITS, labels={"prefix": "realms"})
        metrics.increment(MetricNames.CACHE_HITS, labels={"prefix": "leaderboard"})

        # Then
        assert metrics.get_value(MetricNames.CACHE_HITS, {"prefix": "realms"}) == 2.0
        assert metrics.get_value(MetricNames.CACHE_HITS, {"prefix": "leaderboard"}) == 1.0
        assert metrics.get_value(MetricNames.CACHE_HITS, {"prefix": "character"}) == 0.0

    def test_missing_labels_become_unknown(self, metrics: MetricsRegistry) -> None:
        # When
        metrics.increment(MetricNames.BNET_REQUESTS, labels={"status": "success"})

        # Then
        assert metrics.get_value(MetricNames.BNET_REQUESTS, {"status": "success", "operation": "unknown"}) == 1.0

    def test_gauge_is_overwritten(self, metrics: MetricsRegistry) -> None:
        metrics.set_gauge(MetricNames.CACHE_ENTRIES, 10, labels={"state": "active"})
        metrics.set_gauge(MetricNames.CACHE_ENTRIES, 4, labels={"state": "active"})

        assert metrics.get_value(MetricNames.CACHE_ENTRIES, {"state": "active"}) == 4.0

    def test_list_returns_only_recorded_series(self, metrics: MetricsRegistry, clock) -> None:
        """Declared but untouched metrics are not listed."""
        # Given
        metrics.increment(MetricNames.CACHE_CLEANUP)

        # When
        samples = metrics.list()

        # Then
        assert len(samples) == 1
        assert samples[0].metric == MetricNames.CACHE_CLEANUP
        assert samples[0].value == 1.0
        assert samples[0].updated_at == clock.now

    def test_separate_registries_do_not_share_state(self) -> None:
        # Given
        first = MetricsRegistry()
        second = MetricsRegistry()

        # When
        first.increment(MetricNames.CACHE_CLEANUP)

        # Then
        assert first.get_value(MetricNames.CACHE_CLEANUP) == 1.0
        assert second.get_value(MetricNames.CACHE_CLEANUP) == 0.0

    def test_render_exposes_prometheus_text(self, metrics: MetricsRegistry) -> None:
        metrics.increment(MetricNames.BNET_RETRY, labels={"operation": "fetch"})

        text = metrics.render().decode("utf-8")

        assert 'bnet_retry_total{operation="fetch"} 1.0' in text

    def test_custom_definitions(self) -> None:
        registry = MetricsRegistry(definitions=(MetricDefinition("jobs_total", "counter", "Jobs", ("kind",)),))

        registry.increment("jobs_total", amount=3, labels={"kind": "sweep"})

        assert registry.get_value("jobs_total", {"kind": "sweep"}) == 3.0
