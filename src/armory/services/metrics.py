"""
Prometheus metrics registry for Armory.

A fixed, pre-declared set of counters and gauges backed by a private
``prometheus_client.CollectorRegistry``. Incrementing a metric that was never
declared is a configuration bug and fails fast.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from prometheus_client import CollectorRegistry, Counter, Gauge, generate_latest

from armory.shared.constants import MetricNames
from armory.shared.errors import ErrorCode, ErrorContext, MetricsError
from armory.shared.types.base import BaseDataclass
from armory.shared.utils.clock import Clock, now_ms

logger = logging.getLogger(__name__)

COUNTER = "counter"
GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDefinition:
    """Name, type, help text and label schema of a declared metric."""

    name: str
    type: str
    help: str
    labels: tuple[str, ...] = ()


METRIC_DEFINITIONS: tuple[MetricDefinition, ...] = (
    MetricDefinition(
        MetricNames.BNET_REQUESTS,
        COUNTER,
        "Total Battle.net API requests",
        ("status", "operation"),
    ),
    MetricDefinition(
        MetricNames.BNET_RETRY,
        COUNTER,
        "Total retries performed for Battle.net API requests",
        ("operation",),
    ),
    MetricDefinition(
        MetricNames.CACHE_HITS,
        COUNTER,
        "Cache hits by cache key prefix",
        ("prefix",),
    ),
    MetricDefinition(
        MetricNames.CACHE_MISSES,
        COUNTER,
        "Cache misses by cache key prefix",
        ("prefix",),
    ),
    MetricDefinition(
        MetricNames.CACHE_CLEANUP,
        COUNTER,
        "Number of cache cleanup sweeps performed",
    ),
    MetricDefinition(
        MetricNames.CACHE_ENTRIES,
        GAUGE,
        "Cache entries by state as of the last sweep",
        ("state",),
    ),
)


@dataclass
class MetricSample(BaseDataclass):
    """Current value of one labeled series."""

    metric: str
    labels: dict[str, str] = field(default_factory=dict)
    value: float = 0.0
    updated_at: int = 0


class MetricsRegistry:
    """Counters/gauges keyed by (metric name, label set).

    Example:
        >>> registry = MetricsRegistry()
        >>> registry.increment("cache_hits_total", labels={"prefix": "character"})
        >>> registry.list()[0].value
        1.0
    """

    def __init__(
        self,
        definitions: tuple[MetricDefinition, ...] = METRIC_DEFINITIONS,
        registry: CollectorRegistry | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the registry and declare every metric.

        Args:
            definitions: Metric declarations
            registry: Prometheus registry; a private one is created by default
                so separate instances never collide
            clock: Epoch-millisecond clock used for ``updated_at``
        """
        self.registry = registry or CollectorRegistry()
        self._clock = clock or now_ms
        self._definitions = {definition.name: definition for definition in definitions}
        self._collectors: dict[str, Counter | Gauge] = {}
        self._updated_at: dict[tuple[str, tuple[tuple[str, str], ...]], int] = {}
        self._lock = threading.Lock()

        for definition in definitions:
            collector_cls = Counter if definition.type == COUNTER else Gauge
            self._collectors[definition.name] = collector_cls(
                definition.name,
                definition.help,
                list(definition.labels),
                registry=self.registry,
            )

    def _get_definition(self, name: str) -> MetricDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise MetricsError(
                ErrorCode.METRICS_UNKNOWN_METRIC,
                f"Metric {name} is not defined",
                ErrorContext(operation="metrics", additional_data={"metric": name}),
            )
        return definition

    @staticmethod
    def _normalize_labels(
        definition: MetricDefinition,
        labels: dict[str, str] | None,
    ) -> dict[str, str]:
        labels = labels or {}
        return {
            key: str(labels[key]) if labels.get(key) is not None else MetricNames.UNKNOWN_LABEL
            for key in definition.labels
        }

    def _series(self, name: str, definition: MetricDefinition, labels: dict[str, str]) -> Counter | Gauge:
        collector = self._collectors[name]
        if definition.labels:
            return collector.labels(**labels)
        return collector

    def _touch(self, name: str, labels: dict[str, str]) -> None:
        with self._lock:
            self._updated_at[(name, tuple(sorted(labels.items())))] = self._clock()

    def increment(
        self,
        name: str,
        amount: float = 1,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Add ``amount`` to a counter (or gauge).

        Args:
            name: Declared metric name
            amount: Non-negative increment for counters
            labels: Label values; missing labels become "unknown"

        Raises:
            MetricsError: If the metric is not declared or the amount is negative
        """
        definition = self._get_definition(name)
        normalized = self._normalize_labels(definition, labels)

        if definition.type == COUNTER and amount < 0:
            raise MetricsError(
                ErrorCode.METRICS_INVALID_OPERATION,
                f"Counter {name} cannot be decreased",
                ErrorContext(operation="metrics", additional_data={"metric": name}),
            )

        self._series(name, definition, normalized).inc(amount)
        self._touch(name, normalized)

    def set_gauge(
        self,
        name: str,
        value: float,
        labels: dict[str, str] | None = None,
    ) -> None:
        """Set a gauge to ``value``.

        Raises:
            MetricsError: If the metric is not declared or is not a gauge
        """
        definition = self._get_definition(name)
        if definition.type != GAUGE:
            raise MetricsError(
                ErrorCode.METRICS_INVALID_OPERATION,
                f"{name} is not a gauge metric",
                ErrorContext(operation="metrics", additional_data={"metric": name}),
            )
        normalized = self._normalize_labels(definition, labels)
        self._series(name, definition, normalized).set(value)
        self._touch(name, normalized)

    def get_value(self, name: str, labels: dict[str, str] | None = None) -> float:
        """Return the current value of one series, 0.0 if never recorded."""
        definition = self._get_definition(name)
        normalized = self._normalize_labels(definition, labels)
        value = self.registry.get_sample_value(name, normalized)
        return float(value) if value is not None else 0.0

    def list(self) -> list[MetricSample]:
        """Return every series that has been recorded at least once."""
        samples: list[MetricSample] = []
        for family in self.registry.collect():
            for sample in family.samples:
                if sample.name not in self._definitions:
                    continue
                labels = dict(sample.labels)
                updated_at = self._updated_at.get((sample.name, tuple(sorted(labels.items()))))
                if updated_at is None:
                    continue
                samples.append(
                    MetricSample(
                        metric=sample.name,
                        labels=labels,
                        value=float(sample.value),
                        updated_at=updated_at,
                    )
                )
        return samples

    def render(self) -> bytes:
        """Render the Prometheus text exposition format."""
        return generate_latest(self.registry)


__all__ = ["METRIC_DEFINITIONS", "MetricDefinition", "MetricSample", "MetricsRegistry"]
