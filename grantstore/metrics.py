"""
Metrics collection for grant store monitoring.
Provides counters tracking grant operations, failures and read hit rates.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Dict, Optional


class MetricType(Enum):
    """Type of metric being tracked."""
    COUNTER = "counter"              # Monotonically increasing metric


# Common metric names
METRIC_GRANT_OPERATIONS = "grant_operations_total"
METRIC_GRANT_FAILURES = "grant_operation_failures_total"
METRIC_GRANT_HITS = "grant_cache_hits_total"
METRIC_GRANT_MISSES = "grant_cache_misses_total"
METRIC_INDEX_PRUNED = "grant_index_pruned_total"


@dataclass
class Metric:
    """Represents a single monitored metric."""
    name: str
    type: MetricType
    value: float
    labels: Dict[str, str] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=datetime.now)
    description: str = ""


@dataclass
class CounterMetric(Metric):
    """Counter metric that only increases."""
    type: MetricType = field(default=MetricType.COUNTER, init=False)

    def __post_init__(self):
        if self.value < 0:
            raise ValueError("Counter value cannot be negative")

    def increment(self, amount: float = 1.0) -> None:
        """Increment the counter."""
        if amount < 0:
            raise ValueError("Counter increment cannot be negative")
        self.value += amount
        self.last_updated = datetime.now()


def _series_name(name: str, labels: Optional[Dict[str, str]]) -> str:
    if not labels:
        return name
    rendered = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
    return f"{name}{{{rendered}}}"


class MetricsCollector:
    """Manages counters keyed by metric name and label set."""

    def __init__(self):
        self._metrics: Dict[str, Metric] = {}
        self._lock = Lock()

    def register_counter(self, name: str, description: str = "",
                         labels: Dict[str, str] = None) -> CounterMetric:
        """Register a new counter metric."""
        series = _series_name(name, labels)
        with self._lock:
            if series in self._metrics:
                if not isinstance(self._metrics[series], CounterMetric):
                    raise ValueError(f"Metric {series} already exists with different type")
                return self._metrics[series]

            metric = CounterMetric(
                name=name,
                value=0.0,
                labels=labels or {},
                description=description
            )
            self._metrics[series] = metric
            return metric

    def get_metric(self, name: str, labels: Dict[str, str] = None) -> Optional[Metric]:
        """Get a metric by name and labels."""
        with self._lock:
            return self._metrics.get(_series_name(name, labels))

    def get_all_metrics(self) -> Dict[str, Metric]:
        """Get all registered metrics."""
        with self._lock:
            return self._metrics.copy()

    def increment_counter(self, name: str, amount: float = 1.0,
                          labels: Dict[str, str] = None) -> None:
        """Increment a counter metric."""
        metric = self.register_counter(name, labels=labels)
        metric.increment(amount)

    def get_value(self, name: str, labels: Dict[str, str] = None) -> float:
        """Get the current value of a metric, zero if never recorded."""
        metric = self.get_metric(name, labels)
        return metric.value if metric else 0.0

    def reset(self) -> None:
        """Drop every registered metric."""
        with self._lock:
            self._metrics.clear()
