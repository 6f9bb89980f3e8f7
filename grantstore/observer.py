"""
Observability sinks for grant store operations.

Every store operation produces one OperationOutcome, which is handed to
the configured observer. Observers must not raise.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import List, Optional, Sequence

from .metrics import (
    METRIC_GRANT_FAILURES,
    METRIC_GRANT_HITS,
    METRIC_INDEX_PRUNED,
    METRIC_GRANT_MISSES,
    METRIC_GRANT_OPERATIONS,
    MetricsCollector,
)
from .types import OperationOutcome, OperationStatus


logger = logging.getLogger(__name__)


class GrantStoreObserver(ABC):
    """Abstract base class for outcome sinks"""

    @abstractmethod
    def record(self, outcome: OperationOutcome) -> None:
        """Record the outcome of an operation"""
        pass


class LoggingObserver(GrantStoreObserver):
    """Writes each outcome to a logger at the outcome's level"""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def record(self, outcome: OperationOutcome) -> None:
        self.log.log(outcome.level, outcome.describe())


class MetricsObserver(GrantStoreObserver):
    """Counts operations, failures and read hits/misses"""

    def __init__(self, collector: Optional[MetricsCollector] = None):
        self.collector = collector or MetricsCollector()

    def record(self, outcome: OperationOutcome) -> None:
        labels = {"operation": outcome.operation}
        self.collector.increment_counter(METRIC_GRANT_OPERATIONS, labels=labels)
        if outcome.pruned:
            self.collector.increment_counter(METRIC_INDEX_PRUNED, outcome.pruned)

        if outcome.status == OperationStatus.FAILED:
            self.collector.increment_counter(METRIC_GRANT_FAILURES, labels=labels)
        elif outcome.operation == "get":
            if outcome.status == OperationStatus.SUCCEEDED:
                self.collector.increment_counter(METRIC_GRANT_HITS)
            else:
                self.collector.increment_counter(METRIC_GRANT_MISSES)


class RecordingObserver(GrantStoreObserver):
    """Keeps the most recent outcomes in memory"""

    def __init__(self, max_entries: int = 1000):
        self.outcomes: deque = deque(maxlen=max_entries)

    def record(self, outcome: OperationOutcome) -> None:
        self.outcomes.append(outcome)

    def for_operation(self, operation: str) -> List[OperationOutcome]:
        """Get recorded outcomes of one operation, oldest first"""
        return [o for o in self.outcomes if o.operation == operation]

    @property
    def last(self) -> Optional[OperationOutcome]:
        return self.outcomes[-1] if self.outcomes else None

    def clear(self) -> None:
        self.outcomes.clear()


class CompositeObserver(GrantStoreObserver):
    """Fans each outcome out to several observers"""

    def __init__(self, observers: Sequence[GrantStoreObserver]):
        self.observers = list(observers)

    def record(self, outcome: OperationOutcome) -> None:
        for observer in self.observers:
            observer.record(outcome)
