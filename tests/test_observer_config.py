"""
Tests for observers, metrics and configuration.
"""

import logging
import pytest
from unittest.mock import AsyncMock, patch

from grantstore import (
    CompositeObserver,
    GrantStoreConfig,
    LoggingObserver,
    MetricsObserver,
    OperationOutcome,
    OperationStatus,
    PersistedGrantStore,
    RecordingObserver,
    create_memory_store,
    create_redis_store,
)
from grantstore.metrics import (
    METRIC_GRANT_FAILURES,
    METRIC_GRANT_HITS,
    METRIC_GRANT_MISSES,
    METRIC_GRANT_OPERATIONS,
    METRIC_INDEX_PRUNED,
    MetricsCollector,
)

from grantstore.utils import get_current_time

from .helpers import make_grant


class TestObservers:
    """Test outcome sinks"""

    def test_logging_observer_uses_outcome_level(self, caplog):
        outcome = OperationOutcome(
            operation="store",
            status=OperationStatus.FAILED,
            key="k1",
            subject_id="u1",
            error=RuntimeError("boom"),
            level=logging.WARNING,
        )

        with caplog.at_level(logging.DEBUG, logger="grantstore"):
            LoggingObserver().record(outcome)

        assert caplog.records[-1].levelno == logging.WARNING
        assert "store failed" in caplog.text
        assert "boom" in caplog.text

    def test_recording_observer_is_bounded(self):
        observer = RecordingObserver(max_entries=2)
        for key in ("a", "b", "c"):
            observer.record(OperationOutcome(operation="get", status=OperationStatus.NOT_FOUND, key=key))

        assert [o.key for o in observer.outcomes] == ["b", "c"]
        assert observer.last.key == "c"

    def test_composite_observer_fans_out(self):
        first, second = RecordingObserver(), RecordingObserver()
        outcome = OperationOutcome(operation="remove", status=OperationStatus.SUCCEEDED)

        CompositeObserver([first, second]).record(outcome)

        assert first.last is outcome
        assert second.last is outcome

    def test_outcome_to_dict(self):
        outcome = OperationOutcome(operation="remove_all", status=OperationStatus.SUCCEEDED, affected=3)
        data = outcome.to_dict()

        assert data["status"] == "succeeded"
        assert data["affected"] == 3
        assert data["level"] == "DEBUG"
        assert data["error"] is None

    @pytest.mark.asyncio
    async def test_metrics_observer_counts(self, backend, clock):
        collector = MetricsCollector()
        store = PersistedGrantStore(backend, observer=MetricsObserver(collector), clock=clock)

        await store.store(make_grant(clock, key="k1"))
        await store.store(make_grant(clock, key="k2", expires_in=10))
        await store.get("k1")
        await store.get("missing")
        clock.advance(seconds=30)
        await store.get_all("u1")

        assert collector.get_value(METRIC_GRANT_OPERATIONS, {"operation": "store"}) == 2
        assert collector.get_value(METRIC_GRANT_HITS) == 1
        assert collector.get_value(METRIC_GRANT_MISSES) == 1
        assert collector.get_value(METRIC_INDEX_PRUNED) == 1
        assert collector.get_value(METRIC_GRANT_FAILURES, {"operation": "store"}) == 0

    def test_counter_rejects_negative_increment(self):
        collector = MetricsCollector()
        with pytest.raises(ValueError):
            collector.increment_counter("x", -1)


class TestConfig:
    """Test configuration loading"""

    def test_defaults(self):
        config = GrantStoreConfig()
        assert config.redis_url == "redis://localhost:6379/0"
        assert config.key_prefix == ""
        assert config.validate() is True

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GRANTSTORE_REDIS_URL", "redis://cache:6380/2")
        monkeypatch.setenv("GRANTSTORE_KEY_PREFIX", "idp:")
        monkeypatch.setenv("GRANTSTORE_SOCKET_TIMEOUT", "2.5")

        config = GrantStoreConfig.from_env()

        assert config.redis_url == "redis://cache:6380/2"
        assert config.key_prefix == "idp:"
        assert config.socket_timeout == 2.5

    @pytest.mark.parametrize("kwargs", [{"redis_url": ""}, {"socket_timeout": 0}])
    def test_validate_rejects(self, kwargs):
        with pytest.raises(ValueError):
            GrantStoreConfig(**kwargs).validate()


class TestFactories:
    """Test store wiring helpers"""

    @pytest.mark.asyncio
    async def test_create_memory_store(self):
        store = create_memory_store(key_prefix="dev:")
        grant = make_grant(get_current_time)
        await store.store(grant)

        assert await store.get(grant.key) == grant
        await store.close()

    @pytest.mark.asyncio
    async def test_create_redis_store_verifies_connection(self):
        config = GrantStoreConfig(redis_url="redis://cache:6379/1", key_prefix="idp:")

        with patch("grantstore.factory.RedisBackend.connect", new_callable=AsyncMock) as connect:
            store = await create_redis_store(config)

        connect.assert_awaited_once()
        assert store.key_prefix == "idp:"
