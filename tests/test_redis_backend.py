"""
Tests for the Redis backend command mapping, using a mocked client.
"""

import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, call

from redis.exceptions import ConnectionError as RedisConnectionError

from grantstore import BackendError, PersistedGrantStore, RecordingObserver
from grantstore.backend.redis import RedisBackend
from grantstore.utils import to_milliseconds

from .helpers import make_grant


def queued(pipeline):
    """Commands queued on a mocked pipeline, without the execute call"""
    return [c for c in pipeline.method_calls if c[0] != "execute"]


@pytest.fixture
def pipeline():
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[])
    return pipe


@pytest.fixture
def client(pipeline):
    redis_client = MagicMock()
    redis_client.pipeline.return_value = pipeline
    redis_client.get = AsyncMock(return_value=None)
    redis_client.mget = AsyncMock(return_value=[])
    redis_client.smembers = AsyncMock(return_value=set())
    redis_client.srem = AsyncMock(return_value=0)
    redis_client.ping = AsyncMock(return_value=True)
    redis_client.aclose = AsyncMock()
    return redis_client


class TestRedisBackend:
    """Test Redis backend commands"""

    @pytest.mark.asyncio
    async def test_batch_uses_transaction(self, client, pipeline):
        backend = RedisBackend(client)
        batch = backend.batch()
        batch.set("k1", "{}", timedelta(seconds=1.5))
        batch.sadd("u1", "k1")
        batch.srem("u1:c1", "k1", "k2")
        batch.delete("k1", "u1:c1")
        batch.expire("u1:c1:code", timedelta(minutes=1))
        await batch.execute()

        client.pipeline.assert_called_once_with(transaction=True)
        assert queued(pipeline) == [
            call.set("k1", "{}", px=1500),
            call.sadd("u1", "k1"),
            call.srem("u1:c1", "k1", "k2"),
            call.delete("k1", "u1:c1"),
            call.pexpire("u1:c1:code", 60000),
        ]
        pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_sub_millisecond_ttl_is_rounded_up(self, client, pipeline):
        batch = RedisBackend(client).batch()
        batch.set("k1", "{}", timedelta(microseconds=500))
        batch.expire("u1:c1:code", timedelta(microseconds=1))
        await batch.execute()

        assert queued(pipeline) == [
            call.set("k1", "{}", px=1),
            call.pexpire("u1:c1:code", 1),
        ]

    @pytest.mark.parametrize("ttl, expected", [
        (timedelta(microseconds=500), 1),
        (timedelta(milliseconds=1, microseconds=1), 2),
        (timedelta(seconds=1.5), 1500),
        (timedelta(hours=1), 3600000),
        (timedelta(0), 0),
        (timedelta(seconds=-5), -5000),
    ])
    def test_to_milliseconds(self, ttl, expected):
        assert to_milliseconds(ttl) == expected

    @pytest.mark.asyncio
    async def test_transaction_error_is_wrapped(self, client, pipeline):
        pipeline.execute.side_effect = RedisConnectionError("connection reset")

        with pytest.raises(BackendError):
            await RedisBackend(client).batch().delete("k1").execute()

    @pytest.mark.asyncio
    async def test_reads(self, client):
        client.get.return_value = "payload"
        client.mget.return_value = ["a", None]
        client.smembers.return_value = {"k1", "k2"}
        backend = RedisBackend(client)

        assert await backend.get("k1") == "payload"
        assert await backend.mget(["k1", "k2"]) == ["a", None]
        assert await backend.smembers("u1") == {"k1", "k2"}
        client.mget.assert_awaited_once_with(["k1", "k2"])

    @pytest.mark.asyncio
    async def test_empty_mget_and_srem_skip_round_trip(self, client):
        backend = RedisBackend(client)

        assert await backend.mget([]) == []
        assert await backend.srem("u1") == 0
        client.mget.assert_not_awaited()
        client.srem.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_read_error_is_wrapped(self, client):
        client.get.side_effect = RedisConnectionError("timeout")

        with pytest.raises(BackendError):
            await RedisBackend(client).get("k1")

    @pytest.mark.asyncio
    async def test_connect_and_close(self, client):
        backend = RedisBackend(client)
        await backend.connect()
        await backend.close()

        client.ping.assert_awaited_once()
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_connect_failure(self, client):
        client.ping.side_effect = RedisConnectionError("refused")

        with pytest.raises(BackendError):
            await RedisBackend(client).connect()


class TestStoreOverRedis:
    """Test the commands the grant store sends to Redis"""

    @pytest.mark.asyncio
    async def test_store_sends_one_transaction(self, client, pipeline, clock):
        store = PersistedGrantStore(RedisBackend(client), observer=RecordingObserver(), clock=clock)

        await store.store(make_grant(clock, expires_in=3600))

        assert [c[0] for c in queued(pipeline)] == ["set", "sadd", "sadd", "sadd", "pexpire"]
        assert pipeline.pexpire.call_args == call("u1:c1:refresh_token", 3600000)
        assert pipeline.set.call_args.kwargs["px"] == 3600000

    @pytest.mark.asyncio
    async def test_get_all_prunes_with_single_srem(self, client, clock):
        client.smembers.return_value = {"k1", "k2"}
        client.mget.side_effect = lambda keys: [None] * len(keys)
        client.srem.return_value = 2
        store = PersistedGrantStore(RedisBackend(client), observer=RecordingObserver(), clock=clock)

        assert await store.get_all("u1") == []

        client.srem.assert_awaited_once()
        args = client.srem.await_args.args
        assert args[0] == "u1"
        assert set(args[1:]) == {"k1", "k2"}

    @pytest.mark.asyncio
    async def test_remove_all_by_client_batch(self, client, pipeline, clock):
        client.smembers.return_value = {"k1"}
        store = PersistedGrantStore(RedisBackend(client), observer=RecordingObserver(), clock=clock)

        await store.remove_all("u1", "c1")

        assert queued(pipeline) == [
            call.delete("k1", "u1:c1"),
            call.srem("u1", "k1"),
        ]
        pipeline.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_store_failure_is_swallowed(self, client, pipeline, clock):
        pipeline.execute.side_effect = RedisConnectionError("connection reset")
        observer = RecordingObserver()
        store = PersistedGrantStore(RedisBackend(client), observer=observer, clock=clock)

        await store.store(make_grant(clock))

        assert observer.last.failed
