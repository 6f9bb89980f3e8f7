"""
Redis key-value backend.

This module provides the production backend built on ``redis.asyncio``.
Batches are sent as MULTI/EXEC transactions so concurrent readers never
observe a partially applied batch.
"""

import logging
from datetime import timedelta
from typing import Any, List, Optional, Sequence, Set

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import BackendError
from ..utils import to_milliseconds
from .base import Batch, KeyValueBackend


logger = logging.getLogger(__name__)


class RedisBatch(Batch):
    """Batch backed by a transactional Redis pipeline."""

    def __init__(self, pipeline: Any):
        self._pipeline = pipeline

    def set(self, key: str, value: str, ttl: timedelta) -> "RedisBatch":
        self._pipeline.set(key, value, px=to_milliseconds(ttl))
        return self

    def sadd(self, key: str, *members: str) -> "RedisBatch":
        self._pipeline.sadd(key, *members)
        return self

    def srem(self, key: str, *members: str) -> "RedisBatch":
        self._pipeline.srem(key, *members)
        return self

    def delete(self, *keys: str) -> "RedisBatch":
        self._pipeline.delete(*keys)
        return self

    def expire(self, key: str, ttl: timedelta) -> "RedisBatch":
        self._pipeline.pexpire(key, to_milliseconds(ttl))
        return self

    async def execute(self) -> List[object]:
        try:
            return await self._pipeline.execute()
        except RedisError as e:
            raise BackendError("redis transaction failed", e) from e


class RedisBackend(KeyValueBackend):
    """
    Redis-based key-value backend.

    The client must be created with ``decode_responses=True`` so values
    and set members come back as ``str``.
    """

    def __init__(self, client: Any):
        """
        Initialize Redis backend.

        Args:
            client: ``redis.asyncio.Redis`` instance
        """
        self._redis = client

    @classmethod
    def from_url(cls,
                 url: str,
                 socket_timeout: Optional[float] = None,
                 **connection_pool_kwargs: Any) -> "RedisBackend":
        """
        Create a backend from a Redis URL.

        Args:
            url: Redis URL, e.g. ``redis://localhost:6379/0``
            socket_timeout: Socket timeout in seconds
            **connection_pool_kwargs: Additional connection pool arguments

        Returns:
            RedisBackend instance
        """
        client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            **connection_pool_kwargs
        )
        return cls(client)

    async def connect(self) -> None:
        """Verify the connection to Redis."""
        try:
            await self._redis.ping()
        except RedisError as e:
            logger.error(f"Failed to connect to Redis: {e}")
            raise BackendError("cannot reach redis", e) from e
        logger.info("Connected to Redis")

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            raise BackendError(f"GET {key} failed", e) from e

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        if not keys:
            return []
        try:
            return await self._redis.mget(list(keys))
        except RedisError as e:
            raise BackendError(f"MGET of {len(keys)} keys failed", e) from e

    async def smembers(self, key: str) -> Set[str]:
        try:
            return set(await self._redis.smembers(key))
        except RedisError as e:
            raise BackendError(f"SMEMBERS {key} failed", e) from e

    async def srem(self, key: str, *members: str) -> int:
        if not members:
            return 0
        try:
            return await self._redis.srem(key, *members)
        except RedisError as e:
            raise BackendError(f"SREM {key} failed", e) from e

    def batch(self) -> RedisBatch:
        return RedisBatch(self._redis.pipeline(transaction=True))

    async def close(self) -> None:
        """Close the Redis connection pool."""
        if self._redis is not None:
            await self._redis.aclose()
            logger.info("Disconnected from Redis")
