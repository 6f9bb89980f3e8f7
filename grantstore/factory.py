"""
Helpers wiring a grant store to a backend.
"""

import logging
from typing import Optional

from .backend.memory import MemoryBackend
from .backend.redis import RedisBackend
from .config import GrantStoreConfig
from .observer import GrantStoreObserver
from .store import PersistedGrantStore


logger = logging.getLogger(__name__)


def create_memory_store(key_prefix: str = "",
                        observer: Optional[GrantStoreObserver] = None) -> PersistedGrantStore:
    """
    Create a grant store backed by process memory.

    Args:
        key_prefix: Prefix applied to every storage key
        observer: Sink for operation outcomes

    Returns:
        PersistedGrantStore instance
    """
    return PersistedGrantStore(MemoryBackend(), observer=observer, key_prefix=key_prefix)


async def create_redis_store(config: Optional[GrantStoreConfig] = None,
                             observer: Optional[GrantStoreObserver] = None) -> PersistedGrantStore:
    """
    Create a grant store backed by Redis and verify the connection.

    Args:
        config: Store configuration, read from the environment if omitted
        observer: Sink for operation outcomes

    Returns:
        PersistedGrantStore instance

    Raises:
        ValueError: If the configuration is invalid
        BackendError: If Redis cannot be reached
    """
    config = config or GrantStoreConfig.from_env()
    config.validate()

    backend = RedisBackend.from_url(
        config.redis_url,
        socket_timeout=config.socket_timeout,
        **config.connection_pool_kwargs
    )
    await backend.connect()
    logger.info(f"Created Redis grant store with key prefix '{config.key_prefix}'")
    return PersistedGrantStore(backend, observer=observer, key_prefix=config.key_prefix)
