"""
Persisted grant store.

This package stores short-lived authorization grants (refresh tokens,
authorization codes, consent records, device codes) in a TTL-governed
key-value store, indexed by subject, by subject and client, and by
subject, client and type.
"""

from .types import (
    GrantType,
    PersistedGrant,
    OperationOutcome,
    OperationStatus
)

from .errors import (
    GrantStoreError,
    ValidationError,
    SerializationError,
    DeserializationError,
    BackendError
)

from .codec import GrantCodec
from .config import GrantStoreConfig

from .observer import (
    GrantStoreObserver,
    LoggingObserver,
    MetricsObserver,
    RecordingObserver,
    CompositeObserver
)

from .store import PersistedGrantStore

from .factory import (
    create_memory_store,
    create_redis_store
)

__all__ = [
    # Core types
    "GrantType",
    "PersistedGrant",
    "OperationOutcome",
    "OperationStatus",

    # Errors
    "GrantStoreError",
    "ValidationError",
    "SerializationError",
    "DeserializationError",
    "BackendError",

    # Components
    "GrantCodec",
    "GrantStoreConfig",
    "PersistedGrantStore",

    # Observers
    "GrantStoreObserver",
    "LoggingObserver",
    "MetricsObserver",
    "RecordingObserver",
    "CompositeObserver",

    # Factories
    "create_memory_store",
    "create_redis_store"
]

__version__ = "0.1.0"
