"""
Key-value backends for the grant store.
"""

from .base import Batch, KeyValueBackend
from .memory import MemoryBackend, MemoryBatch
from .redis import RedisBackend, RedisBatch

__all__ = [
    "Batch",
    "KeyValueBackend",
    "MemoryBackend",
    "MemoryBatch",
    "RedisBackend",
    "RedisBatch",
]
