"""
Key-value store interface consumed by the grant store.

The interface covers string values with expiry, sets of members and
multi-key reads, plus an atomic batch of mutations.
"""

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import List, Optional, Sequence, Set


class Batch(ABC):
    """
    An ordered group of mutations submitted as one transaction.

    Commands are queued synchronously and only reach the store when
    ``execute`` is awaited. Concurrent readers never observe a partially
    applied batch. Whether a command failing during ``execute`` undoes the
    others depends on the backend: the memory backend applies nothing,
    while Redis MULTI/EXEC still applies the remaining commands.
    """

    @abstractmethod
    def set(self, key: str, value: str, ttl: timedelta) -> "Batch":
        """Queue a string write that expires after ``ttl``."""
        pass

    @abstractmethod
    def sadd(self, key: str, *members: str) -> "Batch":
        """Queue adding members to a set."""
        pass

    @abstractmethod
    def srem(self, key: str, *members: str) -> "Batch":
        """Queue removing members from a set."""
        pass

    @abstractmethod
    def delete(self, *keys: str) -> "Batch":
        """Queue deleting keys of any type."""
        pass

    @abstractmethod
    def expire(self, key: str, ttl: timedelta) -> "Batch":
        """Queue setting the expiry of an existing key."""
        pass

    @abstractmethod
    async def execute(self) -> List[object]:
        """
        Submit the queued commands.

        Returns:
            Per-command results in queue order

        Raises:
            BackendError: If the store rejected the batch
        """
        pass


class KeyValueBackend(ABC):
    """Abstract base class for key-value store implementations."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Read a string value.

        Returns:
            The value, or None if the key does not exist or has expired
        """
        pass

    @abstractmethod
    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        """
        Read several string values in one round trip.

        Returns:
            Values aligned with ``keys``, None for absent keys
        """
        pass

    @abstractmethod
    async def smembers(self, key: str) -> Set[str]:
        """Read all members of a set, empty if the set does not exist."""
        pass

    @abstractmethod
    async def srem(self, key: str, *members: str) -> int:
        """
        Remove members from a set.

        Returns:
            Number of members removed
        """
        pass

    @abstractmethod
    def batch(self) -> Batch:
        """Start a new atomic batch."""
        pass

    async def close(self) -> None:
        """Release connections held by the backend."""
        pass
