"""
In-memory key-value backend.

This module provides a single-process backend suitable for development
and tests. Expiry is enforced lazily whenever a key is accessed.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple, Union

from ..errors import BackendError
from ..utils import get_current_time
from .base import Batch, KeyValueBackend


logger = logging.getLogger(__name__)

_Value = Union[str, FrozenSet[str]]


@dataclass(frozen=True)
class _Entry:
    value: _Value
    expires_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and now >= self.expires_at


class MemoryBatch(Batch):
    """Batch for the in-memory backend, applied copy-on-write."""

    def __init__(self, backend: "MemoryBackend"):
        self._backend = backend
        self._commands: List[Tuple[str, tuple]] = []

    def set(self, key: str, value: str, ttl: timedelta) -> "MemoryBatch":
        self._commands.append(("set", (key, value, ttl)))
        return self

    def sadd(self, key: str, *members: str) -> "MemoryBatch":
        self._commands.append(("sadd", (key, members)))
        return self

    def srem(self, key: str, *members: str) -> "MemoryBatch":
        self._commands.append(("srem", (key, members)))
        return self

    def delete(self, *keys: str) -> "MemoryBatch":
        self._commands.append(("delete", keys))
        return self

    def expire(self, key: str, ttl: timedelta) -> "MemoryBatch":
        self._commands.append(("expire", (key, ttl)))
        return self

    def __len__(self) -> int:
        return len(self._commands)

    async def execute(self) -> List[object]:
        return await self._backend._apply(self._commands)


class MemoryBackend(KeyValueBackend):
    """
    In-memory key-value backend.

    Strings and sets live in one dictionary, as in Redis, so a set
    command against a string key fails with a type error. Batches are
    applied to a copy of the data and swapped in only when every command
    succeeded.
    """

    def __init__(self, clock: Callable[[], datetime] = get_current_time):
        """
        Initialize memory backend.

        Args:
            clock: Callable returning the current time, used for expiry
        """
        self._data: Dict[str, _Entry] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    def _live(self, data: Dict[str, _Entry], key: str, now: datetime) -> Optional[_Entry]:
        entry = data.get(key)
        if entry is not None and entry.is_expired(now):
            del data[key]
            return None
        return entry

    def _string(self, data: Dict[str, _Entry], key: str, now: datetime) -> Optional[str]:
        entry = self._live(data, key, now)
        if entry is None:
            return None
        if not isinstance(entry.value, str):
            raise BackendError(f"WRONGTYPE {key} holds a set, not a string")
        return entry.value

    def _members(self, data: Dict[str, _Entry], key: str, now: datetime) -> Optional[_Entry]:
        entry = self._live(data, key, now)
        if entry is not None and isinstance(entry.value, str):
            raise BackendError(f"WRONGTYPE {key} holds a string, not a set")
        return entry

    def _remove_members(self, data: Dict[str, _Entry], key: str,
                        members: Sequence[str], now: datetime) -> int:
        entry = self._members(data, key, now)
        if entry is None:
            return 0
        remaining = entry.value - frozenset(members)
        removed = len(entry.value) - len(remaining)
        if remaining:
            data[key] = _Entry(remaining, entry.expires_at)
        else:
            del data[key]
        return removed

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            return self._string(self._data, key, self._clock())

    async def mget(self, keys: Sequence[str]) -> List[Optional[str]]:
        async with self._lock:
            now = self._clock()
            values = []
            for key in keys:
                entry = self._live(self._data, key, now)
                # MGET reports non-string keys as missing
                values.append(entry.value if entry is not None and isinstance(entry.value, str) else None)
            return values

    async def smembers(self, key: str) -> Set[str]:
        async with self._lock:
            entry = self._members(self._data, key, self._clock())
            return set(entry.value) if entry is not None else set()

    async def srem(self, key: str, *members: str) -> int:
        async with self._lock:
            return self._remove_members(self._data, key, members, self._clock())

    def batch(self) -> MemoryBatch:
        return MemoryBatch(self)

    async def _apply(self, commands: List[Tuple[str, tuple]]) -> List[object]:
        async with self._lock:
            now = self._clock()
            staged = dict(self._data)
            results: List[object] = []

            for name, args in commands:
                if name == "set":
                    key, value, ttl = args
                    staged[key] = _Entry(value, now + ttl)
                    results.append(True)
                elif name == "sadd":
                    key, members = args
                    entry = self._members(staged, key, now)
                    current = entry.value if entry is not None else frozenset()
                    updated = current | frozenset(members)
                    staged[key] = _Entry(updated, entry.expires_at if entry is not None else None)
                    results.append(len(updated) - len(current))
                elif name == "srem":
                    key, members = args
                    results.append(self._remove_members(staged, key, members, now))
                elif name == "delete":
                    deleted = 0
                    for key in args:
                        if self._live(staged, key, now) is not None:
                            del staged[key]
                            deleted += 1
                    results.append(deleted)
                elif name == "expire":
                    key, ttl = args
                    entry = self._live(staged, key, now)
                    if entry is None:
                        results.append(False)
                    else:
                        staged[key] = _Entry(entry.value, now + ttl)
                        results.append(True)
                else:
                    raise BackendError(f"unknown command {name}")

            # Entries whose TTL is already spent disappear immediately
            for key in [k for k, entry in staged.items() if entry.is_expired(now)]:
                del staged[key]

            self._data = staged
            logger.debug(f"Applied batch of {len(commands)} commands")
            return results

    async def exists(self, key: str) -> bool:
        """Check if a key is present and not expired."""
        async with self._lock:
            return self._live(self._data, key, self._clock()) is not None

    async def ttl(self, key: str) -> Optional[timedelta]:
        """
        Get the remaining lifetime of a key.

        Returns:
            Remaining lifetime, or None if the key is absent or never expires
        """
        async with self._lock:
            now = self._clock()
            entry = self._live(self._data, key, now)
            if entry is None or entry.expires_at is None:
                return None
            return entry.expires_at - now

    async def keys(self) -> List[str]:
        """Get all live keys."""
        async with self._lock:
            now = self._clock()
            return [key for key in list(self._data) if self._live(self._data, key, now) is not None]

    async def clear(self) -> int:
        """
        Remove every key.

        Returns:
            Number of keys removed
        """
        async with self._lock:
            count = len(self._data)
            self._data = {}
            logger.info(f"Cleared {count} keys from memory backend")
            return count
