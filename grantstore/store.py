"""
Index-consistent persisted grant store.

Grants are written under their primary key and referenced from three
index sets: by subject, by subject and client, and by subject, client
and type. Primary records and index sets expire independently, so index
membership is never trusted on its own. Every index read is checked
against the primary records and stale members are pruned when found.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from .backend.base import KeyValueBackend
from .codec import GrantCodec
from .errors import DeserializationError, ValidationError, require
from .keys import ALL_INDEXES, IndexKind, coarser_indexes, index_key, primary_key
from .observer import GrantStoreObserver, LoggingObserver
from .types import OperationOutcome, OperationStatus, PersistedGrant
from .utils import get_current_time


logger = logging.getLogger(__name__)


class PersistedGrantStore:
    """
    Persisted grant store over a key-value backend.

    Mutating operations never raise on backend failures. The failure is
    reported to the observer as a FAILED outcome and the call returns
    normally. Missing identifiers raise ValidationError immediately.
    """

    def __init__(self,
                 backend: KeyValueBackend,
                 codec: Optional[GrantCodec] = None,
                 observer: Optional[GrantStoreObserver] = None,
                 key_prefix: str = "",
                 clock: Callable[[], datetime] = get_current_time):
        """
        Initialize the grant store.

        Args:
            backend: Key-value backend holding grants and index sets
            codec: Grant codec, defaults to JSON
            observer: Sink for operation outcomes, defaults to logging
            key_prefix: Prefix applied to every storage key
            clock: Callable returning the current time, used for TTLs
        """
        self.backend = backend
        self.codec = codec or GrantCodec()
        self.observer = observer or LoggingObserver()
        self.key_prefix = key_prefix
        self._clock = clock

    def _primary_key(self, key: str) -> str:
        return primary_key(key, self.key_prefix)

    def _index_key(self, kind: IndexKind, subject_id: str,
                   client_id: Optional[str] = None,
                   grant_type: Optional[str] = None) -> str:
        return index_key(kind, subject_id, client_id, grant_type, self.key_prefix)

    def _report(self, outcome: OperationOutcome) -> None:
        self.observer.record(outcome)

    async def store(self, grant: PersistedGrant) -> None:
        """
        Persist a grant and index it by subject, client and type.

        The primary record expires at the grant's expiration. Only the
        subject-client-type index is given the same TTL; the two coarser
        indexes span grants with different lifetimes and are kept clean by
        pruning on read.

        Args:
            grant: Grant to persist

        Raises:
            ValidationError: If the grant or its key is missing
        """
        if grant is None:
            raise ValidationError("grant is required")
        require(grant.key, "grant.key")

        outcome = OperationOutcome(
            operation="store",
            status=OperationStatus.SUCCEEDED,
            key=grant.key,
            subject_id=grant.subject_id,
            client_id=grant.client_id,
            grant_type=grant.type,
            affected=1
        )
        try:
            payload = self.codec.encode(grant)
            grant_key = self._primary_key(grant.key)
            expires_in = grant.expiration - self._clock()

            batch = self.backend.batch()
            batch.set(grant_key, payload, expires_in)
            if grant.has_subject:
                for kind in ALL_INDEXES:
                    batch.sadd(self._index_key(kind, grant.subject_id, grant.client_id, grant.type), grant_key)
                batch.expire(
                    self._index_key(IndexKind.SUBJECT_CLIENT_TYPE, grant.subject_id, grant.client_id, grant.type),
                    expires_in
                )
            await batch.execute()
        except Exception as e:
            outcome.status = OperationStatus.FAILED
            outcome.affected = 0
            outcome.error = e
            outcome.level = logging.WARNING

        self._report(outcome)

    async def get(self, key: str) -> Optional[PersistedGrant]:
        """
        Retrieve a grant by its key.

        Args:
            key: Grant key

        Returns:
            The grant, or None if it does not exist, has expired or cannot
            be decoded
        """
        require(key, "key")

        payload = await self.backend.get(self._primary_key(key))
        outcome = OperationOutcome(operation="get", status=OperationStatus.NOT_FOUND, key=key)
        grant = None
        if payload is not None:
            try:
                grant = self.codec.decode(payload)
                outcome.status = OperationStatus.SUCCEEDED
                outcome.affected = 1
            except DeserializationError as e:
                outcome.error = e
                outcome.level = logging.WARNING

        self._report(outcome)
        return grant

    async def get_all(self, subject_id: str) -> List[PersistedGrant]:
        """
        Retrieve every live grant of a subject.

        Index members whose grant no longer exists are removed from the
        subject index as a side effect.

        Args:
            subject_id: Subject identifier

        Returns:
            Live grants in no particular order
        """
        require(subject_id, "subject_id")
        return await self._read_index("get_all", IndexKind.SUBJECT, subject_id)

    async def get_all_by_client(self, subject_id: str, client_id: str) -> List[PersistedGrant]:
        """Retrieve every live grant of a subject issued to one client."""
        require(subject_id, "subject_id")
        require(client_id, "client_id")
        return await self._read_index("get_all_by_client", IndexKind.SUBJECT_CLIENT, subject_id, client_id)

    async def get_all_by_type(self, subject_id: str, client_id: str,
                              grant_type: str) -> List[PersistedGrant]:
        """Retrieve every live grant of one type for a subject and client."""
        require(subject_id, "subject_id")
        require(client_id, "client_id")
        require(grant_type, "grant_type")
        return await self._read_index(
            "get_all_by_type", IndexKind.SUBJECT_CLIENT_TYPE, subject_id, client_id, grant_type
        )

    async def _read_index(self, operation: str, kind: IndexKind, subject_id: str,
                          client_id: Optional[str] = None,
                          grant_type: Optional[str] = None) -> List[PersistedGrant]:
        set_key = self._index_key(kind, subject_id, client_id, grant_type)
        outcome = OperationOutcome(
            operation=operation,
            status=OperationStatus.NOT_FOUND,
            subject_id=subject_id,
            client_id=client_id,
            grant_type=grant_type
        )

        grant_keys = list(await self.backend.smembers(set_key))
        if not grant_keys:
            self._report(outcome)
            return []

        payloads = await self.backend.mget(grant_keys)

        stale = [k for k, payload in zip(grant_keys, payloads) if payload is None]
        if stale:
            try:
                outcome.pruned = await self.backend.srem(set_key, *stale)
            except Exception as e:
                logger.warning(f"failed to prune {len(stale)} stale members of {set_key}: {e}")

        grants = []
        for grant_key, payload in zip(grant_keys, payloads):
            if payload is None:
                continue
            try:
                grants.append(self.codec.decode(payload))
            except DeserializationError as e:
                logger.warning(f"skipping undecodable grant {grant_key} in {set_key}: {e}")

        outcome.status = OperationStatus.SUCCEEDED
        outcome.affected = len(grants)
        self._report(outcome)
        return grants

    async def remove(self, key: str) -> None:
        """
        Remove a grant and its index memberships.

        Removing a grant that does not exist is a no-op.

        Args:
            key: Grant key
        """
        require(key, "key")

        outcome = OperationOutcome(operation="remove", status=OperationStatus.NOT_FOUND, key=key)
        try:
            grant = await self.get(key)
            if grant is not None:
                outcome.subject_id = grant.subject_id
                outcome.client_id = grant.client_id
                outcome.grant_type = grant.type

                grant_key = self._primary_key(key)
                batch = self.backend.batch()
                batch.delete(grant_key)
                if grant.has_subject:
                    for kind in ALL_INDEXES:
                        batch.srem(self._index_key(kind, grant.subject_id, grant.client_id, grant.type), grant_key)
                await batch.execute()

                outcome.status = OperationStatus.SUCCEEDED
                outcome.affected = 1
        except Exception as e:
            outcome.status = OperationStatus.FAILED
            outcome.error = e
            outcome.level = logging.INFO

        self._report(outcome)

    async def remove_all(self, subject_id: str, client_id: str,
                         grant_type: Optional[str] = None) -> None:
        """
        Remove every grant of a subject for a client, optionally of one type.

        Removed keys are also taken out of every coarser index. Removing by
        subject and client leaves the subject-client-type indexes in place;
        their stale members expire with the index or are pruned on read.

        Args:
            subject_id: Subject identifier
            client_id: Client identifier
            grant_type: Grant type, or None for every type
        """
        require(subject_id, "subject_id")
        require(client_id, "client_id")
        if grant_type is not None:
            require(grant_type, "grant_type")
        kind = IndexKind.SUBJECT_CLIENT if grant_type is None else IndexKind.SUBJECT_CLIENT_TYPE

        outcome = OperationOutcome(
            operation="remove_all",
            status=OperationStatus.NOT_FOUND,
            subject_id=subject_id,
            client_id=client_id,
            grant_type=grant_type
        )
        try:
            set_key = self._index_key(kind, subject_id, client_id, grant_type)
            grant_keys = list(await self.backend.smembers(set_key))
            if grant_keys:
                batch = self.backend.batch()
                batch.delete(*grant_keys, set_key)
                for coarser in coarser_indexes(kind):
                    batch.srem(self._index_key(coarser, subject_id, client_id, grant_type), *grant_keys)
                await batch.execute()

                outcome.status = OperationStatus.SUCCEEDED
                outcome.affected = len(grant_keys)
        except Exception as e:
            outcome.status = OperationStatus.FAILED
            outcome.error = e
            outcome.level = logging.INFO

        self._report(outcome)

    async def close(self) -> None:
        """Close the underlying backend."""
        await self.backend.close()
