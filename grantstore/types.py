"""
Grant record and operation outcome types.

This module provides the data structures passed across the grant store
boundary: the persisted grant itself and the outcome reported for every
store operation.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

from .utils import ensure_utc, get_current_time


class GrantType:
    """Well-known grant type names."""

    AUTHORIZATION_CODE = "authorization_code"
    REFRESH_TOKEN = "refresh_token"
    REFERENCE_TOKEN = "reference_token"
    USER_CONSENT = "user_consent"
    DEVICE_CODE = "device_code"


@dataclass
class PersistedGrant:
    """
    A short-lived authorization artifact.

    The key is supplied by the issuer and must be unique across unrelated
    grants. Grants without a subject are stored but never indexed.
    """

    key: str
    type: str
    client_id: str
    expiration: datetime
    subject_id: Optional[str] = None
    creation_time: datetime = field(default_factory=get_current_time)
    data: Any = None
    session_id: Optional[str] = None
    description: Optional[str] = None
    consumed_time: Optional[datetime] = None

    def __post_init__(self):
        self.expiration = ensure_utc(self.expiration)
        self.creation_time = ensure_utc(self.creation_time)
        if self.consumed_time is not None:
            self.consumed_time = ensure_utc(self.consumed_time)

    @property
    def has_subject(self) -> bool:
        """Whether the grant belongs to an end user."""
        return bool(self.subject_id)

    def time_to_live(self, now: Optional[datetime] = None) -> timedelta:
        """
        Get the remaining lifetime of the grant.

        Args:
            now: Reference time, defaults to the current time

        Returns:
            Time until expiration, negative once expired
        """
        return self.expiration - (now or get_current_time())

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the grant is past its expiration."""
        return self.time_to_live(now) <= timedelta(0)


class OperationStatus(Enum):
    """Result of a grant store operation."""

    SUCCEEDED = "succeeded"
    NOT_FOUND = "not_found"
    FAILED = "failed"


@dataclass
class OperationOutcome:
    """
    Outcome of a single grant store operation.

    Mutating operations never raise on infrastructure failures; the
    outcome is the only place such a failure is visible.
    """

    operation: str
    status: OperationStatus
    key: Optional[str] = None
    subject_id: Optional[str] = None
    client_id: Optional[str] = None
    grant_type: Optional[str] = None
    affected: int = 0
    pruned: int = 0
    error: Optional[Exception] = None
    level: int = logging.DEBUG
    timestamp: datetime = field(default_factory=get_current_time)

    @property
    def succeeded(self) -> bool:
        return self.status == OperationStatus.SUCCEEDED

    @property
    def failed(self) -> bool:
        return self.status == OperationStatus.FAILED

    def describe(self) -> str:
        """Build a human readable description for log output."""
        parts = [f"{self.operation} {self.status.value}"]
        if self.key:
            parts.append(f"key {self.key}")
        if self.subject_id:
            parts.append(f"subject {self.subject_id}")
        if self.client_id:
            parts.append(f"clientId {self.client_id}")
        if self.grant_type:
            parts.append(f"grantType {self.grant_type}")
        if self.affected:
            parts.append(f"affected {self.affected}")
        if self.pruned:
            parts.append(f"pruned {self.pruned}")
        message = ", ".join(parts)
        if self.error is not None:
            message += f": {self.error}"
        return message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            'operation': self.operation,
            'status': self.status.value,
            'key': self.key,
            'subject_id': self.subject_id,
            'client_id': self.client_id,
            'grant_type': self.grant_type,
            'affected': self.affected,
            'pruned': self.pruned,
            'error': str(self.error) if self.error is not None else None,
            'level': logging.getLevelName(self.level),
            'timestamp': self.timestamp.isoformat()
        }
