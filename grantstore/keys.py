"""
Storage key derivation for grants and their index sets.

Every function here is pure. The separator is not escaped: subject,
client and type identifiers must not contain it.
"""

from enum import Enum
from typing import Dict, Optional, Tuple

SEPARATOR = ":"


class IndexKind(Enum):
    """Granularity of an index set."""

    SUBJECT = "subject"
    SUBJECT_CLIENT = "subject_client"
    SUBJECT_CLIENT_TYPE = "subject_client_type"


# Deleting at a granularity updates every coarser index, never a finer one.
COARSER_INDEXES: Dict[IndexKind, Tuple[IndexKind, ...]] = {
    IndexKind.SUBJECT: (),
    IndexKind.SUBJECT_CLIENT: (IndexKind.SUBJECT,),
    IndexKind.SUBJECT_CLIENT_TYPE: (IndexKind.SUBJECT_CLIENT, IndexKind.SUBJECT),
}

ALL_INDEXES: Tuple[IndexKind, ...] = (
    IndexKind.SUBJECT,
    IndexKind.SUBJECT_CLIENT,
    IndexKind.SUBJECT_CLIENT_TYPE,
)


def primary_key(grant_key: str, prefix: str = "") -> str:
    """Get the storage key of a grant record."""
    return f"{prefix}{grant_key}"


def subject_index_key(subject_id: str, prefix: str = "") -> str:
    """Get the storage key of the subject index."""
    return f"{prefix}{subject_id}"


def subject_client_index_key(subject_id: str, client_id: str, prefix: str = "") -> str:
    """Get the storage key of the subject-client index."""
    return f"{prefix}{subject_id}{SEPARATOR}{client_id}"


def subject_client_type_index_key(subject_id: str, client_id: str,
                                  grant_type: str, prefix: str = "") -> str:
    """Get the storage key of the subject-client-type index."""
    return f"{prefix}{subject_id}{SEPARATOR}{client_id}{SEPARATOR}{grant_type}"


def index_key(kind: IndexKind,
              subject_id: str,
              client_id: Optional[str] = None,
              grant_type: Optional[str] = None,
              prefix: str = "") -> str:
    """
    Get the storage key of an index set of the given kind.

    Args:
        kind: Index granularity
        subject_id: Subject identifier
        client_id: Client identifier, required below subject granularity
        grant_type: Grant type, required at subject-client-type granularity
        prefix: Key prefix

    Returns:
        Storage key of the index set
    """
    if kind is IndexKind.SUBJECT:
        return subject_index_key(subject_id, prefix)
    if kind is IndexKind.SUBJECT_CLIENT:
        return subject_client_index_key(subject_id, client_id, prefix)
    return subject_client_type_index_key(subject_id, client_id, grant_type, prefix)


def coarser_indexes(kind: IndexKind) -> Tuple[IndexKind, ...]:
    """Get the index kinds a deletion at the given granularity fans out to."""
    return COARSER_INDEXES[kind]
