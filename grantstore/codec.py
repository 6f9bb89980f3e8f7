"""
JSON encoding of persisted grants.
"""

import json
from typing import Any, Dict, Union

from .errors import DeserializationError, SerializationError
from .types import PersistedGrant
from .utils import parse_datetime

_REQUIRED_FIELDS = ("key", "type", "client_id", "expiration")


class GrantCodec:
    """
    Converts grants to and from the payload stored under the primary key.

    Datetimes are written in ISO 8601 format. The payload in ``data`` must
    be representable as JSON.
    """

    def to_dict(self, grant: PersistedGrant) -> Dict[str, Any]:
        return {
            'key': grant.key,
            'type': grant.type,
            'subject_id': grant.subject_id,
            'client_id': grant.client_id,
            'session_id': grant.session_id,
            'description': grant.description,
            'creation_time': grant.creation_time.isoformat(),
            'expiration': grant.expiration.isoformat(),
            'consumed_time': grant.consumed_time.isoformat() if grant.consumed_time else None,
            'data': grant.data
        }

    def from_dict(self, data: Dict[str, Any]) -> PersistedGrant:
        missing = [name for name in _REQUIRED_FIELDS if name not in data]
        if missing:
            raise DeserializationError(f"grant payload is missing {', '.join(missing)}")

        kwargs = dict(
            key=data['key'],
            type=data['type'],
            client_id=data['client_id'],
            subject_id=data.get('subject_id'),
            session_id=data.get('session_id'),
            description=data.get('description'),
            expiration=parse_datetime(data['expiration']),
            consumed_time=parse_datetime(data.get('consumed_time')),
            data=data.get('data')
        )
        if data.get('creation_time'):
            kwargs['creation_time'] = parse_datetime(data['creation_time'])
        return PersistedGrant(**kwargs)

    def encode(self, grant: PersistedGrant) -> str:
        """
        Encode a grant as JSON text.

        Args:
            grant: Grant to encode

        Returns:
            JSON document

        Raises:
            SerializationError: If the payload is cyclic or not representable
        """
        try:
            return json.dumps(self.to_dict(grant))
        except (TypeError, ValueError) as e:
            raise SerializationError(f"cannot encode grant {grant.key}", e) from e

    def decode(self, payload: Union[str, bytes]) -> PersistedGrant:
        """
        Decode a grant from JSON text.

        Args:
            payload: JSON document as read from the store

        Returns:
            Decoded grant

        Raises:
            DeserializationError: If the payload is not a valid grant encoding
        """
        try:
            data = json.loads(payload)
        except (TypeError, ValueError) as e:
            raise DeserializationError("grant payload is not valid JSON", e) from e

        if not isinstance(data, dict):
            raise DeserializationError("grant payload is not a JSON object")

        try:
            return self.from_dict(data)
        except DeserializationError:
            raise
        except (TypeError, ValueError, AttributeError) as e:
            raise DeserializationError("grant payload has invalid fields", e) from e
