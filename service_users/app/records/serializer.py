"""
JSON serializer for record sets.

The encoded form is a compact JSON array of objects keyed by the canonical
field names, in the record set's iteration order. This is the exact string
stored in the cache and returned to clients. Non-ASCII text is written as
\\u escapes, so the payload is always encodable as UTF-8.
"""

import json
from typing import Iterable

from shared.errors import EncodeError, DecodeError

from .models import CanonicalRecord, RecordSet


def encode(records: Iterable[CanonicalRecord]) -> str:
    """Encode records as a JSON array string.

    Raises:
        EncodeError: if a record cannot be represented as JSON.
    """
    try:
        return json.dumps(
            [record.to_dict() for record in records],
            separators=(",", ":"),
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise EncodeError(f"Error encoding users: {exc}") from exc


def decode(payload: str) -> RecordSet:
    """Decode a JSON array string produced by :func:`encode`.

    Raises:
        DecodeError: if the payload is not a JSON array of user objects.
    """
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise DecodeError(f"Error decoding users: {exc}") from exc

    if data is None:
        return []
    if not isinstance(data, list):
        raise DecodeError("Encoded users must be a JSON array", details={"type": type(data).__name__})

    records: RecordSet = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise DecodeError("Encoded user must be a JSON object", details={"index": index})
        bad_fields = [key for key, value in item.items() if value is not None and not isinstance(value, str)]
        if bad_fields:
            raise DecodeError("Encoded user fields must be strings", details={"index": index, "fields": bad_fields})
        records.append(CanonicalRecord.from_dict(item))
    return records
