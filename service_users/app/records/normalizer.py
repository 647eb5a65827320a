"""
Normalizer mapping raw upstream users onto canonical records.
"""

from ..upstream.models import RawUser
from .models import CanonicalRecord


def normalize(raw: RawUser) -> CanonicalRecord:
    """Flatten a raw upstream user into a :class:`CanonicalRecord`."""
    return CanonicalRecord(
        gender=raw.gender,
        first_name=raw.name.first,
        last_name=raw.name.last,
        email=raw.email,
        city=raw.location.city,
        country=raw.location.country,
        uuid=raw.login.uuid,
    )
