"""
Canonical user record model.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Dict, List


@dataclass(frozen=True)
class CanonicalRecord:
    """Flat, normalized representation of one upstream user."""

    gender: str
    first_name: str
    last_name: str
    email: str
    city: str
    country: str
    uuid: str

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the record to a JSON-friendly dictionary."""
        return {
            "gender": self.gender,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "city": self.city,
            "country": self.country,
            "uuid": self.uuid,
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "CanonicalRecord":
        """Rehydrate a record from cached JSON state."""
        values = {}
        for f in fields(cls):
            value = payload.get(f.name)
            values[f.name] = "" if value is None else value
        return cls(**values)


# Order carries no meaning; consumers treat it as a set.
RecordSet = List[CanonicalRecord]
