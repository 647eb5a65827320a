"""
Canonical records package: model, normalizer and serializer.
"""

from .models import CanonicalRecord, RecordSet
from .normalizer import normalize
from .serializer import decode, encode

__all__ = ["CanonicalRecord", "RecordSet", "normalize", "encode", "decode"]
