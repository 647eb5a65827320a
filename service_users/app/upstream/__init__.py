"""
Upstream provider package for the Users Service.
"""

from .models import RawLocation, RawLogin, RawName, RawPage, RawUser
from .page_fetcher import PageFetcher

__all__ = ["PageFetcher", "RawPage", "RawUser", "RawName", "RawLocation", "RawLogin"]
