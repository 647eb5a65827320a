"""
Upstream page fetcher for the Users Service.
"""

from typing import Optional

import httpx
from pydantic import ValidationError

from shared.logging import get_logger
from shared.errors import TransportError, UpstreamStatusError, DecodeError

from .models import RawPage


INCLUDED_FIELDS = "gender,name,location,login"


class PageFetcher:
    """Client that retrieves one page of raw users from the upstream provider.

    The ``httpx.AsyncClient`` is reused across calls. It is either supplied by
    the caller or created on first use, in which case :meth:`close` releases it.
    No retries are attempted; every failure is raised as a typed error.
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        *,
        timeout: Optional[float] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.logger = get_logger("users.page_fetcher")
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        """Get the shared HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    def build_url(self, page_size: int, page_index: int) -> str:
        """Build the upstream URL for one page."""
        return f"{self.base_url}?results={page_size}&page={page_index}&inc={INCLUDED_FIELDS}&noinfo"

    async def fetch(self, page_size: int, page_index: int) -> RawPage:
        """Fetch ``page_size`` raw users at the 1-based ``page_index``."""
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        if page_index < 1:
            raise ValueError(f"page_index must be positive, got {page_index}")

        url = self.build_url(page_size, page_index)

        try:
            response = await self._get_client().get(url)
        except httpx.HTTPError as exc:
            self.logger.error("Error fetching URL", url=url, error=str(exc))
            raise TransportError(str(exc) or type(exc).__name__, details={"url": url}) from exc

        if response.status_code != 200:
            self.logger.error("Unexpected status code", url=url, status_code=response.status_code)
            raise UpstreamStatusError(response.status_code, details={"url": url})

        try:
            page = RawPage.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            self.logger.error("Error decoding response", url=url, error=str(exc))
            raise DecodeError(f"Error decoding response: {exc}", details={"url": url}) from exc

        self.logger.debug("Upstream page retrieved", page_index=page_index, records=len(page.results))
        return page

    async def close(self) -> None:
        """Close the HTTP client if this fetcher created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
