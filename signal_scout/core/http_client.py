"""
Page fetcher with a single shared deadline.

One PageFetcher belongs to one scout run. The deadline starts with the
first fetch (or on entering the context manager) and bounds every fetch
made through the instance, so the seed page and any team-page hops all
abort together once it elapses. There is no retry: a failed fetch is
reported once and the caller decides how to degrade.
"""
import asyncio
import logging
from typing import Dict, Optional

import httpx

from signal_scout.core.api_errors import (
    FetchError,
    FetchTimeoutError,
    classify_http_error,
)

logger = logging.getLogger(__name__)


class PageFetcher:
    """
    Time-bounded HTTP GET with a fixed identifying client signature.

    Usage:
        async with PageFetcher(timeout=18.0) as fetcher:
            html = await fetcher.fetch("https://example.com")
    """

    SOURCE_NAME: str = "page_fetcher"

    DEFAULT_TIMEOUT: float = 18.0
    DEFAULT_CONNECT_TIMEOUT: float = 10.0
    DEFAULT_USER_AGENT: str = "SignalOS/1.0 (B2B Operating System; +https://signal.com)"

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            timeout: Seconds shared by every fetch made through this instance
            user_agent: User-Agent header sent with each request
            transport: Optional httpx transport (tests pass httpx.MockTransport)
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._deadline: Optional[float] = None

    def start(self) -> None:
        """Start the deadline clock if it is not already running."""
        if self._deadline is None:
            self._deadline = asyncio.get_running_loop().time() + self.timeout

    def remaining(self) -> float:
        """Seconds left before the deadline (full timeout if not started)."""
        if self._deadline is None:
            return self.timeout
        return self._deadline - asyncio.get_running_loop().time()

    def _get_headers(self) -> Dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "en-US,en;q=0.5",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=self.DEFAULT_CONNECT_TIMEOUT),
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def fetch(self, url: str) -> str:
        """
        Fetch a page and return its body text.

        Raises:
            FetchTimeoutError: The shared deadline elapsed
            NotFoundError: HTTP 404
            FetchError: Any other network failure or non-2xx status
        """
        self.start()
        remaining = self.remaining()
        if remaining <= 0:
            raise FetchTimeoutError(
                url=url, source=self.SOURCE_NAME, timeout=self.timeout
            )

        client = await self._get_client()
        logger.debug(f"[PageFetcher] GET {url} ({remaining:.1f}s left)")

        try:
            response = await asyncio.wait_for(
                client.get(url, headers=self._get_headers()), timeout=remaining
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            raise FetchTimeoutError(
                message=f"Fetch deadline exceeded: {url}",
                url=url,
                source=self.SOURCE_NAME,
                timeout=self.timeout,
            ) from None
        except httpx.HTTPError as e:
            raise FetchError(
                message=f"Request failed for {url}: {e}",
                url=url,
                source=self.SOURCE_NAME,
            ) from e

        if not response.is_success:
            logger.debug(f"[PageFetcher] HTTP {response.status_code} for {url}")
            raise classify_http_error(response.status_code, url, self.SOURCE_NAME)

        logger.debug(f"[PageFetcher] Fetched {url}: {len(response.text)} chars")
        return response.text

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        """Async context manager entry; starts the deadline."""
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
