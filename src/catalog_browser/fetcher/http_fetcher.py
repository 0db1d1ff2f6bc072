"""HTTP fetcher built on httpx."""

import logging

import httpx

from catalog_browser.config import FetcherConfig
from catalog_browser.fetcher.base import BaseFetcher, FetchResult, RequestIdentity
from catalog_browser.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class HttpFetcher(BaseFetcher):
    """Async HTTP fetcher with per-request client identity."""

    def __init__(
        self,
        config: FetcherConfig,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        super().__init__(config)
        self.rate_limiter = rate_limiter or RateLimiter(delay_seconds=0.0)
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self):
        """Initialize HTTP client."""
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=self.config.timeout_ms / 1000,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Clean up HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def fetch(
        self, url: str, identity: RequestIdentity = RequestIdentity.DESKTOP
    ) -> FetchResult:
        """Fetch a URL via HTTP."""
        if not self._client:
            raise RuntimeError("Fetcher not initialized. Use 'async with' context manager.")

        headers = {"User-Agent": self.user_agent(identity)}
        try:
            async with self.rate_limiter.slot():
                response = await self._client.get(url, headers=headers)
        except httpx.HTTPError as e:
            logger.debug("Request to %s failed", url, exc_info=True)
            return FetchResult(
                url=url,
                final_url=url,
                text="",
                status_code=0,
                error=str(e) or type(e).__name__,
            )

        retry_after: float | None = None
        if response.status_code == 429:
            self.rate_limiter.back_off()
            retry_after = self._parse_retry_after(response.headers.get("retry-after"))
        elif response.is_success:
            self.rate_limiter.ease_off()

        return FetchResult(
            url=url,
            final_url=str(response.url),
            text=response.text,
            status_code=response.status_code,
            retry_after=retry_after,
        )
