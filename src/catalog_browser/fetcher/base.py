"""Base class for page fetchers."""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from enum import Enum

from pydantic import BaseModel

from catalog_browser.config import FetcherConfig
from catalog_browser.errors import NetworkError

logger = logging.getLogger(__name__)

_MAX_RETRY_DELAY = 60.0  # Never sleep longer than this on a single retry


class RequestIdentity(str, Enum):
    """Client identity presented to the origin site."""

    DESKTOP = "desktop"
    MOBILE = "mobile"


class FetchResult(BaseModel):
    """Result of fetching a page."""

    url: str
    final_url: str  # After redirects
    text: str
    status_code: int
    error: str | None = None
    retry_after: float | None = None
    attempts: int = 1

    @property
    def success(self) -> bool:
        return 200 <= self.status_code < 400 and not self.error


class BaseFetcher(ABC):
    """Abstract base class for page fetchers."""

    def __init__(self, config: FetcherConfig):
        self.config = config

    def user_agent(self, identity: RequestIdentity) -> str:
        if identity == RequestIdentity.MOBILE:
            return self.config.mobile_user_agent
        return self.config.desktop_user_agent

    @abstractmethod
    async def fetch(
        self, url: str, identity: RequestIdentity = RequestIdentity.DESKTOP
    ) -> FetchResult:
        """Fetch a URL and return its body as text."""
        pass

    async def fetch_with_retry(
        self,
        url: str,
        identity: RequestIdentity = RequestIdentity.DESKTOP,
        max_retries: int = 2,
        base_delay: float = 1.0,
    ) -> FetchResult:
        """Fetch with exponential backoff on transient errors."""
        result = FetchResult(url=url, final_url=url, text="", status_code=0, error="no attempts")
        for attempt in range(max_retries + 1):
            result = await self.fetch(url, identity)
            result.attempts = attempt + 1
            if result.success:
                return result
            if not self._is_retryable(result):
                return result
            if attempt < max_retries:
                delay = base_delay * (2 ** attempt) + random.uniform(0, 0.5)
                if result.retry_after is not None:
                    delay = max(delay, result.retry_after)
                delay = min(delay, _MAX_RETRY_DELAY)
                logger.debug(
                    "Retrying %s in %.1fs (status %s, attempt %d)",
                    url, delay, result.status_code, attempt + 1,
                )
                await asyncio.sleep(delay)
        return result

    async def fetch_text(
        self,
        url: str,
        identity: RequestIdentity = RequestIdentity.DESKTOP,
        max_retries: int = 2,
        base_delay: float = 1.0,
    ) -> str:
        """Fetch a URL and return its body, raising NetworkError on failure."""
        result = await self.fetch_with_retry(url, identity, max_retries, base_delay)
        if not result.success:
            message = result.error or f"HTTP {result.status_code}"
            raise NetworkError(url, message, result.status_code)
        return result.text

    @staticmethod
    def _parse_retry_after(header_value: str | None) -> float | None:
        """Parse a Retry-After header value into seconds.

        Supports both delta-seconds (e.g. "120") and HTTP-date formats.
        Returns None if the header is missing or unparseable.
        """
        if not header_value:
            return None
        try:
            return max(0.0, float(header_value))
        except ValueError:
            pass
        try:
            dt = parsedate_to_datetime(header_value)
        except (TypeError, ValueError):
            return None
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return max(0.0, (dt - datetime.now(timezone.utc)).total_seconds())

    @staticmethod
    def _is_retryable(result: FetchResult) -> bool:
        """Check if a failed fetch should be retried."""
        # Retry on rate-limit or server errors
        if result.status_code == 429 or result.status_code >= 500:
            return True
        # Retry on connection/timeout errors (status_code 0 with an error message)
        if result.status_code == 0 and result.error:
            return True
        return False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass
