"""Stream resolution: detail page to playable media URL."""

import logging
import re
from abc import ABC, abstractmethod

from bs4 import BeautifulSoup

from catalog_browser.config import ProxyConfig, RateLimitConfig
from catalog_browser.errors import StreamNotFoundError
from catalog_browser.extractor.listing import CatalogItem, unwrap_response
from catalog_browser.fetcher.base import BaseFetcher, RequestIdentity
from catalog_browser.sites.registry import SiteAdapter, StreamStrategy
from catalog_browser.utils.url_utils import make_absolute, proxy_url

logger = logging.getLogger(__name__)


class BaseStreamStrategy(ABC):
    """Finds a stream URL in a parsed detail page."""

    @abstractmethod
    def extract(self, soup: BeautifulSoup, page_url: str) -> str | None:
        """Return the stream URL, or None when the page has none."""
        ...


class ScriptLiteralStrategy(BaseStreamStrategy):
    """First bare URL literal inside an inline script block."""

    URL_PATTERN = re.compile(r"""https?://[^'"\s]+""")

    def extract(self, soup: BeautifulSoup, page_url: str) -> str | None:
        for script in soup.find_all("script"):
            match = self.URL_PATTERN.search(script.string or "")
            if match:
                return match.group(0)
        return None


class IframeSourceStrategy(BaseStreamStrategy):
    """Source attribute of the first embedded frame."""

    def extract(self, soup: BeautifulSoup, page_url: str) -> str | None:
        frame = soup.select_one("iframe[src]")
        if frame is None:
            return None
        src = str(frame["src"]).strip()
        return make_absolute(page_url, src) if src else None


class StreamResolver:
    """Fetches detail pages and applies the site's stream strategy."""

    _strategies: dict[str, BaseStreamStrategy] = {
        StreamStrategy.SCRIPT_LITERAL.value: ScriptLiteralStrategy(),
        StreamStrategy.IFRAME_SOURCE.value: IframeSourceStrategy(),
    }

    def __init__(
        self,
        fetcher: BaseFetcher,
        proxy: ProxyConfig | None = None,
        rate_limit: RateLimitConfig | None = None,
    ):
        self.fetcher = fetcher
        self.proxy = proxy
        self.rate_limit = rate_limit or RateLimitConfig()

    @classmethod
    def register_strategy(cls, tag: str, strategy: BaseStreamStrategy) -> None:
        """Make a custom strategy available to adapters under ``tag``."""
        cls._strategies[tag] = strategy

    @classmethod
    def get_strategy(cls, tag: str) -> BaseStreamStrategy | None:
        return cls._strategies.get(tag)

    def _request_url(self, target: str) -> str:
        if self.proxy is None or not self.proxy.enabled:
            return target
        return proxy_url(self.proxy.prefix, target)

    async def resolve_stream_url(self, item: CatalogItem, adapter: SiteAdapter) -> str:
        """Resolve the playable URL for an item.

        Raises:
            StreamNotFoundError: The item has no detail URL, or the page
                holds no stream for the strategy.
            NetworkError: The detail page could not be fetched.
            ParseError: A JSON-wrapped detail page could not be decoded.
        """
        # An empty href would resolve to the home page
        if not item.url.strip():
            raise StreamNotFoundError(adapter.base_url, adapter.stream_strategy)
        page_url = make_absolute(adapter.base_url, item.url)
        strategy = self.get_strategy(adapter.stream_strategy)
        if strategy is None:
            logger.warning("No stream strategy registered as '%s'", adapter.stream_strategy)
            raise StreamNotFoundError(page_url, adapter.stream_strategy)

        raw = await self.fetcher.fetch_text(
            self._request_url(page_url),
            RequestIdentity.MOBILE,
            max_retries=self.rate_limit.max_retries,
            base_delay=self.rate_limit.retry_base_delay,
        )
        html = unwrap_response(raw, adapter.response_format)
        stream_url = strategy.extract(BeautifulSoup(html, "lxml"), page_url)
        if not stream_url:
            raise StreamNotFoundError(page_url, adapter.stream_strategy)

        logger.debug("Resolved %s -> %s", page_url, stream_url)
        return stream_url
