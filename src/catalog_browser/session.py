"""Pagination state and incremental loading for one browsing context."""

import logging
from dataclasses import dataclass
from enum import Enum

from catalog_browser.config import ProxyConfig, RateLimitConfig, ScrollConfig
from catalog_browser.errors import (
    LoadFailure,
    NetworkError,
    ParseError,
    UnknownCategoryError,
)
from catalog_browser.extractor.listing import CatalogItem, PageResult, extract_page
from catalog_browser.fetcher.base import BaseFetcher, RequestIdentity
from catalog_browser.sites.registry import SiteAdapter
from catalog_browser.utils.url_utils import (
    add_query_param,
    encode_component,
    make_absolute,
    proxy_url,
)

logger = logging.getLogger(__name__)


class RequestKind(str, Enum):
    """What a session is browsing."""

    CATEGORY = "category"
    SEARCH = "search"


@dataclass
class SessionState:
    """Pagination state of one session. Mutated only by its CatalogSession."""

    site_id: str
    request_kind: RequestKind
    request_param: str  # category title or search query
    current_page: int = 1
    exhausted: bool = False
    loading: bool = False

    def __post_init__(self):
        if self.current_page < 1:
            raise ValueError(f"current_page must be >= 1, got {self.current_page}")


def build_target_url(state: SessionState, adapter: SiteAdapter) -> str:
    """Build the absolute listing URL for the state's current page."""
    if state.request_kind == RequestKind.CATEGORY:
        category = adapter.category(state.request_param)
        if category is None:
            raise UnknownCategoryError(adapter.id, state.request_param)
        path = category.path
    else:
        path = adapter.search_path.format(query=encode_component(state.request_param))
    path = add_query_param(path, adapter.page_param, state.current_page)
    return make_absolute(adapter.base_url, path)


def build_request_url(
    state: SessionState, adapter: SiteAdapter, proxy: ProxyConfig | None = None
) -> str:
    """Build the listing URL and route it through the rewriting proxy."""
    target = build_target_url(state, adapter)
    if proxy is None or not proxy.enabled:
        return target
    return proxy_url(proxy.prefix, target)


def should_load_more(
    materialized: int,
    scroll_position: int,
    viewport_height: int,
    row_height: int = 300,
    items_per_row: int = 6,
) -> bool:
    """Prefetch policy: load when fewer than a screenful of items remain.

    May fire repeatedly while a page is in flight; the session's loading
    guard makes the extra calls no-ops.
    """
    visible_items = (viewport_height // row_height) * items_per_row
    return materialized - scroll_position < visible_items


class CatalogSession:
    """Drives page-by-page loading for a category or a search."""

    def __init__(
        self,
        adapter: SiteAdapter,
        state: SessionState,
        fetcher: BaseFetcher,
        proxy: ProxyConfig | None = None,
        rate_limit: RateLimitConfig | None = None,
    ):
        if state.site_id != adapter.id:
            raise ValueError(f"State for '{state.site_id}' used with adapter '{adapter.id}'")
        self.adapter = adapter
        self.state = state
        self.fetcher = fetcher
        self.proxy = proxy
        self.rate_limit = rate_limit or RateLimitConfig()
        self.items: list[CatalogItem] = []
        self._abandoned = False

    @classmethod
    def for_category(cls, adapter: SiteAdapter, title: str, fetcher: BaseFetcher, **kwargs):
        state = SessionState(adapter.id, RequestKind.CATEGORY, title)
        return cls(adapter, state, fetcher, **kwargs)

    @classmethod
    def for_search(cls, adapter: SiteAdapter, query: str, fetcher: BaseFetcher, **kwargs):
        state = SessionState(adapter.id, RequestKind.SEARCH, query)
        return cls(adapter, state, fetcher, **kwargs)

    @property
    def abandoned(self) -> bool:
        return self._abandoned

    @property
    def has_more(self) -> bool:
        return not self.state.exhausted and not self._abandoned

    def build_request_url(self) -> str:
        return build_request_url(self.state, self.adapter, self.proxy)

    def abandon(self) -> None:
        """Detach the session; a result still in flight will be discarded."""
        self._abandoned = True

    async def load_next_page(self) -> PageResult:
        """Fetch and extract the next page, appending its items.

        Returns an empty result without touching state when the session is
        exhausted, abandoned, or already loading.

        Raises:
            LoadFailure: The fetch or the response decoding failed. Page
                counter and exhausted flag are left as they were.
            UnknownCategoryError: The category is not configured.
        """
        state = self.state
        if state.exhausted or state.loading or self._abandoned:
            return PageResult()

        url = self.build_request_url()
        state.loading = True
        try:
            raw = await self.fetcher.fetch_text(
                url,
                RequestIdentity.DESKTOP,
                max_retries=self.rate_limit.max_retries,
                base_delay=self.rate_limit.retry_base_delay,
            )
            result = extract_page(raw, self.adapter)
        except (NetworkError, ParseError) as e:
            if self._abandoned:
                logger.debug("Discarding failure of abandoned session: %s", e)
                return PageResult()
            raise LoadFailure(state.site_id, state.current_page, e) from e
        finally:
            state.loading = False

        if self._abandoned:
            logger.debug(
                "Discarding page %d of abandoned %s session", state.current_page, state.site_id
            )
            return PageResult()

        self.items.extend(result.items)
        state.exhausted = result.next_page_url is None
        state.current_page += 1
        logger.debug(
            "Loaded %d items from %s page %d (exhausted=%s)",
            len(result.items), state.site_id, state.current_page - 1, state.exhausted,
        )
        return result

    async def load_more_if_needed(
        self,
        scroll_position: int,
        viewport_height: int,
        scroll: ScrollConfig | None = None,
    ) -> PageResult | None:
        """Apply the prefetch policy and load the next page when it fires."""
        scroll = scroll or ScrollConfig()
        if not should_load_more(
            len(self.items),
            scroll_position,
            viewport_height,
            scroll.row_height,
            scroll.items_per_row,
        ):
            return None
        return await self.load_next_page()
