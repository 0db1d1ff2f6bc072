"""Coordinates sessions, fetching and stream resolution for the CLI."""

import logging
import time
from dataclasses import dataclass, field

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from catalog_browser.config import AppConfig
from catalog_browser.errors import LoadFailure
from catalog_browser.extractor.listing import CatalogItem
from catalog_browser.fetcher import BaseFetcher, HttpFetcher
from catalog_browser.resolver import StreamResolver
from catalog_browser.session import CatalogSession
from catalog_browser.sites.registry import SiteAdapter, SiteRegistry
from catalog_browser.utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


@dataclass
class BrowseResult:
    """Outcome of one browse run."""

    site_id: str
    items: list[CatalogItem] = field(default_factory=list)
    pages_loaded: int = 0
    exhausted: bool = False
    failures: list[LoadFailure] = field(default_factory=list)
    duration: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.items


class Orchestrator:
    """Owns the fetcher and hands out sessions the way a UI host would."""

    def __init__(
        self,
        config: AppConfig,
        console: Console | None = None,
        fetcher: BaseFetcher | None = None,
    ):
        self.config = config
        self.console = console or Console()
        self.rate_limiter = RateLimiter(
            config.rate_limit.delay_seconds,
            config.rate_limit.max_concurrent,
        )
        self._fetcher = fetcher

    def _create_fetcher(self) -> BaseFetcher:
        if self._fetcher is not None:
            return self._fetcher
        return HttpFetcher(self.config.fetcher, self.rate_limiter)

    def open_session(
        self,
        adapter: SiteAdapter,
        fetcher: BaseFetcher,
        category: str | None = None,
        query: str | None = None,
    ) -> CatalogSession:
        """Create a session for a search, a category, or the site's first category."""
        options = {"proxy": self.config.proxy, "rate_limit": self.config.rate_limit}
        if query:
            return CatalogSession.for_search(adapter, query, fetcher, **options)
        if category is None:
            if not adapter.categories:
                raise ValueError(f"Site '{adapter.id}' has no categories; pass a query")
            category = adapter.categories[0].title
        return CatalogSession.for_category(adapter, category, fetcher, **options)

    async def browse(
        self,
        site_id: str,
        category: str | None = None,
        query: str | None = None,
        pages: int = 1,
    ) -> BrowseResult:
        """Load up to ``pages`` pages, scrolling to the end after each one."""
        adapter = SiteRegistry.lookup(site_id)
        result = BrowseResult(site_id=site_id)
        start = time.monotonic()

        async with self._create_fetcher() as fetcher:
            session = self.open_session(adapter, fetcher, category, query)
            self.console.print(
                f"[blue]Loading {adapter.title} "
                f"{session.state.request_kind.value} '{escape(session.state.request_param)}'...[/blue]"
            )
            try:
                while result.pages_loaded < pages and session.has_more:
                    try:
                        if result.pages_loaded == 0:
                            page = await session.load_next_page()
                        else:
                            page = await session.load_more_if_needed(
                                scroll_position=len(session.items),
                                viewport_height=self.config.scroll.viewport_height,
                                scroll=self.config.scroll,
                            )
                    except LoadFailure as e:
                        result.failures.append(e)
                        self.console.print(str(e), style="red", markup=False)
                        break
                    if page is None:
                        break
                    result.pages_loaded += 1
                    if self.config.verbose:
                        self.console.print(
                            f"  Page {session.state.current_page - 1}: {len(page.items)} items"
                        )
            finally:
                session.abandon()

        result.items = list(session.items)
        result.exhausted = session.state.exhausted
        result.duration = time.monotonic() - start

        if result.is_empty and not result.failures:
            self.console.print("[yellow]No results.[/yellow]")
        elif result.items:
            self.console.print(self.build_table(adapter, result.items))
            more = "end of listing" if result.exhausted else "more available"
            self.console.print(
                f"[green]{len(result.items)} items from {result.pages_loaded} page(s)"
                f" ({more})[/green] [dim]{result.duration:.1f}s[/dim]"
            )
        if self.rate_limiter.is_throttled:
            self.console.print(
                f"[bold yellow]Throttled: delay {self.rate_limiter.delay_seconds:.1f}s"
                f" (configured {self.rate_limiter._original_delay:.1f}s),"
                f" {self.rate_limiter.backoff_count} backoff(s)[/bold yellow]"
            )
        return result

    async def resolve(self, site_id: str, url: str, title: str = "") -> str:
        """Resolve the stream URL of a detail page."""
        adapter = SiteRegistry.lookup(site_id)
        item = CatalogItem(title=title, url=url)
        async with self._create_fetcher() as fetcher:
            resolver = StreamResolver(fetcher, self.config.proxy, self.config.rate_limit)
            return await resolver.resolve_stream_url(item, adapter)

    @staticmethod
    def build_table(adapter: SiteAdapter, items: list[CatalogItem]) -> Table:
        """Render items as a Rich table."""
        table = Table(title=adapter.title)
        table.add_column("#", justify="right", style="dim")
        table.add_column("Title", style="cyan", overflow="fold")
        table.add_column("Duration", justify="right")
        table.add_column("ID")
        table.add_column("URL", overflow="fold")
        for index, item in enumerate(items, start=1):
            table.add_row(
                str(index),
                item.title,
                item.duration or "",
                item.id,
                item.url,
            )
        return table
