"""Site adapters and their registry."""

from catalog_browser.sites.registry import (
    Category,
    FieldRule,
    ListSelectors,
    ResponseFormat,
    SiteAdapter,
    SiteRegistry,
    StreamStrategy,
)

__all__ = [
    "Category",
    "FieldRule",
    "ListSelectors",
    "ResponseFormat",
    "SiteAdapter",
    "SiteRegistry",
    "StreamStrategy",
]
