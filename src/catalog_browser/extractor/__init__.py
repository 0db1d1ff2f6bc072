"""Item extraction from listing pages."""

from catalog_browser.extractor.filters import apply_filter
from catalog_browser.extractor.listing import (
    CatalogItem,
    PageResult,
    extract_page,
    unwrap_response,
)

__all__ = [
    "CatalogItem",
    "PageResult",
    "apply_filter",
    "extract_page",
    "unwrap_response",
]
