"""Page fetching."""

from catalog_browser.fetcher.base import BaseFetcher, FetchResult, RequestIdentity
from catalog_browser.fetcher.http_fetcher import HttpFetcher

__all__ = [
    "BaseFetcher",
    "FetchResult",
    "HttpFetcher",
    "RequestIdentity",
]
