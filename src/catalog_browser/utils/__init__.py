"""Utility functions and classes."""

from catalog_browser.utils.rate_limiter import RateLimiter
from catalog_browser.utils.url_utils import add_query_param, make_absolute, proxy_url

__all__ = [
    "RateLimiter",
    "add_query_param",
    "make_absolute",
    "proxy_url",
]
