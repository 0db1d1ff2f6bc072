"""Listing-page extraction: HTML to normalized catalog items."""

import json
import logging

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, ConfigDict

from catalog_browser.errors import ParseError
from catalog_browser.extractor.filters import apply_filter
from catalog_browser.sites.registry import FieldRule, ResponseFormat, SiteAdapter
from catalog_browser.utils.url_utils import make_absolute

logger = logging.getLogger(__name__)

# Key holding the remote page when a text proxy wraps it in JSON
WRAPPED_CONTENTS_KEY = "contents"

_REQUIRED_FIELDS = ("title", "url", "id")


class CatalogItem(BaseModel):
    """One normalized video listing entry. Identity is ``url``."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    url: str = ""
    image: str | None = None
    duration: str | None = None
    id: str = ""


class PageResult(BaseModel):
    """Items of one listing page and the link to the next one."""

    items: list[CatalogItem] = []
    next_page_url: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.items


def unwrap_response(raw_response: str, response_format: ResponseFormat) -> str:
    """Return the HTML payload of a response body."""
    if response_format != ResponseFormat.JSON_WRAPPED_HTML:
        return raw_response
    try:
        envelope = json.loads(raw_response)
    except json.JSONDecodeError as e:
        raise ParseError(f"Response is not valid JSON: {e}") from e
    contents = envelope.get(WRAPPED_CONTENTS_KEY) if isinstance(envelope, dict) else None
    if not isinstance(contents, str):
        raise ParseError(f"JSON response has no string '{WRAPPED_CONTENTS_KEY}' field")
    return contents


def read_node(node: Tag, rule: FieldRule) -> str | None:
    """Read the trimmed text or the named attribute of a node."""
    if rule.is_text:
        return node.get_text().strip()
    value = node.get(rule.mode)
    if value is None:
        return None
    if isinstance(value, list):  # multi-valued attributes such as class
        return " ".join(value)
    return value


def select_value(scope: Tag, rule: FieldRule) -> str | None:
    """Read the first node matching the rule; an empty selector reads the scope."""
    node = scope.select_one(rule.selector) if rule.selector else scope
    if node is None:
        return None
    return read_node(node, rule)


def extract_item(container: Tag, adapter: SiteAdapter) -> CatalogItem:
    """Build one item from a list container; missing fields degrade to empty."""
    values: dict[str, str | None] = {}
    for rule in adapter.list_selectors.item:
        values[rule.target] = apply_filter(select_value(container, rule), rule)
    for name in _REQUIRED_FIELDS:
        if values.get(name) is None:
            values[name] = ""
    return CatalogItem(**{k: v for k, v in values.items() if k in CatalogItem.model_fields})


def extract_next_page(soup: BeautifulSoup, adapter: SiteAdapter) -> str | None:
    """Resolve the last pagination link against the site's base URL."""
    rule = adapter.pagination
    links = soup.select(rule.selector)
    if not links:
        return None
    href = apply_filter(read_node(links[-1], rule), rule)
    if not href:
        return None
    return make_absolute(adapter.base_url, href)


def extract_page(raw_response: str, adapter: SiteAdapter) -> PageResult:
    """Extract catalog items and the next-page URL from a listing response.

    Raises:
        ParseError: The response is JSON-wrapped and the envelope is broken.
            Markup that simply does not match the selectors yields zero items.
    """
    html = unwrap_response(raw_response, adapter.response_format)
    soup = BeautifulSoup(html, "lxml")

    items = [
        extract_item(container, adapter)
        for container in soup.select(adapter.list_selectors.container)
    ]
    next_page_url = extract_next_page(soup, adapter)

    if not items:
        logger.debug(
            "No items matched '%s' on %s", adapter.list_selectors.container, adapter.id
        )
    return PageResult(items=items, next_page_url=next_page_url)
