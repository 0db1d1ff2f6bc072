"""Site adapter registry: declarative per-site scraping configuration."""

import re
from enum import Enum

import soupsieve
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from catalog_browser.errors import SiteDetectionError, UnknownSiteError
from catalog_browser.utils.url_utils import get_base_domain

TEXT_MODE = "text"


class ResponseFormat(str, Enum):
    """Shape of a listing response body."""

    HTML = "html"
    JSON_WRAPPED_HTML = "json_wrapped_html"  # {"contents": "<html>..."}


def check_selector(selector: str) -> str:
    """Reject CSS selectors that BeautifulSoup's ``select`` cannot compile."""
    try:
        soupsieve.compile(selector)
    except soupsieve.SelectorSyntaxError as e:
        raise ValueError(f"Invalid CSS selector {selector!r}: {e}") from e
    return selector


class StreamStrategy(str, Enum):
    """Built-in stream extraction strategies."""

    SCRIPT_LITERAL = "script_literal"
    IFRAME_SOURCE = "iframe_source"


class FieldRule(BaseModel):
    """One extraction instruction: ``selector@text`` or ``selector@attr``.

    An optional regex (written after ``|``) is applied to the extracted
    value and must have exactly one capturing group.
    """

    model_config = ConfigDict(frozen=True)

    target: str
    selector: str = ""
    mode: str = TEXT_MODE
    regex: str | None = None

    @field_validator("selector")
    @classmethod
    def _check_selector(cls, v: str) -> str:
        # Empty means the container node itself
        return check_selector(v) if v else v

    @field_validator("regex")
    @classmethod
    def _check_regex(cls, v: str | None) -> str | None:
        if v is None:
            return v
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid regex {v!r}: {e}") from e
        if compiled.groups != 1:
            raise ValueError(
                f"Regex {v!r} must have exactly one capturing group, has {compiled.groups}"
            )
        return v

    @property
    def is_text(self) -> bool:
        return self.mode == TEXT_MODE

    @classmethod
    def parse(cls, target: str, expression: str) -> "FieldRule":
        """Build a rule from ``"<selector>@<text|attr> [| <regex>]"``."""
        rule, _, regex = expression.partition("|")
        selector, sep, mode = rule.strip().rpartition("@")
        if not sep:
            raise ValueError(f"Rule for '{target}' lacks an '@<mode>' suffix: {expression!r}")
        return cls(
            target=target,
            selector=selector.strip(),
            mode=mode.strip() or TEXT_MODE,
            regex=regex.strip() or None,
        )


class ListSelectors(BaseModel):
    """Container selector plus one rule per CatalogItem field."""

    model_config = ConfigDict(frozen=True)

    container: str
    item: tuple[FieldRule, ...]

    @field_validator("container")
    @classmethod
    def _check_container(cls, v: str) -> str:
        return check_selector(v)

    @field_validator("item", mode="before")
    @classmethod
    def _parse_fields(cls, v):
        # Accept {"title": "h6 a@text", ...} as written in config files
        if isinstance(v, dict):
            return tuple(
                FieldRule.parse(target, expr)
                if isinstance(expr, str)
                else FieldRule(target=target, **expr)
                for target, expr in v.items()
            )
        return v


class Category(BaseModel):
    """A browsable listing on a site."""

    model_config = ConfigDict(frozen=True)

    title: str
    path: str


class SiteAdapter(BaseModel):
    """Configuration for one external catalog site."""

    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    base_url: str
    list_selectors: ListSelectors
    pagination: FieldRule
    categories: tuple[Category, ...] = ()
    response_format: ResponseFormat = ResponseFormat.HTML
    stream_strategy: str = StreamStrategy.SCRIPT_LITERAL.value
    markers: tuple[str, ...] = ()
    search_path: str = "/search/?q={query}"
    page_param: str = "page"

    @field_validator("pagination", mode="before")
    @classmethod
    def _parse_pagination(cls, v):
        if isinstance(v, str):
            return FieldRule.parse("next_page", v)
        return v

    @field_validator("stream_strategy", mode="before")
    @classmethod
    def _strategy_tag(cls, v):
        if isinstance(v, StreamStrategy):
            return v.value
        return v

    @model_validator(mode="before")
    @classmethod
    def _default_markers(cls, data):
        # Detection falls back to the bare host of base_url
        if isinstance(data, dict) and not data.get("markers"):
            host = get_base_domain(str(data.get("base_url", "")))
            data = {**data, "markers": (host.removeprefix("www."),)}
        return data

    def category(self, title: str) -> Category | None:
        """Find a category by exact title."""
        for category in self.categories:
            if category.title == title:
                return category
        return None


JABLE_ADAPTER = SiteAdapter(
    id="jable",
    title="Jable.tv",
    base_url="https://jable.tv",
    list_selectors=ListSelectors(
        container="div.grid div.video-img-box",
        item={
            "title": "h6.title a@text",
            "url": "h6.title a@href",
            "image": "img@data-src",
            "duration": ".label@text",
            "id": "h6.title a@href | /([^/]+)/$",
        },
    ),
    pagination=".pagination a@href",
    categories=(
        Category(title="Latest", path="/latest-updates/"),
        Category(title="Hot", path="/hot/"),
        Category(title="Recommended", path="/recommended/"),
    ),
    response_format=ResponseFormat.HTML,
    stream_strategy=StreamStrategy.SCRIPT_LITERAL,
    markers=("jable",),
)

NJAV_ADAPTER = SiteAdapter(
    id="njav",
    title="NJAV.tv",
    base_url="https://njav.tv",
    list_selectors=ListSelectors(
        container="div.box-item",
        item={
            "title": ".detail a@text",
            "url": ".detail a@href",
            "image": "img@data-src",
            "duration": ".duration@text",
            "id": "img@alt",
        },
    ),
    pagination=".pagination a@href",
    categories=(
        Category(title="Latest", path="/en/new-release"),
        Category(title="Trending", path="/en/trending"),
        Category(title="Recommended", path="/en/recommended"),
    ),
    response_format=ResponseFormat.JSON_WRAPPED_HTML,
    stream_strategy=StreamStrategy.IFRAME_SOURCE,
    markers=("njav",),
)


class SiteRegistry:
    """Registry of site adapters, keyed by site id."""

    _adapters: dict[str, SiteAdapter] = {
        "jable": JABLE_ADAPTER,
        "njav": NJAV_ADAPTER,
    }

    @classmethod
    def register(cls, adapter: SiteAdapter) -> None:
        """Register a new adapter (replaces one with the same id)."""
        cls._adapters[adapter.id] = adapter

    @classmethod
    def lookup(cls, site_id: str) -> SiteAdapter:
        """Get an adapter by id."""
        try:
            return cls._adapters[site_id]
        except KeyError:
            raise UnknownSiteError(site_id) from None

    @classmethod
    def list_sites(cls) -> list[SiteAdapter]:
        """List all registered adapters."""
        return list(cls._adapters.values())

    @classmethod
    def _match_markers(cls, text: str) -> list[str]:
        if not text:
            return []
        return [
            adapter.id
            for adapter in cls._adapters.values()
            if any(marker.lower() in text for marker in adapter.markers)
        ]

    @classmethod
    def detect(cls, source_url: str) -> str:
        """Classify a context URL by its site markers.

        Markers are matched against the host first; the whole URL is only
        searched when no host matches.
        """
        matches = cls._match_markers(get_base_domain(source_url))
        if not matches:
            matches = cls._match_markers(source_url.lower())
        if len(matches) != 1:
            raise SiteDetectionError(source_url, matches)
        return matches[0]
