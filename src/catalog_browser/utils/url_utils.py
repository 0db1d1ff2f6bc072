"""URL manipulation utilities."""

from urllib.parse import quote, urljoin, urlparse

# Characters encodeURIComponent leaves alone
_COMPONENT_SAFE = "-_.!~*'()"


def make_absolute(base_url: str, href: str) -> str:
    """Convert a potentially relative URL to absolute."""
    return urljoin(base_url, href)


def get_base_domain(url: str) -> str:
    """Extract the domain from a URL."""
    return urlparse(url).netloc.lower()


def encode_component(value: str) -> str:
    """Percent-encode a value for use as a single URL component."""
    return quote(value, safe=_COMPONENT_SAFE)


def add_query_param(url: str, name: str, value: object) -> str:
    """Append ``name=value``, using ``&`` when the URL already has a query."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{name}={encode_component(str(value))}"


def proxy_url(prefix: str | None, target: str) -> str:
    """Route ``target`` through a rewriting proxy that takes it as its only parameter."""
    if not prefix:
        return target
    return prefix + encode_component(target)
