"""Exception hierarchy shared by the catalog pipeline."""


class CatalogError(Exception):
    """Base class for all catalog-browser errors."""


class UnknownSiteError(CatalogError):
    """No adapter is registered under the requested site id."""

    def __init__(self, site_id: str):
        self.site_id = site_id
        super().__init__(f"Unknown site: {site_id}")


class SiteDetectionError(CatalogError):
    """A context URL matched zero or several registered sites."""

    def __init__(self, url: str, candidates: list[str] | None = None):
        self.url = url
        self.candidates = candidates or []
        if self.candidates:
            message = f"Ambiguous site for {url}: {', '.join(self.candidates)}"
        else:
            message = f"No registered site matches {url}"
        super().__init__(message)


class UnknownCategoryError(CatalogError):
    """The category title is not configured for the site."""

    def __init__(self, site_id: str, category: str):
        self.site_id = site_id
        self.category = category
        super().__init__(f"Site '{site_id}' has no category '{category}'")


class NetworkError(CatalogError):
    """A fetch failed after retries. Retry by re-invoking the operation."""

    def __init__(self, url: str, message: str, status_code: int = 0):
        self.url = url
        self.status_code = status_code
        super().__init__(f"{message} ({url})")


class ParseError(CatalogError):
    """A response could not be decoded into HTML."""


class LoadFailure(CatalogError):
    """A session page load failed; session state is unchanged."""

    def __init__(self, site_id: str, page: int, cause: Exception):
        self.site_id = site_id
        self.page = page
        self.cause = cause
        super().__init__(f"Failed to load page {page} from {site_id}: {cause}")


class StreamNotFoundError(CatalogError):
    """No playable stream URL could be found on a detail page."""

    def __init__(self, url: str, strategy: str):
        self.url = url
        self.strategy = strategy
        super().__init__(f"No stream found on {url} (strategy: {strategy})")


class FavoritesError(CatalogError):
    """The favorites file exists but cannot be read."""
