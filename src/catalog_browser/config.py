"""Configuration management with Pydantic models."""

from pathlib import Path

from pydantic import BaseModel, Field

from catalog_browser.sites.registry import SiteAdapter, SiteRegistry

DESKTOP_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
MOBILE_USER_AGENT = (
    "Mozilla/5.0 (Linux; Android 13; Pixel 7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Mobile Safari/537.36"
)


class ProxyConfig(BaseModel):
    """Configuration for the request-rewriting proxy."""

    enabled: bool = True
    prefix: str = "https://cors.eu.org/"


class FetcherConfig(BaseModel):
    """Configuration for page fetching."""

    timeout_ms: int = Field(default=30000, ge=1000, le=120000)
    desktop_user_agent: str = DESKTOP_USER_AGENT
    mobile_user_agent: str = MOBILE_USER_AGENT


class RateLimitConfig(BaseModel):
    """Configuration for rate limiting and retries."""

    delay_seconds: float = Field(default=0.5, ge=0.0, le=60.0)
    max_concurrent: int = Field(default=2, ge=1, le=20)
    max_retries: int = Field(default=2, ge=0, le=10)
    retry_base_delay: float = Field(default=1.0, ge=0.1, le=30.0)


class ScrollConfig(BaseModel):
    """Geometry used by the load-more trigger."""

    row_height: int = Field(default=300, ge=1)
    items_per_row: int = Field(default=6, ge=1)
    viewport_height: int = Field(default=1080, ge=1)


class AppConfig(BaseModel):
    """Main application configuration."""

    proxy: ProxyConfig = Field(default_factory=ProxyConfig)
    fetcher: FetcherConfig = Field(default_factory=FetcherConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    scroll: ScrollConfig = Field(default_factory=ScrollConfig)
    favorites_path: Path = Path("~/.catalog-browser/favorites.json")
    sites: list[SiteAdapter] = Field(default_factory=list)  # extra adapters
    verbose: bool = False

    @classmethod
    def from_toml(cls, path: Path) -> "AppConfig":
        """Load config from a TOML file."""
        try:
            import tomllib  # type: ignore[import-not-found]
        except ModuleNotFoundError:
            import tomli as tomllib  # type: ignore[import-not-found]
        with open(path, "rb") as f:
            data = tomllib.load(f)
        return cls.model_validate(data)

    def register_sites(self) -> None:
        """Add the adapters declared in this config to the registry."""
        for adapter in self.sites:
            SiteRegistry.register(adapter)
