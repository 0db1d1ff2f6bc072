"""Command-line interface for catalog-browser."""

import asyncio
import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from catalog_browser import __version__
from catalog_browser.config import AppConfig
from catalog_browser.errors import CatalogError
from catalog_browser.extractor.listing import CatalogItem
from catalog_browser.favorites import FavoritesStore
from catalog_browser.orchestrator import Orchestrator
from catalog_browser.sites import SiteRegistry

app = typer.Typer(
    name="catalog-browser",
    help="Browse video catalog sites and resolve playable stream URLs.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)
favorites_app = typer.Typer(help="Manage favorite items.", no_args_is_help=True)
app.add_typer(favorites_app, name="favorites")

console = Console()

ConfigOption = typer.Option(
    None,
    "--config",
    "-C",
    help="TOML configuration file",
    exists=True,
    dir_okay=False,
)
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable verbose output")


def version_callback(value: bool):
    if value:
        console.print(f"catalog-browser version {__version__}")
        raise typer.Exit()


def _load_config(config_path: Optional[Path], verbose: bool) -> AppConfig:
    try:
        config = AppConfig.from_toml(config_path) if config_path else AppConfig()
    except ValueError as e:
        # Covers TOML syntax errors and invalid site adapters
        _fail(e, verbose)
    if verbose:
        config.verbose = True
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
    config.register_sites()
    return config


def _fail(error: Exception, verbose: bool) -> NoReturn:
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    if verbose:
        console.print_exception()
    raise typer.Exit(1)


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """Video catalog scraper with incremental pagination."""
    pass


@app.command("list-sites")
def list_sites(config_path: Optional[Path] = ConfigOption):
    """List registered site adapters."""
    _load_config(config_path, False)

    table = Table(title="Available Sites")
    table.add_column("ID", style="cyan")
    table.add_column("Title")
    table.add_column("Base URL")
    table.add_column("Format")
    table.add_column("Streams")

    for adapter in SiteRegistry.list_sites():
        table.add_row(
            adapter.id,
            adapter.title,
            adapter.base_url,
            adapter.response_format.value,
            adapter.stream_strategy,
        )

    console.print(table)


@app.command()
def categories(
    site: str = typer.Argument(..., help="Site id"),
    config_path: Optional[Path] = ConfigOption,
):
    """List the categories of a site."""
    _load_config(config_path, False)
    try:
        adapter = SiteRegistry.lookup(site)
    except CatalogError as e:
        _fail(e, False)

    table = Table(title=f"{adapter.title} categories")
    table.add_column("Title", style="cyan")
    table.add_column("Path")
    for category in adapter.categories:
        table.add_row(category.title, category.path)
    console.print(table)


@app.command()
def browse(
    site: Optional[str] = typer.Argument(None, help="Site id (or use --url)"),
    url: Optional[str] = typer.Option(
        None, "--url", "-u", help="Context URL used to detect the site"
    ),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Category title (default: the site's first)"
    ),
    query: Optional[str] = typer.Option(None, "--query", "-q", help="Search query"),
    pages: int = typer.Option(1, "--pages", "-p", min=1, help="Pages to load"),
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """
    Browse a category or search results, loading pages incrementally.

    Examples:

        catalog-browser browse jable -c Hot -p 2

        catalog-browser browse njav -q "keyword"

        catalog-browser browse --url https://jable.tv/latest-updates/
    """
    config = _load_config(config_path, verbose)
    try:
        if site is None:
            if not url:
                console.print("[red]Pass a site id or --url.[/red]")
                raise typer.Exit(1)
            site = SiteRegistry.detect(url)
        orchestrator = Orchestrator(config, console)
        result = asyncio.run(orchestrator.browse(site, category, query, pages))
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        raise typer.Exit(130)
    except (CatalogError, ValueError) as e:
        _fail(e, verbose)

    if result.failures:
        raise typer.Exit(1)


@app.command()
def resolve(
    site: str = typer.Argument(..., help="Site id"),
    detail_url: str = typer.Argument(..., help="Detail page URL (absolute or site-relative)"),
    config_path: Optional[Path] = ConfigOption,
    verbose: bool = VerboseOption,
):
    """Resolve the playable stream URL of a detail page."""
    config = _load_config(config_path, verbose)
    try:
        stream_url = asyncio.run(Orchestrator(config, console).resolve(site, detail_url))
    except CatalogError as e:
        _fail(e, verbose)
    # Plain print so the URL can be piped into a player
    print(stream_url)


@favorites_app.command("list")
def favorites_list(config_path: Optional[Path] = ConfigOption):
    """Show saved favorites."""
    config = _load_config(config_path, False)
    try:
        items = asyncio.run(FavoritesStore(config.favorites_path).load())
    except CatalogError as e:
        _fail(e, False)

    if not items:
        console.print("[yellow]No favorites yet.[/yellow]")
        return
    table = Table(title="Favorites")
    table.add_column("Title", style="cyan")
    table.add_column("Duration", justify="right")
    table.add_column("URL")
    for item in items:
        table.add_row(item.title, item.duration or "", item.url)
    console.print(table)


@favorites_app.command("add")
def favorites_add(
    url: str = typer.Argument(..., help="Detail page URL"),
    title: str = typer.Option("", "--title", "-t", help="Item title"),
    config_path: Optional[Path] = ConfigOption,
):
    """Add an item to favorites."""
    config = _load_config(config_path, False)
    store = FavoritesStore(config.favorites_path)
    try:
        added = asyncio.run(store.add(CatalogItem(title=title, url=url)))
    except CatalogError as e:
        _fail(e, False)
    if added:
        console.print("[green]Added to favorites.[/green]")
    else:
        console.print("[yellow]Already in favorites.[/yellow]")


@favorites_app.command("remove")
def favorites_remove(
    url: str = typer.Argument(..., help="Detail page URL"),
    config_path: Optional[Path] = ConfigOption,
):
    """Remove an item from favorites."""
    config = _load_config(config_path, False)
    store = FavoritesStore(config.favorites_path)
    try:
        removed = asyncio.run(store.remove(url))
    except CatalogError as e:
        _fail(e, False)
    if removed:
        console.print("[green]Removed from favorites.[/green]")
    else:
        console.print("[yellow]Not in favorites.[/yellow]")


if __name__ == "__main__":
    app()
