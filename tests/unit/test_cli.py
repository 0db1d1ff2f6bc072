import pytest
from typer.testing import CliRunner

from catalog_browser import __version__
from catalog_browser.cli import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "catalog.toml"
    path.write_text(
        f'favorites_path = "{(tmp_path / "favorites.json").as_posix()}"\n'
        "\n[proxy]\nenabled = false\n"
        "\n[rate_limit]\nmax_retries = 0\ndelay_seconds = 0.0\n",
        encoding="utf-8",
    )
    return path


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_list_sites():
    result = runner.invoke(app, ["list-sites"])
    assert result.exit_code == 0
    assert "jable" in result.output
    assert "njav" in result.output


def test_categories():
    result = runner.invoke(app, ["categories", "njav"])
    assert result.exit_code == 0
    assert "Trending" in result.output


def test_categories_unknown_site():
    result = runner.invoke(app, ["categories", "nope"])
    assert result.exit_code == 1
    assert "Unknown site" in result.output


def test_browse_with_detected_site(monkeypatch, fake_fetcher, jable_listing_html, config_file):
    fetcher = fake_fetcher([jable_listing_html])
    monkeypatch.setattr(
        "catalog_browser.orchestrator.HttpFetcher", lambda config, limiter: fetcher
    )

    result = runner.invoke(
        app, ["browse", "--url", "https://jable.tv/latest-updates/", "-C", str(config_file)]
    )

    assert result.exit_code == 0, result.output
    assert "2 items from 1 page(s)" in result.output
    assert fetcher.calls[0][0] == "https://jable.tv/latest-updates/?page=1"


def test_browse_needs_site_or_url():
    result = runner.invoke(app, ["browse"])
    assert result.exit_code == 1


def test_browse_unknown_category(monkeypatch, fake_fetcher, config_file):
    monkeypatch.setattr(
        "catalog_browser.orchestrator.HttpFetcher", lambda config, limiter: fake_fetcher([])
    )
    result = runner.invoke(app, ["browse", "jable", "-c", "Nope", "-C", str(config_file)])
    assert result.exit_code == 1
    assert "no category" in result.output


def test_resolve_prints_stream_url(monkeypatch, fake_fetcher, jable_detail_html, config_file):
    monkeypatch.setattr(
        "catalog_browser.orchestrator.HttpFetcher",
        lambda config, limiter: fake_fetcher([jable_detail_html]),
    )
    result = runner.invoke(app, ["resolve", "jable", "/videos/abcd123/", "-C", str(config_file)])
    assert result.exit_code == 0
    assert result.output.strip().endswith("https://cdn.example.com/v/123.mp4")


def test_favorites_roundtrip(config_file):
    url = "https://jable.tv/videos/abcd123/"

    added = runner.invoke(app, ["favorites", "add", url, "-t", "First", "-C", str(config_file)])
    assert added.exit_code == 0
    assert "Added" in added.output

    again = runner.invoke(app, ["favorites", "add", url, "-C", str(config_file)])
    assert "Already" in again.output

    listed = runner.invoke(app, ["favorites", "list", "-C", str(config_file)])
    assert "First" in listed.output

    removed = runner.invoke(app, ["favorites", "remove", url, "-C", str(config_file)])
    assert "Removed" in removed.output

    empty = runner.invoke(app, ["favorites", "list", "-C", str(config_file)])
    assert "No favorites yet." in empty.output


def test_resolve_failure_reported_once(monkeypatch, fake_fetcher, config_file):
    monkeypatch.setattr(
        "catalog_browser.orchestrator.HttpFetcher",
        lambda config, limiter: fake_fetcher(["<html><body></body></html>"]),
    )
    result = runner.invoke(app, ["resolve", "jable", "/videos/abcd123/", "-C", str(config_file)])
    assert result.exit_code == 1
    assert result.output.count("No stream found") == 1


def test_bad_selector_in_config(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text(
        "[[sites]]\n"
        'id = "broken"\n'
        'title = "Broken"\n'
        'base_url = "https://broken.example"\n'
        'pagination = "nav a@href"\n'
        "\n[sites.list_selectors]\n"
        'container = "div["\n'
        "\n[sites.list_selectors.item]\n"
        'url = "a@href"\n',
        encoding="utf-8",
    )
    result = runner.invoke(app, ["browse", "broken", "-C", str(path)])
    assert result.exit_code == 1
    assert "Invalid CSS selector" in result.output
