"""Unit tests for the httpx fetcher (mocked transport, no network)."""

import httpx
import pytest

from catalog_browser.config import FetcherConfig
from catalog_browser.errors import NetworkError
from catalog_browser.fetcher import HttpFetcher, RequestIdentity
from catalog_browser.fetcher.base import BaseFetcher, FetchResult

CONFIG = FetcherConfig(desktop_user_agent="desk/1.0", mobile_user_agent="mobile/1.0")


def _fetcher(handler) -> HttpFetcher:
    return HttpFetcher(CONFIG, transport=httpx.MockTransport(handler))


@pytest.fixture(autouse=True)
def no_jitter(monkeypatch):
    monkeypatch.setattr("catalog_browser.fetcher.base.random.uniform", lambda a, b: 0.0)


async def test_fetch_sends_identity_user_agent():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["user-agent"])
        return httpx.Response(200, text="<html>ok</html>")

    async with _fetcher(handler) as fetcher:
        desktop = await fetcher.fetch("https://jable.tv/", RequestIdentity.DESKTOP)
        await fetcher.fetch("https://jable.tv/", RequestIdentity.MOBILE)

    assert desktop.success
    assert desktop.text == "<html>ok</html>"
    assert seen == ["desk/1.0", "mobile/1.0"]


async def test_fetch_with_retry_recovers_from_server_error():
    statuses = iter([502, 200])

    def handler(request):
        return httpx.Response(next(statuses), text="body")

    async with _fetcher(handler) as fetcher:
        result = await fetcher.fetch_with_retry("https://jable.tv/", max_retries=2, base_delay=0.01)

    assert result.success
    assert result.attempts == 2


async def test_client_error_is_not_retried():
    calls = []

    def handler(request):
        calls.append(request.url)
        return httpx.Response(404)

    async with _fetcher(handler) as fetcher:
        with pytest.raises(NetworkError) as exc_info:
            await fetcher.fetch_text("https://jable.tv/missing", max_retries=3, base_delay=0.01)

    assert exc_info.value.status_code == 404
    assert len(calls) == 1


async def test_rate_limited_response_backs_off():
    def handler(request):
        return httpx.Response(429, headers={"Retry-After": "0"})

    async with _fetcher(handler) as fetcher:
        result = await fetcher.fetch("https://jable.tv/")

    assert result.status_code == 429
    assert result.retry_after == 0.0
    assert fetcher.rate_limiter.backoff_count == 1
    assert fetcher.rate_limiter.is_throttled


async def test_connection_error_becomes_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _fetcher(handler) as fetcher:
        result = await fetcher.fetch("https://jable.tv/")
        assert result.status_code == 0
        assert "connection refused" in result.error
        with pytest.raises(NetworkError):
            await fetcher.fetch_text("https://jable.tv/", max_retries=1, base_delay=0.01)


async def test_fetch_requires_context_manager():
    fetcher = _fetcher(lambda request: httpx.Response(200))
    with pytest.raises(RuntimeError):
        await fetcher.fetch("https://jable.tv/")


@pytest.mark.parametrize(
    "header, expected",
    [("120", 120.0), ("-5", 0.0), (None, None), ("soon", None)],
)
def test_parse_retry_after(header, expected):
    assert BaseFetcher._parse_retry_after(header) == expected


def test_parse_retry_after_http_date_in_past():
    assert BaseFetcher._parse_retry_after("Wed, 21 Oct 2015 07:28:00 GMT") == 0.0


def test_fetch_result_success_range():
    ok = FetchResult(url="u", final_url="u", text="", status_code=302)
    failed = FetchResult(url="u", final_url="u", text="", status_code=200, error="boom")
    assert ok.success
    assert not failed.success
