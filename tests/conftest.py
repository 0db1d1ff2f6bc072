import asyncio
import json

import pytest

from catalog_browser.config import FetcherConfig
from catalog_browser.fetcher.base import BaseFetcher, FetchResult, RequestIdentity
from catalog_browser.resolver import StreamResolver
from catalog_browser.sites.registry import SiteRegistry


class FakeFetcher(BaseFetcher):
    """Serves queued bodies (str) or status codes (int) in order."""

    def __init__(self, responses=None):
        super().__init__(FetcherConfig())
        self.responses = list(responses or [])
        self.calls: list[tuple[str, RequestIdentity]] = []

    async def fetch(self, url, identity=RequestIdentity.DESKTOP):
        self.calls.append((url, identity))
        response = self.responses.pop(0)
        if isinstance(response, int):
            return FetchResult(url=url, final_url=url, text="", status_code=response)
        return FetchResult(url=url, final_url=url, text=response, status_code=200)


class GatedFetcher(FakeFetcher):
    """Holds every fetch until ``release()`` is called."""

    def __init__(self, responses=None):
        super().__init__(responses)
        self.gate = asyncio.Event()
        self.started = asyncio.Event()

    def release(self):
        self.gate.set()

    async def fetch(self, url, identity=RequestIdentity.DESKTOP):
        self.started.set()
        await self.gate.wait()
        return await super().fetch(url, identity)


@pytest.fixture
def fake_fetcher():
    return FakeFetcher


@pytest.fixture
def gated_fetcher():
    return GatedFetcher


@pytest.fixture(autouse=True)
def isolated_registries(monkeypatch):
    """Keep adapters and strategies registered by a test out of the others."""
    monkeypatch.setattr(SiteRegistry, "_adapters", dict(SiteRegistry._adapters))
    monkeypatch.setattr(StreamResolver, "_strategies", dict(StreamResolver._strategies))


@pytest.fixture
def jable_listing_html() -> str:
    return """
    <html>
    <head><title>Latest Updates - Jable.TV</title></head>
    <body>
    <div class="container">
      <div class="grid">
        <div class="video-img-box">
          <div class="img-box">
            <a href="https://jable.tv/videos/abcd123/">
              <img data-src="https://assets-cdn.jable.tv/contents/1/preview.jpg" src="loading.gif">
              <div class="absolute-bottom-right"><span class="label">01:58:21</span></div>
            </a>
          </div>
          <div class="detail">
            <h6 class="title"><a href="https://jable.tv/videos/abcd123/">
              First Video Title
            </a></h6>
          </div>
        </div>
        <div class="video-img-box">
          <div class="img-box">
            <a href="https://jable.tv/videos/efgh-456/">
              <img data-src="https://assets-cdn.jable.tv/contents/2/preview.jpg">
            </a>
          </div>
          <div class="detail">
            <h6 class="title"><a href="https://jable.tv/videos/efgh-456/">Second Video</a></h6>
          </div>
        </div>
      </div>
      <ul class="pagination">
        <li class="page-item"><a class="page-link" href="/latest-updates/?page=1">1</a></li>
        <li class="page-item"><a class="page-link" href="/latest-updates/?page=2">2</a></li>
        <li class="page-item"><a class="page-link" href="/latest-updates/?page=2">Next</a></li>
      </ul>
    </div>
    </body>
    </html>
    """


@pytest.fixture
def jable_last_page_html() -> str:
    return """
    <html><body>
    <div class="grid">
      <div class="video-img-box">
        <img data-src="https://assets-cdn.jable.tv/contents/9/preview.jpg">
        <span class="label">22:10</span>
        <h6 class="title"><a href="https://jable.tv/videos/last-999/">Last Video</a></h6>
      </div>
    </div>
    </body></html>
    """


@pytest.fixture
def njav_listing_html() -> str:
    return """
    <html><body>
    <div class="box-item-list">
      <div class="box-item">
        <div class="thumb">
          <a href="/en/v/abc-001"><img data-src="https://cdn.njav.tv/abc-001.jpg" alt="ABC-001"></a>
          <span class="duration">2:01:44</span>
        </div>
        <div class="detail"><a href="/en/v/abc-001">ABC-001 Some Title</a></div>
      </div>
      <div class="box-item">
        <div class="thumb">
          <a href="/en/v/xyz-777"><img data-src="https://cdn.njav.tv/xyz-777.jpg" alt="XYZ-777"></a>
          <span class="duration">1:12:03</span>
        </div>
        <div class="detail"><a href="/en/v/xyz-777">XYZ-777 Another Title</a></div>
      </div>
    </div>
    <nav><ul class="pagination">
      <li><a href="/en/new-release?page=1">1</a></li>
      <li><a href="/en/new-release?page=2">&raquo;</a></li>
    </ul></nav>
    </body></html>
    """


@pytest.fixture
def njav_listing_json(njav_listing_html) -> str:
    return json.dumps({"contents": njav_listing_html, "status": {"http_code": 200}})


@pytest.fixture
def jable_detail_html() -> str:
    return """
    <html><head>
    <script src="https://jable.tv/assets/js/player.js"></script>
    <script>window.dataLayer = window.dataLayer || [];</script>
    </head><body>
    <div id="player"></div>
    <script>
        var x = "https://cdn.example.com/v/123.mp4";
        var poster = 'https://cdn.example.com/v/123.jpg';
    </script>
    <script>var backup = "https://mirror.example.com/v/123.mp4";</script>
    </body></html>
    """


@pytest.fixture
def njav_detail_json() -> str:
    html = """
    <html><body>
    <div class="player-wrapper">
      <iframe src="//embed.njav.example/e/abc-001" allowfullscreen></iframe>
    </div>
    <iframe src="https://ads.example.com/banner"></iframe>
    </body></html>
    """
    return json.dumps({"contents": html})
