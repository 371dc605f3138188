"""Tests for the HTML channel: search pages, detail pages, render fallback."""

import httpx
import pytest

from src.core.errors import ChannelError
from src.core.schemas import ListingRecord, SearchCriteria
from src.net.retry import RetryPolicy
from src.platforms.apec.html import HtmlChannel
from src.platforms.base import PageRenderer

NO_WAIT = RetryPolicy(max_attempts=2, base_delay_s=0.0, jitter_s=0.0)
CRITERIA = SearchCriteria(keyword="python", place_ids=("75",))
DETAIL = "https://www.apec.fr/candidat/recherche-emploi.html/emploi/detail-offre"

RESULTS_HTML = """
<article class="card-offre" data-offer-id="1A">
  <h2><a href="/candidat/recherche-emploi.html/emploi/detail-offre/1A">Dev Python</a></h2>
</article>
<article class="card-offre" data-offer-id="2B">
  <h2><a href="/candidat/recherche-emploi.html/emploi/detail-offre/2B">Data Engineer</a></h2>
</article>
"""

SPA_SHELL = '<html><body><div id="app"></div></body></html>'


class FakeRenderer:
    def __init__(self, html: str = RESULTS_HTML, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.urls: list[str] = []

    async def render(self, url: str) -> str:
        self.urls.append(url)
        if self.error is not None:
            raise self.error
        return self.html


def _channel(make_http, handler, renderer=None) -> HtmlChannel:  # type: ignore[no-untyped-def]
    return HtmlChannel(make_http(handler), page_policy=NO_WAIT, detail_policy=NO_WAIT, renderer=renderer)


class TestFetchPage:
    async def test_parses_cards_without_total(self, make_http) -> None:  # type: ignore[no-untyped-def]
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text=RESULTS_HTML)

        page = await _channel(make_http, handler).fetch_page(1, CRITERIA)
        assert [i.native_id for i in page.items] == ["1A", "2B"]
        assert all(i.channel == "html" for i in page.items)
        assert page.total_available is None
        assert seen[0].url.params["motsCles"] == "python"
        assert seen[0].url.params["page"] == "1"

    async def test_failure_raises_channel_error(self, make_http) -> None:  # type: ignore[no-untyped-def]
        channel = _channel(make_http, lambda request: httpx.Response(502))
        with pytest.raises(ChannelError) as exc_info:
            await channel.fetch_page(0, CRITERIA)
        assert exc_info.value.channel == "html"

    async def test_empty_markup_without_renderer(self, make_http) -> None:  # type: ignore[no-untyped-def]
        channel = _channel(make_http, lambda request: httpx.Response(200, text=SPA_SHELL))
        page = await channel.fetch_page(0, CRITERIA)
        assert page.items == []

    async def test_render_fallback_on_empty_markup(self, make_http) -> None:  # type: ignore[no-untyped-def]
        renderer = FakeRenderer()
        assert isinstance(renderer, PageRenderer)
        channel = _channel(make_http, lambda request: httpx.Response(200, text=SPA_SHELL), renderer)
        page = await channel.fetch_page(0, CRITERIA)
        assert len(page.items) == 2
        assert renderer.urls[0].startswith("https://www.apec.fr/candidat/recherche-emploi.html/emploi?")

    async def test_renderer_not_used_when_static_items(self, make_http) -> None:  # type: ignore[no-untyped-def]
        renderer = FakeRenderer()
        channel = _channel(make_http, lambda request: httpx.Response(200, text=RESULTS_HTML), renderer)
        await channel.fetch_page(0, CRITERIA)
        assert renderer.urls == []

    async def test_render_failure_yields_empty_page(self, make_http) -> None:  # type: ignore[no-untyped-def]
        renderer = FakeRenderer(error=RuntimeError("browser crashed"))
        channel = _channel(make_http, lambda request: httpx.Response(200, text=SPA_SHELL), renderer)
        page = await channel.fetch_page(0, CRITERIA)
        assert page.items == []


class TestFetchDetail:
    async def test_without_url_returns_none(self, make_http) -> None:  # type: ignore[no-untyped-def]
        channel = _channel(make_http, lambda request: httpx.Response(500))
        assert await channel.fetch_detail(ListingRecord(channel="api", native_id="1A")) is None

    async def test_detail_parsed(self, make_http) -> None:  # type: ignore[no-untyped-def]
        html = '<h1>Dev Python</h1><div class="job-description-content"><p>Missions</p></div>'
        channel = _channel(make_http, lambda request: httpx.Response(200, text=html))
        detail = await channel.fetch_detail(ListingRecord(channel="html", url=f"{DETAIL}/1A"))
        assert detail is not None
        assert detail.native_id == "1A"
        assert detail.description_text == "Missions"

    async def test_gone_detail_raises(self, make_http) -> None:  # type: ignore[no-untyped-def]
        channel = _channel(make_http, lambda request: httpx.Response(410))
        with pytest.raises(ChannelError, match="unavailable"):
            await channel.fetch_detail(ListingRecord(channel="html", url=f"{DETAIL}/1A"))
