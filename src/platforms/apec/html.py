"""HTML channel: server-rendered search and detail pages."""

import functools
import logging

import httpx

from src.core.errors import ChannelError, ExhaustedRetries, FetchError
from src.core.schemas import Channel, DetailRecord, ListingRecord, PageResult, SearchCriteria
from src.net.http import HttpClient
from src.net.retry import RetryPolicy, execute
from src.platforms.apec.parser import parse_detail_page, parse_listing_page
from src.platforms.apec.searcher import build_search_url
from src.platforms.base import ChannelStrategy, PageRenderer

logger = logging.getLogger(__name__)

_CALL_ERRORS = (ExhaustedRetries, FetchError, httpx.HTTPError, ValueError)


class HtmlChannel(ChannelStrategy):
    """Parses the public search pages. The total is never known here, so
    callers stop on an empty page.

    With a ``renderer``, a page whose static markup holds no items is
    rendered in a browser and parsed again (SPA fallback).
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        page_policy: RetryPolicy | None = None,
        detail_policy: RetryPolicy | None = None,
        renderer: PageRenderer | None = None,
    ) -> None:
        self._http = http
        self._page_policy = page_policy or RetryPolicy()
        self._detail_policy = detail_policy or RetryPolicy(max_attempts=2, base_delay_s=0.5, jitter_s=0.25)
        self._renderer = renderer

    @property
    def channel_id(self) -> Channel:
        return "html"

    async def fetch_page(self, page_index: int, criteria: SearchCriteria) -> PageResult:
        url = build_search_url(criteria, page_index, self._http.base_url)
        logger.info("HTML page %d: %s", page_index, url)
        try:
            html = await execute(functools.partial(self._http.get_text, url), policy=self._page_policy)
        except _CALL_ERRORS as e:
            msg = f"page {page_index} unavailable"
            raise ChannelError(self.channel_id, msg, cause=e) from e

        items = parse_listing_page(html, self._http.base_url)
        if not items and self._renderer is not None:
            items = await self._render_items(self._renderer, url)
        return PageResult(items=items, total_available=None)

    async def fetch_detail(self, listing: ListingRecord) -> DetailRecord | None:
        if not listing.url:
            return None
        try:
            html = await execute(
                functools.partial(self._http.get_text, listing.url), policy=self._detail_policy,
            )
        except _CALL_ERRORS as e:
            msg = f"detail page {listing.url} unavailable"
            raise ChannelError(self.channel_id, msg, cause=e) from e
        return parse_detail_page(html, listing.url, self._http.base_url)

    async def _render_items(self, renderer: PageRenderer, url: str) -> list[ListingRecord]:
        logger.info("No items in static markup, rendering %s", url)
        try:
            html = await renderer.render(url)
        except Exception as e:
            logger.warning("Render fallback failed for %s: %s", url, e)
            return []
        return parse_listing_page(html, self._http.base_url)
