"""API channel: the undocumented APEC JSON endpoints."""

import functools
import logging
from typing import Any

import httpx

from src.core.errors import ChannelError, ExhaustedRetries, FetchError
from src.core.schemas import Channel, DetailRecord, ListingRecord, PageResult, SearchCriteria
from src.net.http import HttpClient
from src.net.retry import RetryPolicy, execute
from src.platforms.apec.fields import (
    DETAIL_FIELDS,
    LISTING_FIELDS,
    RESULT_CONTAINERS,
    extract_items,
    pick_fields,
)
from src.platforms.apec.searcher import (
    API_DETAIL_PATH,
    API_ENDPOINTS,
    ApiEndpoint,
    build_api_payload,
    build_api_query,
    build_detail_url,
    canonical_url,
)
from src.platforms.base import ChannelStrategy

logger = logging.getLogger(__name__)

# Errors that can leave the retry boundary for a single endpoint call.
_CALL_ERRORS = (ExhaustedRetries, FetchError, httpx.HTTPError, ValueError)


class ApiChannel(ChannelStrategy):
    """Search and detail lookups through the JSON API.

    Search endpoints are tried in order; the last one that returned items
    is tried first on later pages.
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        search_policy: RetryPolicy | None = None,
        detail_policy: RetryPolicy | None = None,
    ) -> None:
        self._http = http
        self._search_policy = search_policy or RetryPolicy()
        self._detail_policy = detail_policy or RetryPolicy(max_attempts=2, base_delay_s=0.5, jitter_s=0.25)
        self._preferred = 0

    @property
    def channel_id(self) -> Channel:
        return "api"

    async def fetch_page(self, page_index: int, criteria: SearchCriteria) -> PageResult:
        answered = False
        last_error: BaseException | None = None

        for index in self._endpoint_order():
            endpoint = API_ENDPOINTS[index]
            call = functools.partial(self._search, endpoint, criteria, page_index)
            try:
                body = await execute(call, policy=self._search_policy)
            except _CALL_ERRORS as e:
                last_error = e
                logger.debug("API endpoint %s %s failed: %s", endpoint.method, endpoint.path, e)
                continue

            answered = True
            items, total = extract_items(body)
            if items:
                self._preferred = index
                listings = [self._to_listing(item) for item in items]
                logger.debug(
                    "API page %d: %d items from %s (total %s)",
                    page_index, len(listings), endpoint.path, total,
                )
                return PageResult(
                    items=listings,
                    total_available=total if total is not None else len(listings),
                    total_declared=total is not None,
                )

        if answered:
            return PageResult(items=[], total_available=0)
        msg = f"page {page_index} failed on every search endpoint"
        raise ChannelError(self.channel_id, msg, cause=last_error)

    async def fetch_detail(self, listing: ListingRecord) -> DetailRecord | None:
        if not listing.native_id:
            return None

        call = functools.partial(
            self._http.get_json, API_DETAIL_PATH, params={"numeroOffre": listing.native_id},
        )
        try:
            body = await execute(call, policy=self._detail_policy)
        except _CALL_ERRORS as e:
            msg = f"detail {listing.native_id} unavailable"
            raise ChannelError(self.channel_id, msg, cause=e) from e

        if isinstance(body, dict):
            for key in RESULT_CONTAINERS:
                if isinstance(body.get(key), dict):
                    body = body[key]
                    break
        fields = pick_fields(body, DETAIL_FIELDS)
        if not fields["description_html"] and not fields["description_text"]:
            logger.debug("API detail for %s has no description", listing.native_id)
            return None

        fields["native_id"] = fields["native_id"] or listing.native_id
        fields["url"] = canonical_url(fields["url"], self._http.base_url) or listing.url
        return DetailRecord(channel=self.channel_id, **fields)

    async def _search(self, endpoint: ApiEndpoint, criteria: SearchCriteria, page_index: int) -> Any:
        if endpoint.method == "POST":
            return await self._http.post_json(endpoint.path, build_api_payload(criteria, page_index))
        return await self._http.get_json(endpoint.path, params=build_api_query(criteria, page_index))

    def _endpoint_order(self) -> list[int]:
        rest = [i for i in range(len(API_ENDPOINTS)) if i != self._preferred]
        return [self._preferred, *rest]

    def _to_listing(self, item: dict[str, Any]) -> ListingRecord:
        fields = pick_fields(item, LISTING_FIELDS)
        url = canonical_url(fields["url"], self._http.base_url)
        if url is None and fields["native_id"]:
            url = build_detail_url(fields["native_id"], self._http.base_url)
        fields["url"] = url
        return ListingRecord(channel=self.channel_id, **fields)
