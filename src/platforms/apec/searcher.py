"""APEC URL and payload builders, start-URL parsing and pagination helpers.

Pure functions, no network access.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs, urlencode, urljoin, urlparse, urlunparse

from src.core.schemas import SearchCriteria

logger = logging.getLogger(__name__)

BASE_URL = "https://www.apec.fr"
SEARCH_PATH = "/candidat/recherche-emploi.html/emploi"
DETAIL_PATH = f"{SEARCH_PATH}/detail-offre"

API_DETAIL_PATH = "/cms/webapi/offre"
LOCATION_AUTOCOMPLETE_PATH = "/cms/webapi/autocompletion/lieux"

_OFFER_ID_RE = re.compile(r"/detail-offre/([^/?#]+)")


@dataclass(frozen=True)
class ApiEndpoint:
    method: str
    path: str


# Known search endpoints, tried in this order.
API_ENDPOINTS: tuple[ApiEndpoint, ...] = (
    ApiEndpoint("POST", "/cms/webapi/content/offers/search"),
    ApiEndpoint("POST", "/cms/webapi/content/offer-search"),
    ApiEndpoint("GET", "/cms/webapi/content/offer-search"),
)


@dataclass(frozen=True)
class UrlSearchParams:
    """Search inputs embedded in a caller-supplied start URL."""

    keyword: str | None = None
    places: str | None = None
    contract_types: list[str] = field(default_factory=list)
    remote_work: list[str] = field(default_factory=list)

    @property
    def place_ids(self) -> list[str]:
        """Place identifiers, when ``lieux`` holds a list of codes."""
        if not self.places:
            return []
        parts = [p.strip() for p in self.places.split(",") if p.strip()]
        if parts and all(p.isdigit() for p in parts):
            return parts
        return []


def parse_search_url(url: str) -> UrlSearchParams:
    """Read keyword, places and filters from a search URL's query string.

    Repeated and comma-separated values are both accepted.
    """
    query = parse_qs(urlparse(url).query)

    def _first(*names: str) -> str | None:
        for name in names:
            values = query.get(name)
            if values and values[0].strip():
                return values[0].strip()
        return None

    def _all(name: str) -> list[str]:
        out: list[str] = []
        for value in query.get(name, []):
            out.extend(v.strip() for v in value.split(",") if v.strip())
        return out

    return UrlSearchParams(
        keyword=_first("motsCles", "keyword"),
        places=_first("lieux", "location"),
        contract_types=_all("typesConvention"),
        remote_work=_all("teletravail"),
    )


def build_search_url(criteria: SearchCriteria, page_index: int = 0, base_url: str = BASE_URL) -> str:
    """Build the HTML search page URL. page_index=0 omits ``page``."""
    params: list[tuple[str, str]] = []
    if criteria.keyword:
        params.append(("motsCles", criteria.keyword))
    if criteria.place_ids:
        params.append(("lieux", ",".join(criteria.place_ids)))
    params.extend(("typesConvention", code) for code in criteria.contract_types)
    params.extend(("teletravail", code) for code in criteria.remote_work)
    if page_index > 0:
        params.append(("page", str(page_index)))
    url = f"{base_url.rstrip('/')}{SEARCH_PATH}"
    return f"{url}?{urlencode(params)}" if params else url


def build_api_payload(criteria: SearchCriteria, page_index: int) -> dict[str, Any]:
    """JSON body for the POST search endpoints.

    Both naming schemes seen on the endpoints are sent; unset filters are
    omitted.
    """
    payload: dict[str, Any] = {
        "pageNumber": page_index,
        "page": page_index,
        "pageSize": criteria.page_size,
        "size": criteria.page_size,
        "startIndex": page_index * criteria.page_size,
    }
    if criteria.keyword:
        payload["motsCles"] = criteria.keyword
    if criteria.place_ids:
        payload["lieux"] = list(criteria.place_ids)
    if criteria.contract_types:
        payload["typesConvention"] = list(criteria.contract_types)
    if criteria.remote_work:
        payload["teletravail"] = list(criteria.remote_work)
    return payload


def build_api_query(criteria: SearchCriteria, page_index: int) -> dict[str, Any]:
    """Query parameters for the GET search endpoint."""
    params: dict[str, Any] = {
        "page": str(page_index),
        "size": str(criteria.page_size),
    }
    if criteria.keyword:
        params["motsCles"] = criteria.keyword
    if criteria.place_ids:
        params["lieux"] = ",".join(criteria.place_ids)
    if criteria.contract_types:
        params["typesConvention"] = list(criteria.contract_types)
    if criteria.remote_work:
        params["teletravail"] = list(criteria.remote_work)
    return params


def canonical_url(href: str | None, base_url: str = BASE_URL) -> str | None:
    """Absolute URL without query string or fragment, or None if unusable."""
    if not href or not href.strip():
        return None
    href = href.strip()
    if href.startswith(("javascript:", "mailto:", "#")):
        return None
    parsed = urlparse(urljoin(f"{base_url.rstrip('/')}/", href))
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return None
    return urlunparse((parsed.scheme, parsed.netloc.lower(), parsed.path, "", "", ""))


def build_detail_url(offer_id: str, base_url: str = BASE_URL) -> str:
    """Canonical detail page URL for an offer id."""
    return f"{base_url.rstrip('/')}{DETAIL_PATH}/{offer_id}"


def offer_id_from_url(url: str | None) -> str | None:
    """Extract the offer id from a detail page URL."""
    if not url:
        return None
    match = _OFFER_ID_RE.search(url)
    return match.group(1) if match else None


def is_source_exhausted(
    page_index: int,
    item_count: int,
    page_size: int,
    total_available: int | None,
) -> bool:
    """Return True when no further API page can hold new items.

    A short page, or a declared total (> 0) already covered, ends the result
    set. A missing or zero total is ignored.
    """
    if item_count < page_size:
        return True
    if total_available:
        return (page_index + 1) * page_size >= total_available
    return False
