"""APEC HTML parser: search-result items and detail pages.

Listing extraction is an ordered policy of named strategies: the first
strategy that yields at least one item wins. Every field lookup walks a
selector tuple and returns None when nothing matches, never raising.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from bs4 import BeautifulSoup, Tag

from src.core.schemas import DetailRecord, ListingRecord
from src.core.text import clean_optional, html_to_text
from src.platforms.apec.searcher import BASE_URL, canonical_url, offer_id_from_url
from src.platforms.apec.selectors import (
    CARD_COMPANY_SELECTORS,
    CARD_CONTRACT_SELECTORS,
    CARD_DATE_SELECTORS,
    CARD_LOCATION_SELECTORS,
    CARD_SALARY_SELECTORS,
    CARD_SELECTORS,
    CARD_TITLE_LINK_SELECTORS,
    DETAIL_APPLY_SELECTORS,
    DETAIL_COMPANY_SELECTORS,
    DETAIL_CONTRACT_SELECTORS,
    DETAIL_DATE_SELECTORS,
    DETAIL_DESCRIPTION_SELECTORS,
    DETAIL_EXPERIENCE_SELECTORS,
    DETAIL_LOCATION_SELECTORS,
    DETAIL_REMOTE_SELECTORS,
    DETAIL_SALARY_SELECTORS,
    DETAIL_TITLE_SELECTORS,
    JSON_LD_SELECTOR,
    LINK_SELECTORS,
    OFFER_ID_ATTR,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionStrategy:
    """A named way of turning a results page into listings."""

    name: str
    extract: Callable[[BeautifulSoup, str], list[ListingRecord]]


@dataclass(frozen=True)
class ExtractionPolicy:
    """Strategies tried in order until one yields a non-empty result."""

    strategies: tuple[ExtractionStrategy, ...]

    def apply(self, soup: BeautifulSoup, base_url: str) -> tuple[str | None, list[ListingRecord]]:
        for strategy in self.strategies:
            items = strategy.extract(soup, base_url)
            if items:
                logger.debug("Extraction strategy '%s' matched %d items", strategy.name, len(items))
                return strategy.name, items
        return None, []


def extract_cards(soup: BeautifulSoup, base_url: str) -> list[ListingRecord]:
    """Primary group: full result cards with title, company, location, etc."""
    items: list[ListingRecord] = []
    for card in soup.select(", ".join(CARD_SELECTORS)):
        link = _find_first(card, CARD_TITLE_LINK_SELECTORS)
        url = canonical_url(link.get("href") if link else None, base_url)
        if url is None:
            logger.debug("Card without detail link, skipping")
            continue
        offer_id = clean_optional(_attr(card, OFFER_ID_ATTR)) or offer_id_from_url(url)
        items.append(
            ListingRecord(
                channel="html",
                native_id=offer_id,
                url=url,
                title=clean_optional(link.get_text(" ")) if link else None,
                company=_text_first(card, CARD_COMPANY_SELECTORS),
                location=_text_first(card, CARD_LOCATION_SELECTORS),
                salary=_text_first(card, CARD_SALARY_SELECTORS),
                job_type=_text_first(card, CARD_CONTRACT_SELECTORS),
                date_posted=_date_first(card, CARD_DATE_SELECTORS),
            ),
        )
    return items


def extract_links(soup: BeautifulSoup, base_url: str) -> list[ListingRecord]:
    """Fallback group: bare detail links, unique by canonical URL."""
    seen: set[str] = set()
    items: list[ListingRecord] = []
    for link in soup.select(", ".join(LINK_SELECTORS)):
        url = canonical_url(link.get("href"), base_url)
        if url is None or url in seen:
            continue
        seen.add(url)
        items.append(
            ListingRecord(
                channel="html",
                native_id=offer_id_from_url(url),
                url=url,
                title=clean_optional(link.get_text(" ")),
            ),
        )
    return items


LISTING_POLICY = ExtractionPolicy(
    strategies=(
        ExtractionStrategy("cards", extract_cards),
        ExtractionStrategy("detail-links", extract_links),
    ),
)


def parse_listing_page(html: str, base_url: str = BASE_URL) -> list[ListingRecord]:
    """Parse a search results page into listings (empty when nothing matched)."""
    soup = BeautifulSoup(html, "html.parser")
    _, items = LISTING_POLICY.apply(soup, base_url)
    return items


def parse_detail_page(html: str, url: str, base_url: str = BASE_URL) -> DetailRecord:
    """Parse a detail page: JSON-LD JobPosting first, selectors for the gaps."""
    soup = BeautifulSoup(html, "html.parser")
    ld = extract_json_ld(soup) or {}

    description_html = ld.get("description_html")
    if not description_html:
        desc = _find_first(soup, DETAIL_DESCRIPTION_SELECTORS)
        if desc is not None:
            description_html = desc.decode_contents().strip() or None

    apply_link = _find_first(soup, DETAIL_APPLY_SELECTORS)

    return DetailRecord(
        channel="html",
        native_id=offer_id_from_url(url),
        url=canonical_url(url, base_url) or url,
        title=ld.get("title") or _text_first(soup, DETAIL_TITLE_SELECTORS),
        company=ld.get("company") or _text_first(soup, DETAIL_COMPANY_SELECTORS),
        location=ld.get("location") or _text_first(soup, DETAIL_LOCATION_SELECTORS),
        salary=ld.get("salary") or _text_first(soup, DETAIL_SALARY_SELECTORS),
        job_type=ld.get("job_type") or _text_first(soup, DETAIL_CONTRACT_SELECTORS),
        date_posted=ld.get("date_posted") or _date_first(soup, DETAIL_DATE_SELECTORS),
        description_html=description_html,
        description_text=html_to_text(description_html) or None,
        experience_level=_text_first(soup, DETAIL_EXPERIENCE_SELECTORS),
        remote_work=_text_first(soup, DETAIL_REMOTE_SELECTORS),
        apply_url=canonical_url(apply_link.get("href"), base_url) if apply_link else None,
    )


def extract_json_ld(soup: BeautifulSoup) -> dict[str, str | None] | None:
    """Fields of the first JSON-LD JobPosting block, or None."""
    for script in soup.select(JSON_LD_SELECTOR):
        try:
            parsed = json.loads(script.string or script.get_text() or "")
        except (json.JSONDecodeError, TypeError):
            logger.debug("Malformed JSON-LD block, skipping")
            continue
        entries = parsed if isinstance(parsed, list) else [parsed]
        for entry in entries:
            if isinstance(entry, dict) and _is_job_posting(entry):
                return _job_posting_fields(entry)
    return None


def _is_job_posting(entry: dict[str, Any]) -> bool:
    kind = entry.get("@type") or entry.get("type")
    if isinstance(kind, list):
        return "JobPosting" in kind
    return kind == "JobPosting"


def _job_posting_fields(entry: dict[str, Any]) -> dict[str, str | None]:
    org = entry.get("hiringOrganization")
    place = entry.get("jobLocation")
    if isinstance(place, list):
        place = place[0] if place else None
    address = place.get("address") if isinstance(place, dict) else None
    location = None
    if isinstance(address, dict):
        location = address.get("addressLocality") or address.get("addressRegion")

    salary = entry.get("baseSalary")
    if isinstance(salary, dict):
        value = salary.get("value")
        salary = value.get("value") if isinstance(value, dict) else value

    employment = entry.get("employmentType")
    if isinstance(employment, list):
        employment = ", ".join(str(e) for e in employment if e)

    return {
        "title": _str_or_none(entry.get("title") or entry.get("name")),
        "company": _str_or_none(org.get("name") if isinstance(org, dict) else None),
        "date_posted": _str_or_none(entry.get("datePosted")),
        "description_html": _str_or_none(entry.get("description")),
        "location": _str_or_none(location),
        "salary": _str_or_none(salary),
        "job_type": _str_or_none(employment),
    }


def _str_or_none(value: Any) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    return clean_optional(str(value))


def _find_first(parent: Tag, selectors: tuple[str, ...]) -> Tag | None:
    """Return the first element matching any selector in order."""
    for selector in selectors:
        el = parent.select_one(selector)
        if el is not None:
            return el
    return None


def _text_first(parent: Tag, selectors: tuple[str, ...]) -> str | None:
    """First non-empty text among the selectors, or None."""
    for selector in selectors:
        el = parent.select_one(selector)
        if el is not None:
            text = clean_optional(el.get_text(" "))
            if text:
                return text
    return None


def _date_first(parent: Tag, selectors: tuple[str, ...]) -> str | None:
    """Posted date, preferring a ``datetime`` attribute over visible text."""
    el = _find_first(parent, selectors)
    if el is None:
        return None
    return clean_optional(_attr(el, "datetime")) or clean_optional(el.get_text(" "))


def _attr(el: Tag, name: str) -> str | None:
    value = el.get(name)
    if isinstance(value, list):
        return " ".join(value)
    return value
