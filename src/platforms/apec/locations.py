"""Location resolver: free text or department code to APEC place ids.

Precedence, highest first:
  1. ids embedded in the caller's start URL
  2. the autocomplete lookup for the free-text location
  3. a bare numeric department code

An empty result means "no location filter", which is valid.
"""

import logging
from typing import Any

import httpx

from src.core.errors import ExhaustedRetries, FetchError
from src.net.http import HttpClient
from src.net.retry import RetryPolicy, execute
from src.platforms.apec.fields import LOCATION_ID_FIELDS, LOCATION_NAME_FIELDS, pick_text
from src.platforms.apec.searcher import LOCATION_AUTOCOMPLETE_PATH

logger = logging.getLogger(__name__)


class LocationResolver:
    """Turns location inputs into an ordered tuple of place identifiers."""

    def __init__(self, http: HttpClient, policy: RetryPolicy | None = None) -> None:
        self._http = http
        self._policy = policy or RetryPolicy()

    async def resolve(
        self,
        location_text: str = "",
        department_code: str = "",
        explicit_ids: list[str] | tuple[str, ...] = (),
    ) -> tuple[str, ...]:
        ids = _dedupe(str(i).strip() for i in explicit_ids if str(i).strip())
        if ids:
            logger.debug("Using %d place id(s) from start URL", len(ids))
            return ids

        department = department_code.strip()
        text = location_text.strip()
        # A non-numeric department is a place name, not a code.
        if not text and department and not department.isdigit():
            text = department

        if text:
            place_id = await self._lookup(text)
            if place_id is not None:
                return (place_id,)

        if department.isdigit():
            logger.debug("Using department code %s as place id", department)
            return (department,)

        if text:
            logger.warning("Location '%s' not resolved, searching without location filter", text)
        return ()

    async def _lookup(self, text: str) -> str | None:
        """Query autocomplete and apply the tie-break rule."""
        try:
            body = await execute(
                lambda: self._http.get_json(LOCATION_AUTOCOMPLETE_PATH, params={"q": text}),
                policy=self._policy,
            )
        except (ExhaustedRetries, FetchError, httpx.HTTPError, ValueError) as e:
            logger.warning("Location lookup for '%s' failed: %s", text, e)
            return None

        candidates = _candidates(body)
        if not candidates:
            logger.info("No location candidates for '%s'", text)
            return None
        chosen = choose_candidate(text, candidates)
        logger.info("Resolved location '%s' to place id %s", text, chosen)
        return chosen


def choose_candidate(text: str, candidates: list[tuple[str, str]]) -> str:
    """First candidate whose name contains ``text`` (case-insensitive), else the first."""
    needle = text.casefold()
    for place_id, name in candidates:
        if needle in name.casefold():
            return place_id
    return candidates[0][0]


def _candidates(body: Any) -> list[tuple[str, str]]:
    """(id, display name) pairs from an autocomplete response, in order."""
    items = body
    if isinstance(body, dict):
        items = next(
            (body[k] for k in ("items", "lieux", "results", "suggestions") if isinstance(body.get(k), list)),
            [],
        )
    if not isinstance(items, list):
        return []
    out: list[tuple[str, str]] = []
    for item in items:
        place_id = pick_text(item, LOCATION_ID_FIELDS)
        if place_id is None:
            continue
        out.append((place_id, pick_text(item, LOCATION_NAME_FIELDS) or ""))
    return out


def _dedupe(values: Any) -> tuple[str, ...]:
    seen: dict[str, None] = {}
    for v in values:
        seen.setdefault(v, None)
    return tuple(seen)
