"""Record normalizer: merges a listing and an optional detail into one record.

Precedence per field: detail value when present and non-empty, then the
listing value, then None. A secondary detail (fetched through the other
channel) flips that order so the listing wins and the detail fills gaps.

Plain-text descriptions are always derived from the winning description
HTML when there is one.
"""

from src.core.schemas import CanonicalRecord, DetailRecord, ListingRecord
from src.core.text import collapse_whitespace, html_to_text

_MERGED_FIELDS: tuple[str, ...] = (
    "title",
    "company",
    "location",
    "salary",
    "job_type",
    "date_posted",
    "url",
    "experience_level",
    "remote_work",
    "apply_url",
)


def merge(listing: ListingRecord, detail: DetailRecord | None = None) -> CanonicalRecord:
    """Build the canonical record. Pure; never mutates its inputs."""
    if detail is None:
        sources: tuple[ListingRecord | DetailRecord, ...] = (listing,)
    elif detail.secondary:
        sources = (listing, detail)
    else:
        sources = (detail, listing)

    values = {name: _first(sources, name) for name in _MERGED_FIELDS}

    description_html = _first(sources, "description_html")
    if description_html:
        description_text = html_to_text(description_html) or None
    else:
        plain = _first(sources, "description_text")
        description_text = collapse_whitespace(plain) if plain else None

    return CanonicalRecord(
        id=resolve_identifier(listing, detail, values["url"]),
        channel=listing.channel,
        description_html=description_html,
        description_text=description_text,
        fetched_at=detail.fetched_at if detail is not None else listing.fetched_at,
        **values,
    )


def resolve_identifier(
    listing: ListingRecord,
    detail: DetailRecord | None,
    url: str | None,
) -> str:
    """detail native id -> listing native id -> detail URL -> composite key."""
    for candidate in (detail.native_id if detail else None, listing.native_id, url):
        if candidate and candidate.strip():
            return candidate.strip()
    return composite_key(listing.title, listing.company, listing.date_posted)


def composite_key(title: str | None, company: str | None, date_posted: str | None) -> str:
    return "|".join(collapse_whitespace(part or "").lower() for part in (title, company, date_posted))


def _first(sources: tuple[ListingRecord | DetailRecord, ...], name: str) -> str | None:
    for source in sources:
        value = getattr(source, name)
        if value is not None and value.strip():
            return value
    return None
