"""Tests for the record normalizer: precedence, text derivation, identifiers."""

from datetime import datetime

import pytest

from src.core.schemas import CanonicalRecord, DetailRecord, ListingRecord
from src.pipeline.normalizer import composite_key, merge, resolve_identifier

T_LISTING = datetime(2026, 3, 1, 10, 0)
T_DETAIL = datetime(2026, 3, 1, 10, 5)


def _listing(**kw: object) -> ListingRecord:
    defaults: dict[str, object] = {
        "channel": "api",
        "native_id": "176543W",
        "title": "Data Engineer",
        "company": "Acme",
        "location": "Lyon",
        "url": "https://www.apec.fr/candidat/recherche-emploi.html/emploi/detail-offre/176543W",
        "fetched_at": T_LISTING,
    }
    defaults.update(kw)
    return ListingRecord(**defaults)  # type: ignore[arg-type]


def _detail(**kw: object) -> DetailRecord:
    defaults: dict[str, object] = {"channel": "api", "fetched_at": T_DETAIL}
    defaults.update(kw)
    return DetailRecord(**defaults)  # type: ignore[arg-type]


class TestMergePrecedence:
    def test_listing_only(self) -> None:
        record = merge(_listing())
        assert record.id == "176543W"
        assert record.channel == "api"
        assert record.title == "Data Engineer"
        assert record.salary is None
        assert record.fetched_at == T_LISTING

    def test_detail_wins_when_present(self) -> None:
        record = merge(_listing(), _detail(title="Data Engineer H/F", salary="50 k€"))
        assert record.title == "Data Engineer H/F"
        assert record.salary == "50 k€"
        assert record.company == "Acme"
        assert record.fetched_at == T_DETAIL

    def test_blank_detail_value_falls_back(self) -> None:
        record = merge(_listing(), _detail(company="   "))
        assert record.company == "Acme"

    def test_secondary_detail_only_fills_gaps(self) -> None:
        detail = _detail(channel="html", title="Autre titre", salary="A négocier", secondary=True)
        record = merge(_listing(), detail)
        assert record.title == "Data Engineer"
        assert record.salary == "A négocier"
        assert record.channel == "api"

    def test_inputs_not_mutated(self) -> None:
        listing, detail = _listing(), _detail(title="X")
        before = (listing.model_dump(), detail.model_dump())
        merge(listing, detail)
        assert (listing.model_dump(), detail.model_dump()) == before


class TestDescriptionText:
    def test_derived_from_winning_html(self) -> None:
        detail = _detail(description_html="<p>Build <b>pipelines</b></p>", description_text="stale text")
        record = merge(_listing(description_text="listing text"), detail)
        assert record.description_html == "<p>Build <b>pipelines</b></p>"
        assert record.description_text == "Build pipelines"

    def test_listing_html_beats_detail_plain_text(self) -> None:
        record = merge(_listing(description_html="<p>From listing</p>"), _detail(description_text="plain"))
        assert record.description_text == "From listing"

    def test_plain_text_collapsed_when_no_html(self) -> None:
        record = merge(_listing(description_text="  Build \n pipelines  "))
        assert record.description_html is None
        assert record.description_text == "Build pipelines"

    def test_no_description(self) -> None:
        assert merge(_listing()).description_text is None


class TestIdentifier:
    def test_detail_native_id_first(self) -> None:
        assert resolve_identifier(_listing(), _detail(native_id="D1"), None) == "D1"

    def test_listing_native_id_second(self) -> None:
        assert resolve_identifier(_listing(), _detail(), "https://x") == "176543W"

    def test_url_third(self) -> None:
        listing = _listing(native_id=None)
        assert merge(listing).id == listing.url

    def test_composite_last(self) -> None:
        listing = _listing(native_id=None, url=None, title="  Data  Engineer ", date_posted="2026-03-01")
        assert merge(listing).id == "data engineer|acme|2026-03-01"

    def test_composite_key_handles_missing_parts(self) -> None:
        assert composite_key("Dev", None, None) == "dev||"


class TestIdempotency:
    @pytest.mark.parametrize(
        "detail",
        [
            None,
            _detail(description_html="<ul><li>SQL</li><li>Python</li></ul>", salary="55 k€"),
            _detail(channel="html", experience_level="5 ans", secondary=True),
        ],
    )
    def test_merge_of_merged_is_stable(self, detail: DetailRecord | None) -> None:
        first = merge(_listing(), detail)
        as_listing = ListingRecord(
            native_id=first.id,
            **first.model_dump(exclude={"id"}),
        )
        assert merge(as_listing) == first

    def test_result_is_canonical(self) -> None:
        assert isinstance(merge(_listing()), CanonicalRecord)
