"""Tests for the location resolver."""

import httpx

from src.net.retry import RetryPolicy
from src.platforms.apec.locations import LocationResolver, choose_candidate

NO_WAIT = RetryPolicy(max_attempts=2, base_delay_s=0.0, jitter_s=0.0)


def _autocomplete(body: object, calls: list[httpx.Request] | None = None):  # type: ignore[no-untyped-def]
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request)
        return httpx.Response(200, json=body)

    return handler


class TestChooseCandidate:
    def test_substring_match_preferred(self) -> None:
        candidates = [("69", "Rhône"), ("711", "Lyon 3e"), ("712", "Lyon")]
        assert choose_candidate("lyon", candidates) == "711"

    def test_falls_back_to_first(self) -> None:
        assert choose_candidate("Marseille", [("13", "Bouches-du-Rhône"), ("83", "Var")]) == "13"


class TestLocationResolver:
    async def test_explicit_ids_win_without_lookup(self, make_http) -> None:  # type: ignore[no-untyped-def]
        calls: list[httpx.Request] = []
        resolver = LocationResolver(make_http(_autocomplete([], calls)), NO_WAIT)
        ids = await resolver.resolve("Lyon", "69", explicit_ids=["75", "92", "75"])
        assert ids == ("75", "92")
        assert calls == []

    async def test_text_resolved_via_autocomplete(self, make_http) -> None:  # type: ignore[no-untyped-def]
        calls: list[httpx.Request] = []
        body = [{"id": 711, "libelle": "Lyon"}, {"id": 69, "libelle": "Rhône"}]
        resolver = LocationResolver(make_http(_autocomplete(body, calls)), NO_WAIT)
        assert await resolver.resolve("Lyon") == ("711",)
        assert calls[0].url.params["q"] == "Lyon"

    async def test_wrapped_candidates(self, make_http) -> None:  # type: ignore[no-untyped-def]
        body = {"lieux": [{"code": "33", "label": "Gironde"}]}
        resolver = LocationResolver(make_http(_autocomplete(body)), NO_WAIT)
        assert await resolver.resolve("Gironde") == ("33",)

    async def test_non_numeric_department_treated_as_text(self, make_http) -> None:  # type: ignore[no-untyped-def]
        body = [{"id": "13", "libelle": "Bouches-du-Rhône"}]
        resolver = LocationResolver(make_http(_autocomplete(body)), NO_WAIT)
        assert await resolver.resolve("", "Bouches-du-Rhône") == ("13",)

    async def test_numeric_department_when_lookup_empty(self, make_http) -> None:  # type: ignore[no-untyped-def]
        resolver = LocationResolver(make_http(_autocomplete([])), NO_WAIT)
        assert await resolver.resolve("Nowhere", "75") == ("75",)

    async def test_lookup_failure_means_no_filter(self, make_http) -> None:  # type: ignore[no-untyped-def]
        resolver = LocationResolver(make_http(lambda request: httpx.Response(500)), NO_WAIT)
        assert await resolver.resolve("Lyon") == ()

    async def test_nothing_given(self, make_http) -> None:  # type: ignore[no-untyped-def]
        calls: list[httpx.Request] = []
        resolver = LocationResolver(make_http(_autocomplete([], calls)), NO_WAIT)
        assert await resolver.resolve() == ()
        assert calls == []
