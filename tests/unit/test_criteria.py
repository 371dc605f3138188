"""Tests for building SearchCriteria from config and start URLs."""

from unittest.mock import AsyncMock

from src.core.config import HarvestConfig
from src.pipeline.criteria import build_criteria, derive_inputs

START = "https://www.apec.fr/candidat/recherche-emploi.html/emploi"


class TestDeriveInputs:
    def test_config_only(self) -> None:
        inputs = derive_inputs(HarvestConfig(keyword="python", location="Lyon", contract_types="101888"))
        assert inputs.keyword == "python"
        assert inputs.location == "Lyon"
        assert inputs.contract_types == ["101888"]
        assert inputs.explicit_place_ids == []

    def test_start_url_fills_gaps(self) -> None:
        config = HarvestConfig(start_urls=[f"{START}?motsCles=java&lieux=75,92&teletravail=20765"])
        inputs = derive_inputs(config)
        assert inputs.keyword == "java"
        assert inputs.explicit_place_ids == ["75", "92"]
        assert inputs.remote_work == ["20765"]

    def test_config_keyword_wins_over_url(self) -> None:
        config = HarvestConfig(keyword="python", start_urls=[f"{START}?motsCles=java"])
        assert derive_inputs(config).keyword == "python"

    def test_text_place_in_url_becomes_location(self) -> None:
        config = HarvestConfig(start_urls=[f"{START}?location=Bordeaux"])
        inputs = derive_inputs(config)
        assert inputs.location == "Bordeaux"
        assert inputs.explicit_place_ids == []


class TestBuildCriteria:
    async def test_resolver_consulted(self) -> None:
        resolver = AsyncMock()
        resolver.resolve = AsyncMock(return_value=("711",))
        config = HarvestConfig(keyword="python", location="Lyon", results_wanted=30, max_pages=2)

        criteria = await build_criteria(config, resolver)

        resolver.resolve.assert_awaited_once_with("Lyon", "", [])
        assert criteria.place_ids == ("711",)
        assert criteria.desired_count == 30
        assert criteria.max_pages == 2
        assert criteria.page_size == 20

    async def test_dry_run_uses_numeric_department(self) -> None:
        criteria = await build_criteria(HarvestConfig(location="Lyon", department="69"))
        assert criteria.place_ids == ("69",)

    async def test_dry_run_explicit_ids(self) -> None:
        config = HarvestConfig(start_urls=[f"{START}?lieux=75"], department="69")
        criteria = await build_criteria(config)
        assert criteria.place_ids == ("75",)

    async def test_dry_run_unresolvable_text(self) -> None:
        criteria = await build_criteria(HarvestConfig(location="Lyon"))
        assert criteria.place_ids == ()

    async def test_collect_details_and_budget_passed(self) -> None:
        criteria = await build_criteria(HarvestConfig(collect_details=False, time_budget_s=60))
        assert criteria.collect_details is False
        assert criteria.time_budget_s == 60
