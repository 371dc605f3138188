"""Tests for the deduplicator and intake identities."""

import asyncio

from src.core.schemas import ListingRecord
from src.pipeline.dedup import Deduplicator, intake_identity


class TestDeduplicator:
    def test_first_occurrence_only(self) -> None:
        dedup = Deduplicator()
        assert dedup.should_process("a") is True
        assert dedup.should_process("a") is False
        assert dedup.should_process("b") is True
        assert len(dedup) == 2
        assert "a" in dedup

    async def test_concurrent_callers_single_winner(self) -> None:
        dedup = Deduplicator()
        winners: list[int] = []

        async def claim(n: int) -> None:
            await asyncio.sleep(0)
            if dedup.should_process("same-offer"):
                winners.append(n)

        await asyncio.gather(*(claim(n) for n in range(20)))
        assert len(winners) == 1


class TestIntakeIdentity:
    def test_url_preferred(self) -> None:
        listing = ListingRecord(channel="html", native_id="1A", url="https://www.apec.fr/x/detail-offre/1A")
        assert intake_identity(listing) == "https://www.apec.fr/x/detail-offre/1A"

    def test_native_id_next(self) -> None:
        assert intake_identity(ListingRecord(channel="api", native_id="1A")) == "id:1A"

    def test_composite_last(self) -> None:
        listing = ListingRecord(channel="html", title="Dev", company="Acme", date_posted="2026-03-01")
        assert intake_identity(listing) == "dev|acme|2026-03-01"
