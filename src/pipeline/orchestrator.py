"""Orchestrator: drives pagination, channel fallback and detail enrichment.

Data flow:
  1. API pass (when an API channel is configured)
  2. HTML pass on first-page failure, or a residual HTML pass when the API
     pass stopped short of the desired count
  3. Per page: intake dedup -> reserve a slot -> detail task via limiter
  4. Per record: merge -> emission dedup -> sink write -> commit
"""

import asyncio
import functools
import logging
import time
from collections.abc import Callable
from enum import Enum

from src.core.db import RecordSink
from src.core.errors import ChannelError
from src.core.schemas import CanonicalRecord, HarvestSummary, ListingRecord, PageResult, SearchCriteria
from src.net.limiter import ConcurrencyLimiter
from src.pipeline.dedup import Deduplicator, intake_identity
from src.pipeline.normalizer import merge
from src.pipeline.session import HarvestSession
from src.platforms.apec.searcher import is_source_exhausted
from src.platforms.base import ChannelStrategy

logger = logging.getLogger(__name__)


class PassOutcome(Enum):
    """How a single channel pass ended."""

    FIRST_PAGE_FAILED = "first_page_failed"
    EXHAUSTED = "exhausted"
    STOPPED = "stopped"
    LIMIT_REACHED = "limit_reached"


class HarvestOrchestrator:
    """Runs one harvest session over an API channel and an HTML channel.

    Pages are fetched strictly one after another; detail fetches inside a
    page run concurrently through the limiter.
    """

    def __init__(
        self,
        html: ChannelStrategy,
        sink: RecordSink,
        *,
        api: ChannelStrategy | None = None,
        max_concurrency: int = 8,
        call_counter: Callable[[], int] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._html = html
        self._api = api
        self._sink = sink
        self._max_concurrency = max_concurrency
        self._call_counter = call_counter
        self._clock = clock

    async def run(self, criteria: SearchCriteria) -> HarvestSummary:
        session = HarvestSession(criteria.desired_count, criteria.time_budget_s, clock=self._clock)
        state = _RunState(criteria, session, ConcurrencyLimiter(self._max_concurrency))
        calls_before = self._call_counter() if self._call_counter else 0

        if self._api is None:
            outcome = await self._run_pass(self._html, state)
        else:
            outcome = await self._run_pass(self._api, state)
            if outcome is PassOutcome.FIRST_PAGE_FAILED:
                logger.warning("API channel failed on the first page, switching to HTML")
                session.fallback_used = True
                outcome = await self._run_pass(self._html, state)
            elif outcome is PassOutcome.STOPPED and self._has_room(session):
                logger.info(
                    "API pass stopped at %d/%d records, running residual HTML pass for %d more",
                    session.saved, criteria.desired_count, session.remaining(),
                )
                session.fallback_used = True
                session.residual_pass = True
                outcome = await self._run_pass(self._html, state)

        session.upstream_failed = outcome is PassOutcome.FIRST_PAGE_FAILED and session.saved == 0
        if self._call_counter:
            session.remote_calls = self._call_counter() - calls_before

        summary = session.summary()
        logger.info(
            "Harvest done: %d saved, %d pages, %d calls, %d errors in %.1fs",
            summary.records_saved, summary.pages_processed, summary.remote_calls,
            summary.errors, summary.elapsed_s,
        )
        return summary

    @staticmethod
    def _has_room(session: HarvestSession) -> bool:
        return not session.is_full() and not session.budget_exceeded()

    async def _run_pass(self, channel: ChannelStrategy, state: "_RunState") -> PassOutcome:
        criteria, session = state.criteria, state.session
        session.channels.append(channel.channel_id)
        logger.info("Starting %s pass", channel.channel_id)

        previous_ids: list[str] | None = None
        for page_index in range(criteria.max_pages):
            if session.budget_exceeded():
                logger.info("Time budget exhausted before page %d", page_index)
                return PassOutcome.LIMIT_REACHED
            if session.is_full():
                return PassOutcome.LIMIT_REACHED

            try:
                page = await channel.fetch_page(page_index, criteria)
            except ChannelError as e:
                session.record_error()
                logger.warning("%s", e)
                if page_index == 0:
                    return PassOutcome.FIRST_PAGE_FAILED
                return PassOutcome.STOPPED

            session.record_page()
            if not page.items:
                logger.info("%s page %d is empty", channel.channel_id, page_index)
                return PassOutcome.STOPPED

            # Out-of-range HTML pages serve the last page again.
            page_ids = [intake_identity(item) for item in page.items]
            if page_ids == previous_ids:
                logger.info("%s page %d repeats the previous page", channel.channel_id, page_index)
                return PassOutcome.STOPPED
            previous_ids = page_ids

            new_count = await self._process_page(channel, page, state)
            logger.info(
                "%s page %d: %d items, %d new, %d/%d saved",
                channel.channel_id, page_index, len(page.items), new_count,
                session.saved, criteria.desired_count,
            )

            if page.total_available is not None and is_source_exhausted(
                page_index,
                len(page.items),
                criteria.page_size,
                page.total_available if page.total_declared else None,
            ):
                return PassOutcome.EXHAUSTED

        if session.is_full():
            return PassOutcome.LIMIT_REACHED
        return PassOutcome.STOPPED

    async def _process_page(
        self,
        channel: ChannelStrategy,
        page: PageResult,
        state: "_RunState",
    ) -> int:
        """Enqueue the page's new listings; returns how many were new."""
        session = state.session
        new_count = 0
        tasks: list[asyncio.Task[None]] = []

        for listing in page.items:
            if session.budget_exceeded():
                logger.info("Time budget exhausted mid-page, not enqueuing more")
                break
            if session.is_full():
                break
            if not state.intake.should_process(intake_identity(listing)):
                continue
            new_count += 1
            session.reserve()
            if state.criteria.collect_details:
                job = functools.partial(self._enrich, channel, listing, state)
                tasks.append(asyncio.create_task(state.limiter.run(job)))
            else:
                self._emit(merge(listing), state)

        if tasks:
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException):
                    raise result
        return new_count

    async def _enrich(self, channel: ChannelStrategy, listing: ListingRecord, state: "_RunState") -> None:
        detail = None
        try:
            detail = await channel.fetch_detail(listing)
            if detail is None and channel is not self._html:
                secondary = await self._html.fetch_detail(listing)
                if secondary is not None:
                    detail = secondary.model_copy(update={"secondary": True})
        except ChannelError as e:
            state.session.record_error()
            logger.warning("Detail unavailable, keeping listing data: %s", e)
        self._emit(merge(listing, detail), state)

    def _emit(self, record: CanonicalRecord, state: "_RunState") -> None:
        session = state.session
        if not state.emitted.should_process(record.id):
            session.release()
            return
        try:
            self._sink.write(record)
        except Exception:
            session.release()
            raise
        session.commit()


class _RunState:
    """Per-run collaborators shared by the passes of one session."""

    def __init__(self, criteria: SearchCriteria, session: HarvestSession, limiter: ConcurrencyLimiter) -> None:
        self.criteria = criteria
        self.session = session
        self.limiter = limiter
        self.intake = Deduplicator()
        self.emitted = Deduplicator()
