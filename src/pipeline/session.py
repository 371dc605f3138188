"""Mutable run-time state of one harvest, owned by the orchestrator."""

import logging
import time
from collections.abc import Callable
from datetime import datetime

from src.core.schemas import Channel, HarvestSummary

logger = logging.getLogger(__name__)


class HarvestSession:
    """Counters, time budget and the desired-count gate.

    Slots toward the desired count are reserved when work is submitted and
    committed when a record is emitted, so ``saved + reserved`` never
    exceeds ``desired_count``. Each method is a single synchronous step.
    """

    def __init__(
        self,
        desired_count: int,
        time_budget_s: float | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.desired_count = desired_count
        self.time_budget_s = time_budget_s
        self._clock = clock
        self._start = clock()
        self.started_at = datetime.now()

        self._saved = 0
        self._reserved = 0
        self.pages_processed = 0
        self.errors = 0
        self.remote_calls = 0
        self.fallback_used = False
        self.residual_pass = False
        self.upstream_failed = False
        self.channels: list[Channel] = []

    @property
    def saved(self) -> int:
        return self._saved

    @property
    def reserved(self) -> int:
        return self._reserved

    @property
    def elapsed_s(self) -> float:
        return self._clock() - self._start

    def budget_exceeded(self) -> bool:
        return self.time_budget_s is not None and self.elapsed_s >= self.time_budget_s

    def is_full(self) -> bool:
        return self._saved + self._reserved >= self.desired_count

    def remaining(self) -> int:
        return max(0, self.desired_count - self._saved - self._reserved)

    def reserve(self) -> None:
        if self.is_full():
            msg = f"desired count {self.desired_count} already reserved"
            raise RuntimeError(msg)
        self._reserved += 1

    def commit(self) -> None:
        """Turn one reservation into a saved record."""
        if self._reserved < 1:
            msg = "commit without a reservation"
            raise RuntimeError(msg)
        self._reserved -= 1
        self._saved += 1
        logger.debug("Saved %d/%d", self._saved, self.desired_count)

    def release(self) -> None:
        """Give back a reservation whose item was dropped."""
        if self._reserved < 1:
            msg = "release without a reservation"
            raise RuntimeError(msg)
        self._reserved -= 1

    def record_page(self) -> None:
        self.pages_processed += 1

    def record_error(self) -> None:
        self.errors += 1

    def summary(self) -> HarvestSummary:
        return HarvestSummary(
            pages_processed=self.pages_processed,
            records_saved=self._saved,
            remote_calls=self.remote_calls,
            errors=self.errors,
            elapsed_s=round(self.elapsed_s, 3),
            fallback_used=self.fallback_used,
            residual_pass=self.residual_pass,
            upstream_failed=self.upstream_failed,
            channels=list(self.channels),
            started_at=self.started_at,
            finished_at=datetime.now(),
        )
