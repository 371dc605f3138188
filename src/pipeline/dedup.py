"""In-run deduplication of record identities.

check-and-insert happens in one synchronous step with no await inside, so
on the event loop the first caller always wins, whatever order the
concurrent detail tasks finish in.
"""

import logging

from src.core.schemas import ListingRecord
from src.pipeline.normalizer import composite_key

logger = logging.getLogger(__name__)


class Deduplicator:
    """Remembers identities already enqueued or emitted.

    Stateful: one instance per harvest session.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def should_process(self, identity: str) -> bool:
        """True only on the first occurrence of ``identity``."""
        if identity in self._seen:
            logger.debug("Duplicate identity skipped: %s", identity)
            return False
        self._seen.add(identity)
        return True

    def __contains__(self, identity: object) -> bool:
        return identity in self._seen

    def __len__(self) -> int:
        return len(self._seen)


def intake_identity(listing: ListingRecord) -> str:
    """Best identity before any detail fetch: URL, then native id, then composite."""
    if listing.url:
        return listing.url
    if listing.native_id:
        return f"id:{listing.native_id}"
    return composite_key(listing.title, listing.company, listing.date_posted)
