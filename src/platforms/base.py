"""Channel contract shared by the API and HTML variants."""

from abc import ABC, abstractmethod
from typing import Protocol, runtime_checkable

from src.core.schemas import Channel, DetailRecord, ListingRecord, PageResult, SearchCriteria


@runtime_checkable
class PageRenderer(Protocol):
    """Opaque collaborator that returns JavaScript-rendered markup for a URL."""

    async def render(self, url: str) -> str: ...


class ChannelStrategy(ABC):
    """One way of obtaining listings and details from the source.

    Both methods raise ChannelError when the retry boundary gives up.
    """

    @property
    @abstractmethod
    def channel_id(self) -> Channel:
        """Tag written on every record this channel produces."""

    @abstractmethod
    async def fetch_page(self, page_index: int, criteria: SearchCriteria) -> PageResult:
        """Fetch one page of listings (zero-based ``page_index``)."""

    @abstractmethod
    async def fetch_detail(self, listing: ListingRecord) -> DetailRecord | None:
        """Fetch the detail record for a listing.

        Returns None when this channel cannot provide detail for the listing
        (no usable key, or nothing beyond what the listing holds). A failed
        or gone resource raises ChannelError instead.
        """
