"""Core data models for the APEC harvester."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

Channel = Literal["api", "html"]


class SearchCriteria(BaseModel):
    """Immutable input to one harvest session."""

    model_config = ConfigDict(frozen=True)

    keyword: str = ""
    place_ids: tuple[str, ...] = ()
    contract_types: tuple[str, ...] = ()
    remote_work: tuple[str, ...] = ()
    desired_count: int = Field(default=100, ge=1)
    page_size: int = Field(default=20, ge=1)
    max_pages: int = Field(default=5, ge=1)
    collect_details: bool = True
    time_budget_s: float | None = Field(default=None, gt=0)


class ListingRecord(BaseModel):
    """Partial record taken from one item of a search-results page."""

    model_config = ConfigDict(frozen=True)

    channel: Channel
    native_id: str | None = None
    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | None = None
    job_type: str | None = None
    date_posted: str | None = None
    url: str | None = None
    description_html: str | None = None
    description_text: str | None = None
    experience_level: str | None = None
    remote_work: str | None = None
    apply_url: str | None = None
    fetched_at: datetime = Field(default_factory=datetime.now)


class DetailRecord(BaseModel):
    """Partial record from a single-item lookup, used to enrich a listing.

    ``secondary`` marks a detail fetched through the other channel than the
    listing's; the listing's own fields win over a secondary detail.
    """

    model_config = ConfigDict(frozen=True)

    channel: Channel
    native_id: str | None = None
    url: str | None = None
    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | None = None
    job_type: str | None = None
    date_posted: str | None = None
    description_html: str | None = None
    description_text: str | None = None
    experience_level: str | None = None
    remote_work: str | None = None
    apply_url: str | None = None
    secondary: bool = False
    fetched_at: datetime = Field(default_factory=datetime.now)


class CanonicalRecord(BaseModel):
    """The merged, deduplicated unit written to the output sink."""

    model_config = ConfigDict(frozen=True)

    id: str
    channel: Channel
    title: str | None = None
    company: str | None = None
    location: str | None = None
    salary: str | None = None
    job_type: str | None = None
    date_posted: str | None = None
    url: str | None = None
    description_html: str | None = None
    description_text: str | None = None
    experience_level: str | None = None
    remote_work: str | None = None
    apply_url: str | None = None
    fetched_at: datetime

    @model_validator(mode="after")
    def id_not_blank(self) -> "CanonicalRecord":
        if not self.id.strip():
            msg = "record id must not be blank"
            raise ValueError(msg)
        return self


class PageResult(BaseModel):
    """One page of listings.

    ``total_available`` is None when unknown (HTML). ``total_declared`` is
    False when the API sent no total and the item count stands in for it.
    """

    items: list[ListingRecord] = Field(default_factory=list)
    total_available: int | None = None
    total_declared: bool = False


class HarvestSummary(BaseModel):
    """Final counts reported when a session reaches Done."""

    pages_processed: int = 0
    records_saved: int = 0
    remote_calls: int = 0
    errors: int = 0
    elapsed_s: float = 0.0
    fallback_used: bool = False
    residual_pass: bool = False
    upstream_failed: bool = False
    channels: list[Channel] = Field(default_factory=list)
    started_at: datetime
    finished_at: datetime
