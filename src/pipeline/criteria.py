"""Assemble SearchCriteria from configuration and an optional start URL."""

import logging
from dataclasses import dataclass, field

from src.core.config import HarvestConfig
from src.core.schemas import SearchCriteria
from src.platforms.apec.locations import LocationResolver
from src.platforms.apec.searcher import parse_search_url

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchInputs:
    """Raw search inputs after merging config with the start URL."""

    keyword: str = ""
    location: str = ""
    department: str = ""
    explicit_place_ids: list[str] = field(default_factory=list)
    contract_types: list[str] = field(default_factory=list)
    remote_work: list[str] = field(default_factory=list)


def derive_inputs(config: HarvestConfig) -> SearchInputs:
    """Explicit config values win; the first start URL fills the gaps.

    Place ids embedded in the start URL are kept separately because they
    outrank any location lookup.
    """
    if not config.start_urls:
        return SearchInputs(
            keyword=config.keyword,
            location=config.location,
            department=config.department,
            contract_types=list(config.contract_types),
            remote_work=list(config.remote_work),
        )

    from_url = parse_search_url(config.start_urls[0])
    logger.debug("Start URL parameters: %s", from_url)
    location = config.location
    if not location and from_url.places and not from_url.place_ids:
        location = from_url.places
    return SearchInputs(
        keyword=config.keyword or from_url.keyword or "",
        location=location,
        department=config.department,
        explicit_place_ids=from_url.place_ids,
        contract_types=list(config.contract_types or from_url.contract_types),
        remote_work=list(config.remote_work or from_url.remote_work),
    )


async def build_criteria(
    config: HarvestConfig,
    resolver: LocationResolver | None = None,
) -> SearchCriteria:
    """Resolve locations and freeze the session input.

    Without a resolver (dry run) only explicit ids and numeric department
    codes are used.
    """
    inputs = derive_inputs(config)
    if resolver is not None:
        place_ids = await resolver.resolve(
            inputs.location, inputs.department, inputs.explicit_place_ids,
        )
    elif inputs.explicit_place_ids:
        place_ids = tuple(inputs.explicit_place_ids)
    elif inputs.department.isdigit():
        place_ids = (inputs.department,)
    else:
        place_ids = ()

    return SearchCriteria(
        keyword=inputs.keyword,
        place_ids=place_ids,
        contract_types=tuple(inputs.contract_types),
        remote_work=tuple(inputs.remote_work),
        desired_count=config.results_wanted,
        page_size=config.page_size,
        max_pages=config.max_pages,
        collect_details=config.collect_details,
        time_budget_s=config.time_budget_s,
    )
