"""Listing search endpoint."""

from src.models.search import ListingFilters, ListingsResult, SortOption
from src.services.query_builder import clamp_pagination
from src.services.site_config import ALWAYS_EXCLUDED_PROPERTY_TYPES, apply_site_config
from src.utils.errors import ListingsEngineError
from api._common import (
    error_response,
    get_engine,
    get_list_param,
    get_number_param,
    get_param,
    json_response,
    logger,
    query_params,
    run,
)

# Statuses the public search shows
ALLOWED_STATUSES = [
    "Active",
    "Active Under Contract",
    "Active U/C W/ Bump",
    "Pending",
    "Pending Inspect/Feasib",
    "To Be Built",
]


def parse_filters(params: dict) -> ListingFilters:
    return ListingFilters(
        status=get_param(params, "status"),
        property_type=get_param(params, "propertyType"),
        property_sub_type=get_param(params, "propertySubType"),
        city=get_param(params, "city"),
        cities=get_list_param(params, "cities"),
        neighborhood=get_param(params, "neighborhood"),
        min_price=get_number_param(params, "minPrice"),
        max_price=get_number_param(params, "maxPrice"),
        min_beds=get_number_param(params, "minBeds", int),
        max_beds=get_number_param(params, "maxBeds", int),
        min_baths=get_number_param(params, "minBaths"),
        max_baths=get_number_param(params, "maxBaths"),
        min_sqft=get_number_param(params, "minSqft"),
        max_sqft=get_number_param(params, "maxSqft"),
        keyword=get_param(params, "keyword"),
    )


async def search_listings(params: dict) -> dict:
    engine = get_engine()
    filters = parse_filters(params)
    page = get_number_param(params, "page", int) or 1
    page_size = get_number_param(params, "pageSize", int)

    if get_param(params, "ourTeam") == "true":
        try:
            agent_ids, names = await engine.directory.team_agent_filter()
        except ListingsEngineError as e:
            logger.warning("Team directory unavailable for Our Listings search", error=str(e))
            page, page_size = clamp_pagination(
                page, page_size, engine.settings.default_page_size, engine.settings.max_page_size
            )
            return ListingsResult.empty(page, page_size).model_dump(mode="json")
        filters = filters.model_copy(update={
            "agent_mls_ids": agent_ids or None,
            "agent_names": names or None,
        })

    if not filters.status:
        filters = filters.model_copy(update={"allowed_statuses": ALLOWED_STATUSES})

    config = await engine.site_config.get()
    filters = apply_site_config(filters, config, ALWAYS_EXCLUDED_PROPERTY_TYPES)

    result = await engine.search(
        filters,
        SortOption.parse(get_param(params, "sort")),
        page,
        page_size,
    )
    return result.model_dump(mode="json")


def handler(request):
    """Filtered, sorted, paginated listing search."""
    try:
        return json_response(200, run(search_listings(query_params(request))))
    except Exception as e:
        logger.error("Listing search endpoint failed", error=str(e), exc_info=True)
        return error_response(500, "Failed to search listings")
