"""Filter option endpoint - facet values for the search form."""

import asyncio

from api._common import (
    error_response,
    get_engine,
    get_param,
    json_response,
    logger,
    query_params,
    run,
)


async def load_options(city=None) -> dict:
    engine = get_engine()
    config = await engine.site_config.get()
    allowed_cities = config.get_allowed_cities()

    cities, statuses, neighborhoods, property_types, property_sub_types = await asyncio.gather(
        engine.get_distinct_cities(),
        engine.get_distinct_statuses(),
        engine.get_distinct_neighborhoods(city),
        engine.get_property_types(),
        engine.get_property_sub_types(),
    )
    return {
        # A configured allow-list replaces the scanned city list
        "cities": sorted(allowed_cities) if allowed_cities else cities,
        "statuses": statuses,
        "neighborhoods": neighborhoods,
        "propertyTypes": property_types,
        "propertySubTypes": property_sub_types,
    }


def handler(request):
    try:
        city = get_param(query_params(request), "city")
        return json_response(200, run(load_options(city)))
    except Exception as e:
        logger.error("Listing options endpoint failed", error=str(e), exc_info=True)
        return error_response(500, "Failed to load listing options")
