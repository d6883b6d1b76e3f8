"""Single listing endpoint - look up by MLS number, then by id."""

from api._common import (
    error_response,
    get_engine,
    get_param,
    json_response,
    logger,
    query_params,
    run,
)


def handler(request):
    params = query_params(request)
    listing_key = get_param(params, "id") or get_param(params, "mlsId")
    if not listing_key:
        return error_response(400, "id is required")

    try:
        listing = run(get_engine().get_by_number_or_id(listing_key))
    except Exception as e:
        logger.error("Listing detail endpoint failed", listing_key=listing_key, error=str(e), exc_info=True)
        return error_response(500, "Failed to fetch listing")

    if listing is None:
        return error_response(404, "Listing not found")
    return json_response(200, listing.model_dump(mode="json"))
