"""Upcoming open houses endpoint."""

from api._common import error_response, get_engine, json_response, logger, run


def handler(request):
    try:
        listings = run(get_engine().get_upcoming_open_houses())
    except Exception as e:
        logger.error("Open houses endpoint failed", error=str(e), exc_info=True)
        return error_response(500, "Failed to fetch open houses")

    return json_response(200, {
        "openHouses": [listing.model_dump(mode="json") for listing in listings],
    })
