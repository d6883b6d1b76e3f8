"""Lead routing endpoint - who should receive a lead for a listing."""

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
    number = get_param(query_params(request), "mlsId")
    try:
        routing = run(get_engine().resolve_lead_routing(number))
    except Exception as e:
        logger.error("Lead routing endpoint failed", error=str(e), exc_info=True)
        return error_response(500, "Failed to resolve lead routing")
    return json_response(200, routing.model_dump(mode="json"))
