"""Agent portfolio endpoint."""

from api._common import (
    error_response,
    get_engine,
    get_number_param,
    get_param,
    json_response,
    logger,
    query_params,
    run,
)


def handler(request):
    """
    Active and/or sold listings for one agent.

    Query params: agentId (required), soldAgentId, agentName,
    status=active|sold|all (default active), limit (default 20).
    """
    params = query_params(request)
    agent_id = get_param(params, "agentId")
    if not agent_id:
        return error_response(400, "agentId is required")

    status = get_param(params, "status") or "active"
    limit = get_number_param(params, "limit", int) or 20

    try:
        portfolio = run(get_engine().get_agent_portfolio(
            agent_id,
            sold_agent_id_override=get_param(params, "soldAgentId"),
            agent_display_name=get_param(params, "agentName"),
        ))
    except Exception as e:
        logger.error("Agent listings endpoint failed", agent_id=agent_id, error=str(e), exc_info=True)
        return error_response(500, "Failed to fetch listings")

    if status == "sold":
        listings = portfolio.sold[:limit]
    elif status == "all":
        listings = (portfolio.active + portfolio.sold)[:limit]
    else:
        listings = portfolio.active[:limit]

    return json_response(200, {
        "listings": [listing.model_dump(mode="json") for listing in listings],
    })
