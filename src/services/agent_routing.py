"""Agent routing resolver - decide who receives a lead for a listing."""

from typing import Optional

from src.models.agent_routing import AgentRouting
from src.services.directory import TeamDirectory
from src.services.listing_store import PrimaryListingStore
from src.utils.logging import get_structured_logger, mask_email

logger = get_structured_logger(__name__)


async def resolve_lead_routing(
    store: PrimaryListingStore,
    directory: TeamDirectory,
    fallback_email: str,
    external_listing_number: Optional[str] = None,
) -> AgentRouting:
    """
    Route a lead to the team member listing the property.

    Looks up the listing and co-listing agent IDs, matches them against active
    team members and prefers the one holding the listing-agent ID. A matched
    member without an email still marks the listing as our own but sends the
    lead to the fallback address. Every failure path returns the plain
    fallback routing.
    """
    fallback = AgentRouting.fallback(fallback_email)
    number = (external_listing_number or "").strip()
    if not number:
        return fallback

    try:
        agents = await store.fetch_listing_agents(number)
        if not agents:
            logger.info("Lead routing: listing not found", mls_number=number)
            return fallback

        list_agent_id = agents.get("list_agent_mls_id") or None
        candidates = [
            agent_id for agent_id in (list_agent_id, agents.get("co_list_agent_mls_id"))
            if agent_id
        ]
        if not candidates:
            return fallback

        members = await directory.find_by_agent_ids(candidates)
        if not members:
            logger.info("Lead routing: no team member for listing agents", mls_number=number)
            return fallback

        chosen = next((member for member in members if member.matches(list_agent_id)), members[0])
        routing = AgentRouting(
            agent_email=chosen.email or fallback_email,
            agent_name=chosen.name,
            is_own_listing=True,
        )
        logger.info(
            "Lead routed to team member",
            mls_number=number,
            agent_email=mask_email(routing.agent_email),
            used_fallback_email=not chosen.email,
        )
        return routing

    except Exception as e:
        logger.error("Lead routing failed", mls_number=number, error=str(e))
        return fallback
