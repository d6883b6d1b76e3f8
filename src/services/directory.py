"""Team directory - agent IDs to team members, cached for a short TTL."""

import time
from typing import Callable, Optional, Sequence
from supabase import Client

from src.models.team_member import TeamMember
from src.services.supabase_client import PRIMARY, SupabaseClient, execute_query, rows_of
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

TEAM_MEMBERS_TABLE = "team_members"


class TeamDirectory:
    """Reads the team roster and keeps it in memory for ``ttl_seconds``."""

    def __init__(
        self,
        client: Optional[Client],
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._members: Optional[list[TeamMember]] = None
        self._loaded_at = 0.0

    def _fresh(self) -> bool:
        return self._members is not None and self._clock() - self._loaded_at < self.ttl_seconds

    async def _load(self) -> list[TeamMember]:
        async with SupabaseClient(self.client, PRIMARY) as client:
            query = client.table(TEAM_MEMBERS_TABLE).select(
                "name, email, mls_agent_id, mls_agent_id_sold, inactive"
            )
            rows = rows_of(await execute_query(query, PRIMARY, "load_team_members"))

        members = []
        for row in rows:
            if not row.get("name"):
                continue
            members.append(TeamMember(
                name=row["name"],
                email=row.get("email") or None,
                mls_agent_id=row.get("mls_agent_id") or None,
                mls_agent_id_sold=row.get("mls_agent_id_sold") or None,
                inactive=bool(row.get("inactive")),
            ))
        return members

    async def members(self) -> list[TeamMember]:
        """All members, served from cache while fresh. Load errors propagate."""
        if not self._fresh():
            self._members = await self._load()
            self._loaded_at = self._clock()
            logger.debug("Team directory loaded", member_count=len(self._members))
        return self._members

    async def list_active(self) -> list[TeamMember]:
        return [member for member in await self.members() if not member.inactive]

    async def find_by_agent_ids(self, agent_ids: Sequence[str]) -> list[TeamMember]:
        """Active members whose MLS ID or sold-listing ID is among ``agent_ids``."""
        wanted = {agent_id for agent_id in agent_ids if agent_id}
        if not wanted:
            return []
        return [
            member for member in await self.list_active()
            if wanted.intersection(member.agent_ids)
        ]

    async def team_agent_filter(self) -> tuple[list[str], list[str]]:
        """``(agent_mls_ids, agent_names)`` covering every active member."""
        agent_ids: list[str] = []
        names: list[str] = []
        for member in await self.list_active():
            for agent_id in member.agent_ids:
                if agent_id not in agent_ids:
                    agent_ids.append(agent_id)
            if member.name not in names:
                names.append(member.name)
        return agent_ids, names
