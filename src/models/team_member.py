"""Team member model - directory record used to resolve agent IDs to people."""

from typing import Optional
from pydantic import BaseModel, Field


class TeamMember(BaseModel):
    """Directory entry for one agent on the team."""
    name: str = Field(..., description="Full name")
    email: Optional[str] = Field(None, description="Contact email")
    mls_agent_id: Optional[str] = Field(None, description="MLS agent ID")
    mls_agent_id_sold: Optional[str] = Field(None, description="MLS agent ID used on sold listings")
    inactive: bool = Field(default=False, description="Inactive members never receive leads")

    @property
    def agent_ids(self) -> list[str]:
        return [agent_id for agent_id in (self.mls_agent_id, self.mls_agent_id_sold) if agent_id]

    def matches(self, agent_id: Optional[str]) -> bool:
        """True when either ID alias equals the given agent ID."""
        return bool(agent_id) and agent_id in self.agent_ids
