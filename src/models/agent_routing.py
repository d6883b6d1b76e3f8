"""Lead routing result."""

from pydantic import BaseModel, Field


class AgentRouting(BaseModel):
    """Who receives a lead, computed per submission."""
    agent_email: str = Field(default="", description="Recipient email, fallback address when unknown")
    agent_name: str = Field(default="", description="Matched agent name, empty when unmatched")
    is_own_listing: bool = Field(default=False, description="Listing belongs to a team member")

    @classmethod
    def fallback(cls, fallback_email: str) -> "AgentRouting":
        return cls(agent_email=fallback_email, agent_name="", is_own_listing=False)
