"""Search request and result models."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from src.models.listing import Listing


class SortOption(str, Enum):
    """Result orderings; every ordering puts nulls last."""
    NEWEST = "newest"
    PRICE_LOW = "price_low"
    PRICE_HIGH = "price_high"
    BEDS_LOW = "beds_low"
    BEDS_HIGH = "beds_high"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOption":
        """Parse a sort key, defaulting to NEWEST for unknown values."""
        try:
            return cls(value) if value else cls.NEWEST
        except ValueError:
            return cls.NEWEST


class ListingFilters(BaseModel):
    """Structured search filters; every field is independently optional."""
    status: Optional[str] = None
    property_type: Optional[str] = None
    property_sub_type: Optional[str] = None
    city: Optional[str] = Field(None, description="Case-insensitive partial match")
    cities: Optional[list[str]] = Field(None, description="Exact multi-select")
    neighborhood: Optional[str] = Field(None, description="Partial match on subdivision or minor area")
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_beds: Optional[int] = None
    max_beds: Optional[int] = None
    min_baths: Optional[float] = None
    max_baths: Optional[float] = None
    min_sqft: Optional[float] = None
    max_sqft: Optional[float] = None
    keyword: Optional[str] = Field(None, description="Partial match on MLS number or address")
    agent_mls_ids: Optional[list[str]] = Field(None, description="Our Listings: agent IDs in any role")
    agent_names: Optional[list[str]] = Field(None, description="Our Listings: agent name fallback")
    excluded_property_types: Optional[list[str]] = None
    excluded_property_sub_types: Optional[list[str]] = None
    allowed_cities: Optional[list[str]] = None
    allowed_statuses: Optional[list[str]] = None
    excluded_statuses: Optional[list[str]] = None


class ListingsResult(BaseModel):
    """One page of search results."""
    listings: list[Listing] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 24
    total_pages: int = 0

    @classmethod
    def empty(cls, page: int, page_size: int) -> "ListingsResult":
        return cls(listings=[], total=0, page=page, page_size=page_size, total_pages=0)


class AgentPortfolio(BaseModel):
    """An agent's active and sold listings across both sources."""
    active: list[Listing] = Field(default_factory=list)
    sold: list[Listing] = Field(default_factory=list)
