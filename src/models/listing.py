"""Listing models."""

from typing import Literal, Optional
from datetime import date
from pydantic import BaseModel, Field


class MediaBundle(BaseModel):
    """Photos, videos and virtual tour extracted from a raw media field."""
    photos: list[str] = Field(default_factory=list, description="Ordered, unique, absolute photo URLs")
    video_urls: list[str] = Field(default_factory=list, description="Video URLs")
    virtual_tour_url: Optional[str] = Field(None, description="3D / virtual tour URL")

    @property
    def is_empty(self) -> bool:
        return not self.photos and not self.video_urls and self.virtual_tour_url is None


class Listing(BaseModel):
    """Canonical property listing assembled from the primary and secondary sources."""
    id: str = Field(..., description="Primary-source internal key")
    mls_number: str = Field(default="", description="External MLS listing number, empty when unrecoverable")
    source: Literal["primary", "secondary"] = Field(default="primary", description="Where the record came from")

    status: Optional[str] = Field(None, description="Free-text status: Active, Pending, Closed...")
    listing_date: Optional[date] = None
    close_date: Optional[date] = None
    days_on_market: Optional[int] = Field(None, ge=0, description="None only when listing_date is unknown")

    list_price: Optional[float] = None
    sold_price: Optional[float] = None

    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    neighborhood: Optional[str] = Field(None, description="Subdivision, else minor MLS area")
    subdivision_name: Optional[str] = None
    mls_area_minor: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    bedrooms: Optional[int] = None
    bathrooms_total: Optional[float] = None
    bathrooms_full: Optional[int] = None
    bathrooms_half: Optional[int] = None
    bathrooms_three_quarter: Optional[int] = None
    square_feet: Optional[float] = None
    lot_size_acres: Optional[float] = None
    year_built: Optional[int] = None
    property_type: Optional[str] = Field(None, description="Sub-type when known, else coarse type")

    description: Optional[str] = None

    photos: list[str] = Field(default_factory=list)
    video_urls: list[str] = Field(default_factory=list)
    virtual_tour_url: Optional[str] = None

    list_agent_mls_id: Optional[str] = None
    co_list_agent_mls_id: Optional[str] = None
    buyer_agent_mls_id: Optional[str] = None
    co_buyer_agent_mls_id: Optional[str] = None
    list_office_name: Optional[str] = None

    furnished: Optional[str] = None
    fireplace_yn: Optional[bool] = None
    fireplace_total: Optional[int] = None
    fireplace_features: Optional[list[str]] = None
    cooling: Optional[list[str]] = None
    heating: Optional[list[str]] = None
    laundry_features: Optional[list[str]] = None
    attached_garage_yn: Optional[bool] = None
    parking_features: Optional[list[str]] = None
    association_amenities: Optional[list[str]] = None

    open_house_date: Optional[date] = None
    open_house_start_time: Optional[str] = None
    open_house_end_time: Optional[str] = None
    open_house_remarks: Optional[str] = None

    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    def with_media(self, media: MediaBundle) -> "Listing":
        """Return a copy with non-empty secondary media laid over this listing's media."""
        updates = {}
        if media.photos:
            updates["photos"] = list(media.photos)
        if media.video_urls:
            updates["video_urls"] = list(media.video_urls)
        if media.virtual_tour_url is not None:
            updates["virtual_tour_url"] = media.virtual_tour_url
        if not updates:
            return self
        return self.model_copy(update=updates)
