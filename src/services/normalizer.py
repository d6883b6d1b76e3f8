"""Schema normalizer - map raw source rows to the canonical Listing."""

import json
import math
import re
from datetime import date, datetime, timezone
from typing import Any, Optional, Pattern, Sequence

from src.models.listing import Listing
from src.services.media_extractor import extract_media, normalize_media_url, parse_json_list

MLS_MARKER_PATTERN = re.compile(r"MLS\s*#\s*:?\s*(\d+)", re.IGNORECASE)

# Photo CDNs that embed the listing number in the path
VENDOR_PHOTO_PATTERNS: tuple[Pattern[str], ...] = (
    re.compile(r"/listings?/(\d{4,})/", re.IGNORECASE),
    re.compile(r"/mls/(\d{4,})/", re.IGNORECASE),
    re.compile(r"/(\d{5,})[-_]\d+\.(?:jpe?g|png|webp)(?:\?|$)", re.IGNORECASE),
)


# ---------------------------------------------------------------------------
# Defensive coercions
# ---------------------------------------------------------------------------

def to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", "").replace("$", "")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def to_int(value: Any) -> Optional[int]:
    number = to_float(value)
    if number is None:
        return None
    return int(number)


def to_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "t", "yes", "y", "1"):
        return True
    if text in ("false", "f", "no", "n", "0"):
        return False
    return None


def to_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def to_timestamp(value: Any) -> Optional[date]:
    """A UTC-aware datetime when the value carries a time of day, else a plain date."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and len(value.strip()) > 10:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return to_date(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return to_date(value)


def to_str_list(value: Any) -> Optional[list[str]]:
    """Decode a native or JSON-encoded array column into a list of strings."""
    if value is None:
        return None
    items = parse_json_list(value)
    if not items and isinstance(value, str) and value.strip() and not value.strip().startswith("["):
        # Plain comma-separated text
        items = value.split(",")
    return [text for text in (to_str(item) for item in items) if text]


# ---------------------------------------------------------------------------
# Derived fields
# ---------------------------------------------------------------------------

def _as_instant(value: date) -> datetime:
    # Plain dates count from midnight UTC
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def compute_days_on_market(
    listing_date: Optional[date],
    close_date: Optional[date],
    now: Optional[datetime] = None,
) -> Optional[int]:
    """
    Whole days elapsed between listing and close (or now), floored and never negative.

    Accepts dates or datetimes; timestamps are compared as instants, so
    23:00 one day to 01:00 the next is zero days.
    """
    if listing_date is None:
        return None
    end = close_date if close_date is not None else (now or datetime.now(timezone.utc))
    return max(0, (_as_instant(end) - _as_instant(listing_date)).days)


def compose_address(row: dict) -> Optional[str]:
    """Composite address, else street-number/name components joined."""
    address = to_str(row.get("address"))
    if address:
        return address
    parts = [
        to_str(row.get("street_number")),
        to_str(row.get("street_dir_prefix")),
        to_str(row.get("street_name")),
        to_str(row.get("street_suffix")),
    ]
    street = " ".join(part for part in parts if part)
    unit = to_str(row.get("unit_number"))
    if street and unit:
        street = f"{street} #{unit.lstrip('#')}"
    return street or None


def recover_mls_number(
    description: Optional[str],
    first_photo: Optional[str],
    photo_patterns: Sequence[Pattern[str]] = VENDOR_PHOTO_PATTERNS,
) -> str:
    """
    Best-effort MLS number recovery for rows with a blank identifier.

    Tries an ``MLS# 12345`` marker in the description first, then a numeric
    path segment in the first photo URL. Returns "" when both fail.
    """
    if description:
        match = MLS_MARKER_PATTERN.search(description)
        if match:
            return match.group(1)
    if first_photo:
        for pattern in photo_patterns:
            match = pattern.search(first_photo)
            if match:
                return match.group(1)
    return ""


def parse_remarks(remarks: Any) -> Optional[str]:
    """Pick the descriptive remark from the secondary feed's remark list."""
    if not remarks:
        return None
    if isinstance(remarks, str):
        try:
            remarks = json.loads(remarks)
        except ValueError:
            return to_str(remarks)
    if isinstance(remarks, dict):
        return to_str(remarks.get("remark") or remarks.get("Remark") or remarks.get("htmlRemark"))
    if isinstance(remarks, list) and remarks:
        items = [item for item in remarks if isinstance(item, dict)]
        if not items:
            return None
        chosen = next((item for item in items if item.get("type") == "Personal Profile"), items[0])
        return to_str(chosen.get("remark") or chosen.get("htmlRemark"))
    return None


# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def normalize_listing_row(
    row: dict,
    now: Optional[datetime] = None,
    photo_patterns: Sequence[Pattern[str]] = VENDOR_PHOTO_PATTERNS,
) -> Listing:
    """Map one primary-store row to a Listing."""
    media = extract_media(row.get("media"), row.get("preferred_photo"))
    virtual_tour_url = normalize_media_url(row.get("virtual_tour_url")) or media.virtual_tour_url

    description = to_str(row.get("description"))
    mls_number = to_str(row.get("listing_id")) or recover_mls_number(
        description,
        media.photos[0] if media.photos else None,
        photo_patterns,
    )

    listed_at = to_timestamp(row.get("listing_date"))
    closed_at = to_timestamp(row.get("close_date"))
    listing_date = to_date(listed_at)
    close_date = to_date(closed_at)
    subdivision = to_str(row.get("subdivision_name"))
    minor_area = to_str(row.get("mls_area_minor"))

    return Listing(
        id=to_str(row.get("id")) or mls_number,
        mls_number=mls_number,
        source="primary",
        status=to_str(row.get("status")),
        listing_date=listing_date,
        close_date=close_date,
        days_on_market=compute_days_on_market(listed_at, closed_at, now),
        list_price=to_float(row.get("list_price")),
        sold_price=to_float(row.get("sold_price")),
        address=compose_address(row),
        city=to_str(row.get("city")),
        state=to_str(row.get("state")),
        zip_code=to_str(row.get("zip_code")),
        neighborhood=subdivision or minor_area,
        subdivision_name=subdivision,
        mls_area_minor=minor_area,
        latitude=to_float(row.get("latitude")),
        longitude=to_float(row.get("longitude")),
        bedrooms=to_int(row.get("bedrooms")),
        bathrooms_total=to_float(row.get("bathrooms_total")),
        bathrooms_full=to_int(row.get("bathrooms_full")),
        bathrooms_half=to_int(row.get("bathrooms_half")),
        bathrooms_three_quarter=to_int(row.get("bathrooms_three_quarter")),
        square_feet=to_float(row.get("square_feet")) or to_float(row.get("living_area")),
        lot_size_acres=to_float(row.get("lot_size_acres")),
        year_built=to_int(row.get("year_built")),
        property_type=to_str(row.get("property_sub_type")) or to_str(row.get("property_type")),
        description=description,
        photos=media.photos,
        video_urls=media.video_urls,
        virtual_tour_url=virtual_tour_url,
        list_agent_mls_id=to_str(row.get("list_agent_mls_id")),
        co_list_agent_mls_id=to_str(row.get("co_list_agent_mls_id")),
        buyer_agent_mls_id=to_str(row.get("buyer_agent_mls_id")),
        co_buyer_agent_mls_id=to_str(row.get("co_buyer_agent_mls_id")),
        list_office_name=to_str(row.get("list_office_name")),
        furnished=to_str(row.get("furnished")),
        fireplace_yn=to_bool(row.get("fireplace_yn")),
        fireplace_total=to_int(row.get("fireplace_total")),
        fireplace_features=to_str_list(row.get("fireplace_features")),
        cooling=to_str_list(row.get("cooling")),
        heating=to_str_list(row.get("heating")),
        laundry_features=to_str_list(row.get("laundry_features")),
        attached_garage_yn=to_bool(row.get("attached_garage_yn")),
        parking_features=to_str_list(row.get("parking_features")),
        association_amenities=to_str_list(row.get("association_amenities")),
        created_at=to_str(row.get("created_at")),
        updated_at=to_str(row.get("updated_at")),
    )


def normalize_secondary_row(row: dict, now: Optional[datetime] = None) -> Listing:
    """Map one franchise-feed row to a Listing tagged as secondary."""
    media = extract_media(row.get("media"), row.get("default_photo_url"))
    mls_numbers = [str(number) for number in parse_json_list(row.get("mls_numbers")) if number]

    listed_at = to_timestamp(row.get("list_date"))
    closed_at = to_timestamp(row.get("close_date"))
    listing_date = to_date(listed_at)
    close_date = to_date(closed_at)

    return Listing(
        id=to_str(row.get("rfg_listing_id")) or to_str(row.get("id")) or "",
        mls_number=mls_numbers[0] if mls_numbers else "",
        source="secondary",
        status=to_str(row.get("status")),
        listing_date=listing_date,
        close_date=close_date,
        days_on_market=compute_days_on_market(listed_at, closed_at, now),
        list_price=to_float(row.get("list_price")),
        sold_price=to_float(row.get("close_price")),
        address=to_str(row.get("street_address")),
        city=to_str(row.get("city")),
        state=to_str(row.get("state_province")),
        zip_code=to_str(row.get("postal_code")),
        latitude=to_float(row.get("latitude")),
        longitude=to_float(row.get("longitude")),
        bedrooms=to_int(row.get("bedrooms")),
        bathrooms_total=to_float(row.get("bathrooms")),
        square_feet=to_float(row.get("square_footage")),
        lot_size_acres=to_float(row.get("lot_size_acres")),
        year_built=to_int(row.get("year_built")),
        property_type=to_str(row.get("property_type")),
        description=parse_remarks(row.get("remarks")),
        photos=media.photos,
        video_urls=media.video_urls,
        virtual_tour_url=media.virtual_tour_url,
        list_office_name=to_str(row.get("office_name")),
        created_at=to_str(row.get("created_at")),
        updated_at=to_str(row.get("updated_at")),
    )
