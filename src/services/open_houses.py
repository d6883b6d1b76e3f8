"""Open-house join - annotate primary listings with upcoming open-house records."""

from datetime import date
from typing import Optional

from src.models.listing import Listing
from src.services.listing_store import PrimaryListingStore
from src.services.normalizer import normalize_listing_row, to_date, to_str
from src.utils.errors import ListingsEngineError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


def annotate_open_house(listing: Listing, open_house: dict) -> Listing:
    return listing.model_copy(update={
        "open_house_date": to_date(open_house.get("open_house_date")),
        "open_house_start_time": to_str(open_house.get("open_house_start_time")),
        "open_house_end_time": to_str(open_house.get("open_house_end_time")),
        "open_house_remarks": to_str(open_house.get("open_house_remarks")),
    })


async def get_upcoming_open_houses(
    store: PrimaryListingStore,
    today: Optional[date] = None,
) -> list[Listing]:
    """
    One annotated listing per upcoming open house, soonest first.

    A property with several open houses appears once per open house. Open
    houses whose listing is missing from the primary store are skipped.
    Returns [] on any source failure.
    """
    today = today or date.today()

    try:
        with log_timing("open_house_join", logger):
            open_houses = await store.fetch_open_house_rows(today.isoformat())
            numbers = []
            for open_house in open_houses:
                number = to_str(open_house.get("listing_id"))
                if number and number not in numbers:
                    numbers.append(number)
            rows = await store.fetch_by_listing_ids(numbers)
    except ListingsEngineError as e:
        logger.error("Open house query failed", error=str(e))
        return []

    listings_by_number: dict[str, Listing] = {}
    for row in rows:
        listing = normalize_listing_row(row)
        if listing.mls_number:
            listings_by_number.setdefault(listing.mls_number, listing)

    annotated = []
    skipped = 0
    for open_house in open_houses:
        listing = listings_by_number.get(to_str(open_house.get("listing_id")) or "")
        if listing is None:
            skipped += 1
            continue
        annotated.append(annotate_open_house(listing, open_house))

    if skipped:
        logger.info("Skipped open houses without a listing", skipped=skipped)

    return annotated
