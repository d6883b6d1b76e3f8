"""Source reconciler - page dedup, secondary media enrichment and portfolio merges."""

import asyncio
import re
from typing import Iterable, Optional, Protocol, Sequence

from src.models.listing import Listing, MediaBundle
from src.services.listing_store import SecondaryListingSource
from src.services.media_extractor import extract_media
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_address(address: Optional[str]) -> str:
    """Lower-case, trimmed, single-spaced address for identity comparisons."""
    if not address:
        return ""
    return _WHITESPACE.sub(" ", str(address)).strip().lower()


# ---------------------------------------------------------------------------
# Identity keys
# ---------------------------------------------------------------------------

class IdentityKeyStrategy(Protocol):
    """Computes the key under which two listings count as the same property."""

    def key(self, listing: Listing) -> str:
        ...


class AddressCityPriceKey:
    """``lower(address)-lower(city)-list_price``; an unpriced listing keys with an empty price."""

    def key(self, listing: Listing) -> str:
        price = listing.list_price
        if price is not None and float(price).is_integer():
            price = int(price)
        address = (listing.address or "").strip().lower()
        city = (listing.city or "").strip().lower()
        return f"{address}-{city}-{'' if price is None else price}"


DEFAULT_KEY_STRATEGY = AddressCityPriceKey()


# ---------------------------------------------------------------------------
# Row dedup
# ---------------------------------------------------------------------------

def dedupe_rows(rows: Iterable[dict]) -> list[dict]:
    """
    Drop rows whose listing number or normalized address was already seen.

    Rows with neither key are always kept. First occurrence wins, so the
    query's ordering is preserved.
    """
    seen_numbers: set[str] = set()
    seen_addresses: set[str] = set()
    unique = []
    for row in rows:
        number = str(row.get("listing_id") or "").strip()
        address = normalize_address(row.get("address"))
        if (number and number in seen_numbers) or (address and address in seen_addresses):
            continue
        if number:
            seen_numbers.add(number)
        if address:
            seen_addresses.add(address)
        unique.append(row)
    return unique


def dedupe_by_id(rows: Iterable[dict]) -> list[dict]:
    """Keep the first row per ``id``; one agent can hold several roles on a listing."""
    seen: set[str] = set()
    unique = []
    for row in rows:
        row_id = row.get("id")
        if row_id is not None:
            if row_id in seen:
                continue
            seen.add(row_id)
        unique.append(row)
    return unique


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------

async def enrich_listing(listing: Listing, secondary: Optional[SecondaryListingSource]) -> Listing:
    """
    Overlay secondary-source media onto a primary listing.

    Never raises: a missing source, a blank MLS number, a lookup error or no
    match all return the listing unchanged.
    """
    if secondary is None or not secondary.available or not listing.mls_number:
        return listing

    try:
        row = await secondary.find_by_mls_number(listing.mls_number)
    except Exception as e:
        logger.warning(
            "Secondary enrichment lookup failed",
            mls_number=listing.mls_number,
            error=str(e),
        )
        return listing

    return overlay_secondary_row(listing, row)


def overlay_secondary_row(listing: Listing, row: Optional[dict]) -> Listing:
    """Lay the media of a matched secondary row over ``listing``; no row or no media is a no-op."""
    if not row:
        return listing

    media = extract_media(row.get("media"), row.get("default_photo_url"))
    if media.is_empty:
        return listing

    logger.debug(
        "Enriched listing with secondary media",
        mls_number=listing.mls_number,
        photo_count=len(media.photos),
        video_count=len(media.video_urls),
        has_tour=media.virtual_tour_url is not None,
    )
    return listing.with_media(media)


async def enrich_listings(
    listings: Sequence[Listing],
    secondary: Optional[SecondaryListingSource],
    concurrency: int = 8,
) -> list[Listing]:
    """Enrich many listings with at most ``concurrency`` lookups in flight; order is preserved."""
    if not listings:
        return []
    if secondary is None or not secondary.available:
        return list(listings)

    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def bounded(listing: Listing) -> Listing:
        async with semaphore:
            return await enrich_listing(listing, secondary)

    return list(await asyncio.gather(*(bounded(listing) for listing in listings)))


# ---------------------------------------------------------------------------
# Portfolio merge
# ---------------------------------------------------------------------------

def merge_portfolio_bucket(
    primary: Sequence[Listing],
    secondary: Sequence[Listing],
    key_strategy: IdentityKeyStrategy = DEFAULT_KEY_STRATEGY,
) -> list[Listing]:
    """
    Merge one status bucket from both sources.

    Primary listings come first, in order, enriched from a same-key secondary
    listing that has at least one photo; only that claims the key. Secondary
    listings whose key was not claimed follow, in order, once per key, so a
    photo-less secondary twin of a primary listing is still emitted.
    """
    secondary_by_key: dict[str, Listing] = {}
    for listing in secondary:
        secondary_by_key.setdefault(key_strategy.key(listing), listing)

    merged: list[Listing] = []
    seen: set[str] = set()

    for listing in primary:
        key = key_strategy.key(listing)
        match = secondary_by_key.get(key)
        if match is not None and match.photos:
            listing = listing.with_media(MediaBundle(
                photos=match.photos,
                video_urls=match.video_urls,
                virtual_tour_url=match.virtual_tour_url,
            ))
            seen.add(key)
        merged.append(listing)

    for listing in secondary:
        key = key_strategy.key(listing)
        if key in seen:
            continue
        seen.add(key)
        merged.append(listing)

    return merged
