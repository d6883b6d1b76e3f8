"""Listings engine - the read interface callers use for search, lookups, portfolios and routing."""

import asyncio
from datetime import date
from typing import Optional
from supabase import Client

from src.models.agent_routing import AgentRouting
from src.models.listing import Listing
from src.models.search import AgentPortfolio, ListingFilters, ListingsResult, SortOption
from src.services import agent_routing, open_houses
from src.services.directory import TeamDirectory
from src.services.listing_store import PrimaryListingStore, SecondaryListingSource
from src.services.normalizer import normalize_listing_row, normalize_secondary_row
from src.services.query_builder import ListingQueryBuilder
from src.services.reconciler import (
    dedupe_by_id,
    enrich_listing,
    enrich_listings,
    merge_portfolio_bucket,
    overlay_secondary_row,
)
from src.services.site_config import SiteConfigProvider
from src.services.supabase_client import create_primary_client, create_secondary_client
from src.utils.errors import ListingsEngineError
from src.utils.logging import get_structured_logger, log_timing
from src.utils.settings import EngineSettings

logger = get_structured_logger(__name__)


class ListingsEngine:
    """Facade over the primary store, the secondary media source and the team directory."""

    def __init__(
        self,
        primary_client: Optional[Client],
        secondary_client: Optional[Client] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.settings = settings or EngineSettings()
        self.store = PrimaryListingStore(primary_client)
        self.secondary = SecondaryListingSource(secondary_client)
        self.query_builder = ListingQueryBuilder(
            self.store,
            default_page_size=self.settings.default_page_size,
            max_page_size=self.settings.max_page_size,
        )
        self.directory = TeamDirectory(
            primary_client, ttl_seconds=self.settings.directory_cache_ttl_seconds
        )
        self.site_config = SiteConfigProvider(
            primary_client, ttl_seconds=self.settings.site_config_cache_ttl_seconds
        )

    # -- search and facets -------------------------------------------------

    async def search(
        self,
        filters: Optional[ListingFilters] = None,
        sort: Optional[SortOption] = None,
        page: Optional[int] = 1,
        page_size: Optional[int] = None,
    ) -> ListingsResult:
        return await self.query_builder.search(filters, sort, page, page_size)

    async def get_distinct_cities(self) -> list[str]:
        return await self.query_builder.get_distinct_cities()

    async def get_distinct_statuses(self) -> list[str]:
        return await self.query_builder.get_distinct_statuses()

    async def get_distinct_neighborhoods(self, city: Optional[str] = None) -> list[str]:
        return await self.query_builder.get_distinct_neighborhoods(city)

    async def get_property_types(self) -> list[str]:
        return await self.query_builder.get_property_types()

    async def get_property_sub_types(self) -> list[str]:
        return await self.query_builder.get_property_sub_types()

    async def get_newest_high_priced(self, cities: list[str], limit: int = 8) -> list[Listing]:
        listings = await self.query_builder.get_newest_high_priced(cities, limit)
        return await enrich_listings(
            listings, self.secondary, self.settings.enrichment_concurrency
        )

    # -- single lookups ----------------------------------------------------

    async def get_by_id(self, listing_id: str) -> Optional[Listing]:
        """Listing by primary-store key, enriched with secondary media once its MLS number is known."""
        if not listing_id:
            return None
        try:
            row = await self.store.fetch_by_id(listing_id)
        except ListingsEngineError as e:
            logger.error("Listing lookup failed", operation="get_by_id", key=listing_id, error=str(e))
            return None
        if not row:
            return None
        return await enrich_listing(normalize_listing_row(row), self.secondary)

    async def get_by_external_number(self, number: str) -> Optional[Listing]:
        """
        Listing by MLS number, enriched with secondary media.

        The number is known up front, so the primary fetch and the secondary
        lookup run concurrently. A secondary failure leaves the primary
        listing unenriched.
        """
        if not number:
            return None

        lookups = [self.store.fetch_by_listing_id(number)]
        if self.secondary.available:
            lookups.append(self.secondary.find_by_mls_number(number))
        row, *secondary = await asyncio.gather(*lookups, return_exceptions=True)

        if isinstance(row, ListingsEngineError):
            logger.error(
                "Listing lookup failed", operation="get_by_external_number", key=number, error=str(row)
            )
            return None
        if isinstance(row, BaseException):
            raise row
        if not row:
            return None

        listing = normalize_listing_row(row)
        match = secondary[0] if secondary else None
        if isinstance(match, BaseException):
            logger.warning("Secondary enrichment lookup failed", mls_number=number, error=str(match))
            return listing
        return overlay_secondary_row(listing, match)

    async def get_by_number_or_id(self, value: str) -> Optional[Listing]:
        """MLS number first, then primary-store key."""
        listing = await self.get_by_external_number(value)
        if listing is None:
            listing = await self.get_by_id(value)
        return listing

    # -- open houses -------------------------------------------------------

    async def get_upcoming_open_houses(self, today: Optional[date] = None) -> list[Listing]:
        return await open_houses.get_upcoming_open_houses(self.store, today)

    # -- agent portfolio ---------------------------------------------------

    async def _primary_bucket(self, agent_ids: list[str], sold: bool) -> list[Listing]:
        rows = await self.store.fetch_agent_rows(agent_ids, sold, self.settings.portfolio_limit)
        return [normalize_listing_row(row) for row in dedupe_by_id(rows)]

    async def _secondary_bucket(self, agent_name: Optional[str], sold: bool) -> list[Listing]:
        if not agent_name or not self.secondary.available:
            return []
        rows = await self.secondary.fetch_agent_rows(
            agent_name, sold, self.settings.portfolio_limit
        )
        return [normalize_secondary_row(row) for row in rows]

    async def get_agent_portfolio(
        self,
        agent_id: str,
        sold_agent_id_override: Optional[str] = None,
        agent_display_name: Optional[str] = None,
    ) -> AgentPortfolio:
        """
        Active and sold listings for one agent across both sources.

        The primary store is queried by agent ID in any role (the sold bucket
        also matches ``sold_agent_id_override``); the secondary source by
        display name. All four queries run concurrently and a failed query
        contributes an empty list.
        """
        sold_ids = [agent_id]
        if sold_agent_id_override and sold_agent_id_override != agent_id:
            sold_ids.append(sold_agent_id_override)

        with log_timing("agent_portfolio", logger, agent_id=agent_id):
            results = await asyncio.gather(
                self._primary_bucket([agent_id], sold=False),
                self._primary_bucket(sold_ids, sold=True),
                self._secondary_bucket(agent_display_name, sold=False),
                self._secondary_bucket(agent_display_name, sold=True),
                return_exceptions=True,
            )

        labels = ("primary_active", "primary_sold", "secondary_active", "secondary_sold")
        buckets = []
        for label, result in zip(labels, results):
            if isinstance(result, BaseException):
                logger.warning(
                    "Portfolio query failed, continuing without it",
                    query=label,
                    agent_id=agent_id,
                    error=str(result),
                )
                buckets.append([])
            else:
                buckets.append(result)

        primary_active, primary_sold, secondary_active, secondary_sold = buckets
        return AgentPortfolio(
            active=merge_portfolio_bucket(primary_active, secondary_active),
            sold=merge_portfolio_bucket(primary_sold, secondary_sold),
        )

    # -- lead routing ------------------------------------------------------

    async def resolve_lead_routing(
        self, external_listing_number: Optional[str] = None
    ) -> AgentRouting:
        return await agent_routing.resolve_lead_routing(
            self.store,
            self.directory,
            self.settings.lead_fallback_email,
            external_listing_number,
        )


def build_engine(settings: Optional[EngineSettings] = None) -> ListingsEngine:
    """Wire clients and services from environment settings."""
    settings = settings or EngineSettings.from_env()
    return ListingsEngine(
        create_primary_client(settings),
        create_secondary_client(settings),
        settings,
    )
