"""
Query builder and paginator for listing search.

Filters compile to typed predicates (see ``src.services.predicates``); the
primary store applies them, orders with nulls last and returns one page plus
an exact count. Every public method here degrades to an empty result on a
source failure and logs a diagnostic instead of raising.
"""

import math
from typing import Optional, Sequence

from src.models.listing import Listing
from src.models.search import ListingFilters, ListingsResult, SortOption
from src.services.listing_store import (
    AGENT_NAME_COLUMNS,
    AGENT_ROLE_COLUMNS,
    CLOSED_STATUS,
    PrimaryListingStore,
)
from src.services.normalizer import normalize_listing_row
from src.services.predicates import (
    AnyOf,
    Eq,
    Gte,
    ILike,
    In,
    Lte,
    NotIn,
    NotNull,
    Predicate,
    contains_pattern,
)
from src.services.reconciler import dedupe_rows
from src.utils.errors import ListingsEngineError
from src.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)

PROPERTY_TYPES = [
    "Commercial Land",
    "Commercial Lease",
    "Commercial Sale",
    "Fractional",
    "RES Vacant Land",
    "Residential",
    "Residential Lease",
]

PROPERTY_SUB_TYPES = [
    "Agricultural",
    "Agriculture",
    "Business with Real Estate",
    "Business with/RE",
    "Commercial",
    "Commercial Land",
    "Condominium",
    "Development",
    "Duplex",
    "Half Duplex",
    "Leasehold",
    "Mobile Home",
    "Multi-Family Lot",
    "Other",
    "Residential Income",
    "Seasonal & Remote",
    "Single Family Lot",
    "Single Family Residence",
    "Townhouse",
]

# (column, descending); nulls always sort last
SORT_ORDERS: dict[SortOption, list[tuple[str, bool]]] = {
    SortOption.NEWEST: [("listing_date", True)],
    SortOption.PRICE_LOW: [("list_price", False)],
    SortOption.PRICE_HIGH: [("list_price", True)],
    SortOption.BEDS_LOW: [("bedrooms", False)],
    SortOption.BEDS_HIGH: [("bedrooms", True)],
}


def _present(values: Optional[Sequence[str]]) -> list[str]:
    return [value for value in (values or []) if value]


def _range(column: str, low, high) -> list[Predicate]:
    # 0 is a real bound, so test against None rather than truthiness
    predicates: list[Predicate] = []
    if low is not None:
        predicates.append(Gte(column, low))
    if high is not None:
        predicates.append(Lte(column, high))
    return predicates


def build_predicates(filters: ListingFilters) -> list[Predicate]:
    """Compile structured filters into an ANDed list of predicates."""
    predicates: list[Predicate] = []

    if filters.status:
        predicates.append(Eq("status", filters.status))
    if filters.property_type:
        predicates.append(Eq("property_type", filters.property_type))
    if filters.property_sub_type:
        predicates.append(Eq("property_sub_type", filters.property_sub_type))

    if filters.city:
        predicates.append(ILike("city", contains_pattern(filters.city)))
    cities = _present(filters.cities)
    if cities:
        predicates.append(In("city", cities))

    if filters.neighborhood:
        pattern = contains_pattern(filters.neighborhood)
        predicates.append(AnyOf([
            ILike("subdivision_name", pattern),
            ILike("mls_area_minor", pattern),
        ]))

    predicates.extend(_range("list_price", filters.min_price, filters.max_price))
    predicates.extend(_range("bedrooms", filters.min_beds, filters.max_beds))
    predicates.extend(_range("bathrooms_total", filters.min_baths, filters.max_baths))
    predicates.extend(_range("square_feet", filters.min_sqft, filters.max_sqft))

    if filters.keyword:
        pattern = contains_pattern(filters.keyword)
        predicates.append(AnyOf([ILike("listing_id", pattern), ILike("address", pattern)]))

    agent_ids = _present(filters.agent_mls_ids)
    agent_names = _present(filters.agent_names)
    if agent_ids or agent_names:
        alternatives: list[Predicate] = []
        if agent_ids:
            alternatives.extend(In(column, agent_ids) for column in AGENT_ROLE_COLUMNS)
        if agent_names:
            alternatives.extend(In(column, agent_names) for column in AGENT_NAME_COLUMNS)
        predicates.append(AnyOf(alternatives))

    excluded_types = _present(filters.excluded_property_types)
    if excluded_types:
        predicates.append(NotIn("property_type", excluded_types, keep_nulls=True))
    excluded_sub_types = _present(filters.excluded_property_sub_types)
    if excluded_sub_types:
        predicates.append(NotIn("property_sub_type", excluded_sub_types, keep_nulls=True))

    allowed_cities = _present(filters.allowed_cities)
    if allowed_cities:
        predicates.append(In("city", allowed_cities))

    allowed_statuses = _present(filters.allowed_statuses)
    if allowed_statuses:
        predicates.append(In("status", allowed_statuses))
    excluded_statuses = _present(filters.excluded_statuses)
    if excluded_statuses:
        predicates.append(NotIn("status", excluded_statuses, keep_nulls=True))

    return predicates


def clamp_pagination(page: Optional[int], page_size: Optional[int], default_page_size: int, max_page_size: int) -> tuple[int, int]:
    """Normalize page to >= 1 and page size to [1, max_page_size]."""
    page = page if page is not None and page >= 1 else 1
    if page_size is None:
        page_size = default_page_size
    page_size = max(1, min(page_size, max_page_size))
    return page, page_size


def total_pages_for(total: int, page_size: int) -> int:
    return math.ceil(total / page_size) if total > 0 else 0


class ListingQueryBuilder:
    """Search, facets and curated queries against the primary store."""

    def __init__(
        self,
        store: PrimaryListingStore,
        default_page_size: int = 24,
        max_page_size: int = 100,
    ):
        self.store = store
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def search(
        self,
        filters: Optional[ListingFilters] = None,
        sort: Optional[SortOption] = None,
        page: Optional[int] = 1,
        page_size: Optional[int] = None,
    ) -> ListingsResult:
        filters = filters or ListingFilters()
        sort = sort if isinstance(sort, SortOption) else SortOption.parse(sort)
        page, page_size = clamp_pagination(page, page_size, self.default_page_size, self.max_page_size)
        offset = (page - 1) * page_size
        predicates = build_predicates(filters)

        try:
            with log_timing("listing_search", logger, page=page, page_size=page_size, sort=sort.value):
                rows, total = await self.store.fetch_page(
                    predicates, SORT_ORDERS[sort], offset, page_size
                )
        except ListingsEngineError as e:
            logger.error(
                "Listing search failed",
                error=str(e),
                filter_count=len(predicates),
                page=page,
            )
            return ListingsResult.empty(page, page_size)

        unique_rows = dedupe_rows(rows)
        if len(unique_rows) < len(rows):
            logger.info(
                "Dropped duplicate rows from search page",
                dropped=len(rows) - len(unique_rows),
                page=page,
            )

        return ListingsResult(
            listings=[normalize_listing_row(row) for row in unique_rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages_for(total, page_size),
        )

    async def get_newest_high_priced(self, cities: Sequence[str], limit: int = 8) -> list[Listing]:
        """Newest, then highest priced, single-family homes across the given cities."""
        cities = _present(cities)
        if not cities:
            return []
        predicates = [
            AnyOf([ILike("city", city) for city in cities]),
            Eq("property_type", "Residential"),
            Eq("property_sub_type", "Single Family Residence"),
            NotIn("status", [CLOSED_STATUS], keep_nulls=False),
            NotNull("list_price"),
        ]
        try:
            rows = await self.store.fetch_rows(
                predicates,
                order=[("listing_date", True), ("list_price", True)],
                limit=limit,
                operation="newest_high_priced",
            )
        except ListingsEngineError as e:
            logger.error("Curated listing query failed", error=str(e), cities=cities)
            return []
        return [normalize_listing_row(row) for row in rows]

    async def _distinct(self, column: str, predicates: Sequence[Predicate] = ()) -> list[str]:
        try:
            return await self.store.fetch_distinct(column, predicates)
        except ListingsEngineError as e:
            logger.error("Facet query failed", column=column, error=str(e))
            return []

    async def get_distinct_cities(self) -> list[str]:
        return await self._distinct("city")

    async def get_distinct_statuses(self) -> list[str]:
        return await self._distinct("status")

    async def get_distinct_neighborhoods(self, city: Optional[str] = None) -> list[str]:
        """Subdivision names, optionally scoped to one city (case-insensitive equality)."""
        predicates = [ILike("city", city)] if city else []
        return await self._distinct("subdivision_name", predicates)

    async def get_property_types(self) -> list[str]:
        return sorted(PROPERTY_TYPES)

    async def get_property_sub_types(self) -> list[str]:
        return sorted(PROPERTY_SUB_TYPES)
