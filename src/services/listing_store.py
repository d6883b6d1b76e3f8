"""Row-level data access for the primary listing store and the secondary media source."""

import json
from typing import Iterable, Optional, Sequence
from supabase import Client

from src.services.predicates import (
    AnyOf,
    Eq,
    ILike,
    In,
    NotIn,
    NotNull,
    Predicate,
    apply_predicates,
)
from src.services.supabase_client import (
    PRIMARY,
    SECONDARY,
    SupabaseClient,
    count_of,
    execute_query,
    rows_of,
)
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

PRIMARY_TABLE = "graphql_listings"
SECONDARY_TABLE = "realogy_listings"
OPEN_HOUSES_TABLE = "open_houses"

CLOSED_STATUS = "Closed"
AGENT_ROLE_COLUMNS = (
    "list_agent_mls_id",
    "co_list_agent_mls_id",
    "buyer_agent_mls_id",
    "co_buyer_agent_mls_id",
)
AGENT_NAME_COLUMNS = ("list_agent_full_name", "co_list_agent_full_name")

SECONDARY_AGENT_NAME_COLUMN = "agent_name"
SECONDARY_SOLD_STATUSES = ("Closed", "Sold")

# Upper bound for facet scans over a single column
FACET_ROW_LIMIT = 10000


def agent_role_predicate(agent_ids: Iterable[str]) -> AnyOf:
    """Any of the four agent role columns equal to any of the IDs."""
    ids = [agent_id for agent_id in agent_ids if agent_id]
    return AnyOf([Eq(column, agent_id) for agent_id in ids for column in AGENT_ROLE_COLUMNS])


def status_bucket(sold: bool) -> Predicate:
    if sold:
        return Eq("status", CLOSED_STATUS)
    return NotIn("status", [CLOSED_STATUS], keep_nulls=False)


class PrimaryListingStore:
    """Reads from the primary MLS listing table and the open-house table."""

    def __init__(self, client: Optional[Client]):
        self.client = client

    async def fetch_page(
        self,
        predicates: Sequence[Predicate],
        order: Sequence[tuple[str, bool]],
        offset: int,
        limit: int,
    ) -> tuple[list[dict], int]:
        """One page of rows plus the exact total count for the filtered set."""
        async with SupabaseClient(self.client, PRIMARY) as client:
            query = client.table(PRIMARY_TABLE).select("*", count="exact")
            query = apply_predicates(query, predicates)
            for column, descending in order:
                query = query.order(column, desc=descending, nullsfirst=False)
            query = query.range(offset, offset + limit - 1)
            response = await execute_query(query, PRIMARY, "search")
            return rows_of(response), count_of(response)

    async def fetch_rows(
        self,
        predicates: Sequence[Predicate],
        order: Sequence[tuple[str, bool]] = (),
        limit: Optional[int] = None,
        columns: str = "*",
        operation: str = "fetch_rows",
    ) -> list[dict]:
        async with SupabaseClient(self.client, PRIMARY) as client:
            query = apply_predicates(client.table(PRIMARY_TABLE).select(columns), predicates)
            for column, descending in order:
                query = query.order(column, desc=descending, nullsfirst=False)
            if limit is not None:
                query = query.limit(limit)
            return rows_of(await execute_query(query, PRIMARY, operation))

    async def fetch_by_id(self, listing_id: str) -> Optional[dict]:
        rows = await self.fetch_rows([Eq("id", listing_id)], limit=1, operation="fetch_by_id")
        return rows[0] if rows else None

    async def fetch_by_listing_id(self, mls_number: str) -> Optional[dict]:
        rows = await self.fetch_rows(
            [Eq("listing_id", mls_number)], limit=1, operation="fetch_by_listing_id"
        )
        return rows[0] if rows else None

    async def fetch_by_listing_ids(self, mls_numbers: Sequence[str]) -> list[dict]:
        if not mls_numbers:
            return []
        return await self.fetch_rows(
            [In("listing_id", mls_numbers)], operation="fetch_by_listing_ids"
        )

    async def fetch_listing_agents(self, mls_number: str) -> Optional[dict]:
        """Listing and co-listing agent IDs for one MLS number."""
        rows = await self.fetch_rows(
            [Eq("listing_id", mls_number)],
            limit=1,
            columns="list_agent_mls_id, co_list_agent_mls_id",
            operation="fetch_listing_agents",
        )
        return rows[0] if rows else None

    async def fetch_agent_rows(self, agent_ids: Sequence[str], sold: bool, limit: int) -> list[dict]:
        """
        Rows where any of the IDs holds any agent role, split by status bucket.

        Active rows come newest first; sold rows come by sold price, highest first.
        """
        order = [("sold_price", True)] if sold else [("listing_date", True)]
        return await self.fetch_rows(
            [agent_role_predicate(agent_ids), status_bucket(sold)],
            order=order,
            limit=limit,
            operation="fetch_agent_sold" if sold else "fetch_agent_active",
        )

    async def fetch_distinct(
        self,
        column: str,
        predicates: Sequence[Predicate] = (),
    ) -> list[str]:
        """Sorted unique non-blank values of one column."""
        rows = await self.fetch_rows(
            [NotNull(column), *predicates],
            order=[(column, False)],
            limit=FACET_ROW_LIMIT,
            columns=column,
            operation=f"distinct_{column}",
        )
        values = {str(row.get(column)).strip() for row in rows if row.get(column) is not None}
        return sorted(value for value in values if value)

    async def fetch_open_house_rows(self, from_date: str) -> list[dict]:
        async with SupabaseClient(self.client, PRIMARY) as client:
            query = (
                client.table(OPEN_HOUSES_TABLE)
                .select("*")
                .gte("open_house_date", from_date)
                .order("open_house_date")
                .order("open_house_start_time")
            )
            return rows_of(await execute_query(query, PRIMARY, "fetch_open_houses"))


class SecondaryListingSource:
    """Reads from the franchise-wide secondary feed; every caller must tolerate its absence."""

    def __init__(self, client: Optional[Client]):
        self.client = client

    @property
    def available(self) -> bool:
        return self.client is not None

    async def find_by_mls_number(self, mls_number: str) -> Optional[dict]:
        """The row whose ``mls_numbers`` array contains the given number, if any."""
        async with SupabaseClient(self.client, SECONDARY) as client:
            query = (
                client.table(SECONDARY_TABLE)
                .select("rfg_listing_id, mls_numbers, default_photo_url, media")
                .contains("mls_numbers", json.dumps([mls_number]))
                .limit(1)
            )
            rows = rows_of(await execute_query(query, SECONDARY, "find_by_mls_number"))
            return rows[0] if rows else None

    async def fetch_agent_rows(self, agent_name: str, sold: bool, limit: int) -> list[dict]:
        """Rows listed under an agent display name, split by status bucket."""
        if sold:
            bucket = In("status", SECONDARY_SOLD_STATUSES)
        else:
            bucket = NotIn("status", SECONDARY_SOLD_STATUSES, keep_nulls=True)
        predicates = [ILike(SECONDARY_AGENT_NAME_COLUMN, agent_name), bucket]

        async with SupabaseClient(self.client, SECONDARY) as client:
            query = apply_predicates(client.table(SECONDARY_TABLE).select("*"), predicates)
            order_column = "close_price" if sold else "list_date"
            query = query.order(order_column, desc=True, nullsfirst=False).limit(limit)
            operation = "fetch_agent_sold" if sold else "fetch_agent_active"
            return rows_of(await execute_query(query, SECONDARY, operation))
