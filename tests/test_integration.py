"""End-to-end flows through the engine with mocked sources."""

import pytest
from datetime import date, datetime, timezone

from src.models.search import ListingFilters, SortOption
from src.services.listings_engine import ListingsEngine
from tests.fixtures.listing_rows import PRIMARY_ROW_MESSY, SECONDARY_ROW_RICH
from tests.utils.assertions import assert_valid_listing, assert_valid_page
from tests.utils.factories import create_team_member_row
from tests.utils.helpers import create_client_mock, create_query_mock


@pytest.fixture
def tables():
    return {
        "graphql_listings": create_query_mock(data=[PRIMARY_ROW_MESSY], count=1),
        "team_members": create_query_mock(data=[
            create_team_member_row(name="Co Agent", email="co@example.com", mls_agent_id="A2"),
            create_team_member_row(name="Lead Agent", email="lead@example.com", mls_agent_id="A1"),
        ]),
    }


@pytest.fixture
def engine(settings, tables):
    secondary = create_client_mock({"realogy_listings": create_query_mock(data=[SECONDARY_ROW_RICH])})
    return ListingsEngine(create_client_mock(tables), secondary, settings)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_search_then_detail(engine):
    page = await engine.search(ListingFilters(city="aspen", min_beds=0), SortOption.PRICE_HIGH, page=1, page_size=24)

    assert_valid_page(page)
    summary = page.listings[0]
    assert summary.mls_number == "190455"
    assert summary.address == "415 Park Cir #B"
    assert summary.neighborhood == "Smuggler"
    assert summary.property_type == "Half Duplex"
    assert summary.square_feet == 3120.0
    assert summary.days_on_market == (datetime.now(timezone.utc).date() - date(2026, 10, 9)).days
    assert summary.photos == [
        "https://photos.mls.example.com/listings/190455/1.jpg",
        "https://photos.mls.example.com/listings/190455/2.jpg",
    ]

    detail = await engine.get_by_number_or_id(summary.mls_number)

    assert_valid_listing(detail)
    assert detail.photos == [
        "https://cdn.franchise.example.com/190455/hero.jpg",
        "https://cdn.franchise.example.com/190455/1.jpg",
    ]
    assert detail.video_urls == ["https://video.franchise.example.com/190455.mp4"]
    assert detail.virtual_tour_url == "https://tour.example.com/190455"
    assert detail.list_price == 4950000.0
    assert detail.bedrooms == 4
    assert detail.source == "primary"


@pytest.mark.integration
@pytest.mark.asyncio
async def test_lead_routing_prefers_listing_agent(engine, tables):
    tables["graphql_listings"] = create_query_mock(data=[{"list_agent_mls_id": "A1", "co_list_agent_mls_id": "A2"}])

    routing = await engine.resolve_lead_routing("190455")

    assert routing.agent_email == "lead@example.com"
    assert routing.agent_name == "Lead Agent"
    assert routing.is_own_listing is True


@pytest.mark.integration
@pytest.mark.asyncio
async def test_primary_outage_degrades_everywhere(settings):
    broken = create_client_mock({
        name: create_query_mock(error=RuntimeError("primary down"))
        for name in ("graphql_listings", "open_houses", "team_members")
    })
    engine = ListingsEngine(broken, None, settings)

    assert (await engine.search()).total == 0
    assert await engine.get_by_id("x") is None
    assert await engine.get_upcoming_open_houses() == []
    assert await engine.get_distinct_cities() == []
    routing = await engine.resolve_lead_routing("190455")
    assert routing.agent_email == settings.lead_fallback_email
    portfolio = await engine.get_agent_portfolio("A1", agent_display_name="Lead Agent")
    assert portfolio.active == [] and portfolio.sold == []
