"""Tests for the listing, portfolio, open-house and routing endpoints."""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

from src.models.agent_routing import AgentRouting
from src.models.listing import Listing
from src.models.search import AgentPortfolio
from src.services.listings_engine import ListingsEngine
from tests.utils.assertions import assert_valid_response
from tests.utils.factories import create_listing_row, create_team_member_row
from tests.utils.helpers import (
    called_with,
    create_client_mock,
    create_query_mock,
    create_vercel_request,
    response_json,
)


@pytest.fixture
def engine_tables():
    return {
        "graphql_listings": create_query_mock(
            data=[create_listing_row(id="a", listing_id="100")], count=1
        ),
        "site_configuration": create_query_mock(data=[{
            "allowed_cities": [{"value": "Aspen"}],
            "excluded_statuses": [{"value": "Withdrawn"}],
        }]),
        "team_members": create_query_mock(data=[
            create_team_member_row(name="Jane Doe", mls_agent_id="A1"),
        ]),
    }


@pytest.fixture
def engine(settings, engine_tables):
    return ListingsEngine(create_client_mock(engine_tables), None, settings)


@pytest.mark.unit
def test_search_applies_public_defaults(engine, engine_tables):
    from api.listings.search import ALLOWED_STATUSES, handler

    request = create_vercel_request(query={"city": "Aspen", "minBeds": "0", "page": "1", "pageSize": "12"})
    with patch("api.listings.search.get_engine", return_value=engine):
        response = handler(request)

    assert_valid_response(response, 200)
    body = response_json(response)
    assert body["total"] == 1
    assert body["page_size"] == 12
    assert body["listings"][0]["id"] == "a"

    query = engine_tables["graphql_listings"]
    assert ("status", ALLOWED_STATUSES) in called_with(query, "in_")
    assert ("city", ["Aspen"]) in called_with(query, "in_")
    assert ("bedrooms", 0) in called_with(query, "gte")
    or_groups = [args[0] for args in called_with(query, "or_")]
    assert 'property_type.is.null,property_type.not.in.("Commercial Sale")' in or_groups
    assert "status.is.null,status.not.in.(Withdrawn)" in or_groups


@pytest.mark.unit
def test_search_our_team_filter(engine, engine_tables):
    from api.listings.search import handler

    with patch("api.listings.search.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={"ourTeam": "true", "status": "Pending"}))

    assert_valid_response(response, 200)
    query = engine_tables["graphql_listings"]
    assert ("status", "Pending") in called_with(query, "eq")
    or_groups = [args[0] for args in called_with(query, "or_")]
    assert any("list_agent_mls_id.in.(A1)" in group and 'list_agent_full_name.in.("Jane Doe")' in group for group in or_groups)


@pytest.mark.unit
def test_search_our_team_with_directory_down_returns_empty_page(engine, engine_tables):
    from api.listings.search import handler

    engine_tables["team_members"] = create_query_mock(error=RuntimeError("team_members unavailable"))
    with patch("api.listings.search.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={"ourTeam": "true", "pageSize": "12"}))

    assert_valid_response(response, 200)
    body = response_json(response)
    assert body["total"] == 0
    assert body["listings"] == []
    assert body["page_size"] == 12
    engine_tables["graphql_listings"].execute.assert_not_called()


@pytest.fixture
def unconfigured_env():
    """Environment without primary source credentials and no cached engine."""
    with patch.dict("os.environ", {"SUPABASE_URL": "", "SUPABASE_ANON_KEY": ""}), \
         patch("api._common._engine", None):
        yield


@pytest.mark.unit
def test_search_without_primary_configuration_returns_empty_page(unconfigured_env):
    from api.listings.search import handler

    response = handler(create_vercel_request(query={"city": "Aspen"}))

    assert_valid_response(response, 200)
    body = response_json(response)
    assert body["total"] == 0
    assert body["listings"] == []


@pytest.mark.unit
def test_lead_routing_without_primary_configuration_falls_back(unconfigured_env):
    from api.leads.routing import handler

    response = handler(create_vercel_request(query={"mlsId": "190455"}))

    assert_valid_response(response, 200)
    assert response_json(response) == {
        "agent_email": "leads@example.com",
        "agent_name": "",
        "is_own_listing": False,
    }


@pytest.mark.unit
def test_search_engine_failure_is_500():
    from api.listings.search import handler

    with patch("api.listings.search.get_engine", side_effect=RuntimeError("no config")):
        response = handler(create_vercel_request())

    assert_valid_response(response, 500)


@pytest.mark.unit
def test_detail_requires_id():
    from api.listings.detail import handler
    assert_valid_response(handler(create_vercel_request()), 400)


@pytest.mark.unit
def test_detail_found_and_missing():
    from api.listings.detail import handler

    engine = MagicMock()
    engine.get_by_number_or_id = AsyncMock(return_value=Listing(id="a", mls_number="100", listing_date=date(2026, 10, 1)))
    with patch("api.listings.detail.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={"id": "100"}))

    assert_valid_response(response, 200)
    assert response_json(response)["listing_date"] == "2026-10-01"
    engine.get_by_number_or_id.assert_awaited_once_with("100")

    engine.get_by_number_or_id = AsyncMock(return_value=None)
    with patch("api.listings.detail.get_engine", return_value=engine):
        assert_valid_response(handler(create_vercel_request(query={"id": "nope"})), 404)


@pytest.mark.unit
def test_options_uses_allowed_cities(engine, engine_tables):
    from api.listings.options import handler

    engine_tables["graphql_listings"] = create_query_mock(data=[{"city": "Basalt"}, {"city": "Aspen"}])
    with patch("api.listings.options.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={}))

    assert_valid_response(response, 200)
    body = response_json(response)
    assert body["cities"] == ["Aspen"]
    assert "Commercial Sale" in body["propertyTypes"]
    assert "Townhouse" in body["propertySubTypes"]


@pytest.mark.unit
def test_agent_listings_requires_agent_id():
    from api.agent_listings import handler
    assert_valid_response(handler(create_vercel_request(query={})), 400)


@pytest.mark.unit
@pytest.mark.parametrize("status,expected", [
    ("active", ["a1", "a2"]),
    ("sold", ["s1"]),
    ("all", ["a1", "a2", "s1"]),
])
def test_agent_listings_buckets(status, expected):
    from api.agent_listings import handler

    engine = MagicMock()
    engine.get_agent_portfolio = AsyncMock(return_value=AgentPortfolio(
        active=[Listing(id="a1"), Listing(id="a2")],
        sold=[Listing(id="s1")],
    ))
    with patch("api.agent_listings.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={
            "agentId": "A1", "soldAgentId": "S1", "agentName": "Jane Doe", "status": status,
        }))

    assert_valid_response(response, 200)
    assert [listing["id"] for listing in response_json(response)["listings"]] == expected
    engine.get_agent_portfolio.assert_awaited_once_with(
        "A1", sold_agent_id_override="S1", agent_display_name="Jane Doe"
    )


@pytest.mark.unit
def test_agent_listings_limit():
    from api.agent_listings import handler

    engine = MagicMock()
    engine.get_agent_portfolio = AsyncMock(return_value=AgentPortfolio(active=[Listing(id=str(i)) for i in range(30)]))
    with patch("api.agent_listings.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={"agentId": "A1"}))

    assert len(response_json(response)["listings"]) == 20


@pytest.mark.unit
def test_open_houses_endpoint():
    from api.open_houses import handler

    engine = MagicMock()
    engine.get_upcoming_open_houses = AsyncMock(return_value=[
        Listing(id="a", open_house_date=date(2026, 10, 20), open_house_start_time="11:00"),
    ])
    with patch("api.open_houses.get_engine", return_value=engine):
        response = handler(create_vercel_request())

    assert_valid_response(response, 200)
    assert response_json(response)["openHouses"][0]["open_house_date"] == "2026-10-20"


@pytest.mark.unit
def test_lead_routing_endpoint():
    from api.leads.routing import handler

    engine = MagicMock()
    engine.resolve_lead_routing = AsyncMock(return_value=AgentRouting(
        agent_email="jane@example.com", agent_name="Jane Doe", is_own_listing=True,
    ))
    with patch("api.leads.routing.get_engine", return_value=engine):
        response = handler(create_vercel_request(query={"mlsId": "100"}))

    assert_valid_response(response, 200)
    assert response_json(response) == {
        "agent_email": "jane@example.com",
        "agent_name": "Jane Doe",
        "is_own_listing": True,
    }
    engine.resolve_lead_routing.assert_awaited_once_with("100")
