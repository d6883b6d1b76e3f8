"""Tests for the typed predicate DSL."""

import pytest

from src.services.predicates import (
    AnyOf,
    Eq,
    Gte,
    ILike,
    In,
    Lte,
    NotIn,
    NotNull,
    apply_predicates,
    quote_value,
)
from tests.utils.helpers import called_with, create_query_mock


@pytest.mark.unit
class TestRendering:
    """Filter fragments for or=() groups."""

    def test_quote_value(self):
        assert quote_value("Aspen") == "Aspen"
        assert quote_value("Snowmass Village") == '"Snowmass Village"'
        assert quote_value('a,b') == '"a,b"'

    def test_ilike_uses_star_wildcard(self):
        assert ILike("address", "%main%").to_filter() == "address.ilike.*main*"

    def test_numbers_render_without_trailing_zero(self):
        assert Gte("list_price", 100000.0).to_filter() == "list_price.gte.100000"
        assert Lte("bathrooms_total", 2.5).to_filter() == 'bathrooms_total.lte."2.5"'

    def test_in_list(self):
        assert In("city", ["Aspen", "Basalt"]).to_filter() == "city.in.(Aspen,Basalt)"

    def test_not_in_null_carve_out(self):
        predicate = NotIn("property_type", ["Commercial Sale"])
        assert predicate.to_filter() == 'property_type.is.null,property_type.not.in.("Commercial Sale")'

    def test_any_of_joins_alternatives(self):
        predicate = AnyOf([ILike("listing_id", "%12%"), ILike("address", "%12%")])
        assert predicate.to_filter() == "listing_id.ilike.*12*,address.ilike.*12*"


@pytest.mark.unit
class TestApply:
    """Predicates drive the postgrest builder."""

    def test_simple_predicates(self):
        query = create_query_mock()
        apply_predicates(query, [Eq("status", "Active"), Gte("list_price", 0), In("city", ["Aspen"])])
        assert called_with(query, "eq") == [("status", "Active")]
        assert called_with(query, "gte") == [("list_price", 0)]
        assert called_with(query, "in_") == [("city", ["Aspen"])]

    def test_nullable_not_in_uses_or_group(self):
        query = create_query_mock()
        NotIn("status", ["Closed", "Expired"]).apply(query)
        assert called_with(query, "or_") == [("status.is.null,status.not.in.(Closed,Expired)",)]

    def test_strict_not_in_uses_negation(self):
        query = create_query_mock()
        NotIn("status", ["Closed"], keep_nulls=False).apply(query)
        assert called_with(query, "in_") == [("status", ["Closed"])]
        assert query.or_.call_count == 0

    def test_not_null(self):
        query = create_query_mock()
        NotNull("list_price").apply(query)
        assert called_with(query, "is_") == [("list_price", "null")]

