"""Test helper functions."""

import json
from typing import Any, Dict, Iterable, Optional
from unittest.mock import MagicMock

# postgrest builder methods that return the builder itself
CHAINABLE_METHODS = (
    "select", "eq", "neq", "ilike", "gte", "lte", "in_", "is_", "or_",
    "order", "range", "limit", "contains",
)


def create_query_mock(
    data: Optional[list] = None,
    count: Optional[int] = None,
    error: Optional[Exception] = None,
) -> MagicMock:
    """MagicMock standing in for a postgrest request builder."""
    query = MagicMock()
    for method in CHAINABLE_METHODS:
        getattr(query, method).return_value = query
    query.not_ = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data if data is not None else [], count=count)
    return query


def create_client_mock(tables: Optional[Dict[str, MagicMock]] = None) -> MagicMock:
    """Supabase client whose ``table(name)`` returns the query mock registered for ``name``."""
    tables = {} if tables is None else tables
    client = MagicMock()
    client.table.side_effect = lambda name: tables.setdefault(name, create_query_mock())
    return client


def called_with(query: MagicMock, method: str) -> list:
    """Positional argument tuples of every call to one builder method."""
    return [call.args for call in getattr(query, method).call_args_list]


def create_vercel_request(
    method: str = "GET",
    path: str = "/api/listings/search",
    query: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Dict[str, Any]:
    """Create a Vercel request object for testing."""
    return {
        "method": method,
        "path": path,
        "headers": headers or {},
        "body": "",
        "query": query or {},
    }


def response_json(response: Dict[str, Any]) -> Any:
    return json.loads(response["body"])


def ids_of(listings: Iterable) -> list:
    return [listing.id for listing in listings]
