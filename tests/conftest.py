"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock

# Set test environment variables
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("LEAD_FALLBACK_EMAIL", "leads@example.com")
os.environ.setdefault("LOG_FORMAT", "text")

from src.utils.settings import EngineSettings
from tests.utils.factories import create_listing_row, create_secondary_row
from tests.utils.helpers import create_client_mock, create_query_mock


@pytest.fixture
def settings():
    """Engine settings with both sources configured."""
    return EngineSettings(
        supabase_url="https://primary.supabase.co",
        supabase_key="primary-key",
        secondary_supabase_url="https://secondary.supabase.co",
        secondary_supabase_key="secondary-key",
        lead_fallback_email="leads@example.com",
    )


@pytest.fixture
def primary_tables():
    """Query mocks keyed by table name; tests register data before use."""
    return {}


@pytest.fixture
def secondary_tables():
    return {}


@pytest.fixture
def mock_primary_client(primary_tables):
    return create_client_mock(primary_tables)


@pytest.fixture
def mock_secondary_client(secondary_tables):
    return create_client_mock(secondary_tables)


@pytest.fixture
def mock_supabase_client():
    """Bare Supabase client mock."""
    client = MagicMock()
    client.table = MagicMock(return_value=create_query_mock())
    return client


@pytest.fixture
def sample_listing_row():
    return create_listing_row(
        id="row-1",
        listing_id="284512",
        address="123 Main St",
        city="Aspen",
        list_price=2500000,
        listing_date="2026-09-01",
    )


@pytest.fixture
def sample_secondary_row():
    return create_secondary_row(mls_number="284512")
