"""Tests for engine settings."""

import pytest
from src.utils.errors import ConfigurationError
from src.utils.settings import EngineSettings


@pytest.mark.unit
def test_from_env_reads_values():
    settings = EngineSettings.from_env({
        "SUPABASE_URL": "https://p.supabase.co",
        "SUPABASE_ANON_KEY": "pk",
        "SECONDARY_SUPABASE_URL": "https://s.supabase.co",
        "SECONDARY_SUPABASE_ANON_KEY": "sk",
        "LEAD_FALLBACK_EMAIL": "leads@example.com",
        "MAX_PAGE_SIZE": "50",
        "ENRICHMENT_CONCURRENCY": "4",
    })

    assert settings.primary_configured
    assert settings.secondary_configured
    assert settings.lead_fallback_email == "leads@example.com"
    assert settings.max_page_size == 50
    assert settings.enrichment_concurrency == 4
    assert settings.default_page_size == 24


@pytest.mark.unit
def test_from_env_defaults_and_bad_numbers():
    settings = EngineSettings.from_env({"PORTFOLIO_LIMIT": "lots", "SECONDARY_SUPABASE_URL": ""})

    assert not settings.primary_configured
    assert not settings.secondary_configured
    assert settings.portfolio_limit == 200
    assert settings.directory_cache_ttl_seconds == 300
    assert settings.site_config_cache_ttl_seconds == 60


@pytest.mark.unit
def test_from_env_rejects_invalid_values():
    with pytest.raises(ConfigurationError):
        EngineSettings.from_env({"MAX_PAGE_SIZE": "0"})
