"""Engine configuration loaded from environment variables."""

import os
from typing import Mapping, Optional
from pydantic import BaseModel, Field, ValidationError

from src.utils.errors import ConfigurationError


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class EngineSettings(BaseModel):
    """Per-process settings; built once at startup and passed into the engine."""
    supabase_url: Optional[str] = Field(None, description="Primary listing store URL")
    supabase_key: Optional[str] = Field(None, description="Primary listing store anon key")
    secondary_supabase_url: Optional[str] = Field(None, description="Secondary media source URL")
    secondary_supabase_key: Optional[str] = Field(None, description="Secondary media source anon key")
    lead_fallback_email: str = Field(default="", description="Lead recipient when no agent matches")
    default_page_size: int = Field(default=24, ge=1)
    max_page_size: int = Field(default=100, ge=1)
    enrichment_concurrency: int = Field(default=8, ge=1)
    portfolio_limit: int = Field(default=200, ge=1)
    directory_cache_ttl_seconds: int = Field(default=300, ge=0)
    site_config_cache_ttl_seconds: int = Field(default=60, ge=0)

    @property
    def primary_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def secondary_configured(self) -> bool:
        return bool(self.secondary_supabase_url and self.secondary_supabase_key)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "EngineSettings":
        """Build settings from environment variables."""
        env = os.environ if env is None else env
        try:
            return cls(
                supabase_url=env.get("SUPABASE_URL") or None,
                supabase_key=env.get("SUPABASE_ANON_KEY") or None,
                secondary_supabase_url=env.get("SECONDARY_SUPABASE_URL") or None,
                secondary_supabase_key=env.get("SECONDARY_SUPABASE_ANON_KEY") or None,
                lead_fallback_email=env.get("LEAD_FALLBACK_EMAIL", ""),
                default_page_size=_env_int(env, "DEFAULT_PAGE_SIZE", 24),
                max_page_size=_env_int(env, "MAX_PAGE_SIZE", 100),
                enrichment_concurrency=_env_int(env, "ENRICHMENT_CONCURRENCY", 8),
                portfolio_limit=_env_int(env, "PORTFOLIO_LIMIT", 200),
                directory_cache_ttl_seconds=_env_int(env, "DIRECTORY_CACHE_TTL_SECONDS", 300),
                site_config_cache_ttl_seconds=_env_int(env, "SITE_CONFIG_CACHE_TTL_SECONDS", 60),
            )
        except ValidationError as e:
            raise ConfigurationError(f"Invalid engine settings: {e}") from e
