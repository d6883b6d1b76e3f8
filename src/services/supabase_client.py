"""Supabase client handles for the primary and secondary sources."""

import asyncio
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.utils.errors import SourceQueryError, SourceUnavailableError
from src.utils.logging import get_structured_logger, mask_sensitive_data
from src.utils.settings import EngineSettings

logger = get_structured_logger(__name__)

PRIMARY = "primary"
SECONDARY = "secondary"


def _client_options() -> ClientOptions:
    # Read-only anon access; no auth session to keep alive
    return ClientOptions(
        auto_refresh_token=False,
        persist_session=False,
    )


def create_primary_client(settings: EngineSettings) -> Optional[Client]:
    """
    Create the primary listing store client.

    Returns None when SUPABASE_URL or SUPABASE_ANON_KEY is missing; every read
    then fails with SourceUnavailableError and degrades to an empty or fallback
    result.
    """
    if not settings.primary_configured:
        logger.warning("Primary source not configured; SUPABASE_URL and SUPABASE_ANON_KEY must be set")
        return None

    client = create_client(settings.supabase_url, settings.supabase_key, _client_options())
    logger.info("Primary Supabase client initialized", url=settings.supabase_url)
    return client


def create_secondary_client(settings: EngineSettings) -> Optional[Client]:
    """Create the secondary media source client, or None when it is not configured."""
    if not settings.secondary_configured:
        logger.info("Secondary source not configured; enrichment disabled")
        return None

    try:
        client = create_client(
            settings.secondary_supabase_url,
            settings.secondary_supabase_key,
            _client_options(),
        )
    except Exception as e:
        logger.warning("Secondary Supabase client creation failed", error=str(e))
        return None

    logger.info("Secondary Supabase client initialized", url=settings.secondary_supabase_url)
    return client


class SupabaseClient:
    """Async context manager around an injected client handle for one source."""

    def __init__(self, client: Optional[Client], source: str):
        self.client = client
        self.source = source

    async def __aenter__(self) -> Client:
        if self.client is None:
            raise SourceUnavailableError(f"{self.source} source is not configured")
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                source=self.source,
                error=mask_sensitive_data(str(exc_val)),
                error_type=exc_type.__name__
            )
        return False


async def execute_query(query: Any, source: str, operation: str) -> Any:
    """
    Execute a postgrest query off the event loop.

    The supabase-py client is synchronous, so each execute() runs in a worker
    thread; that lets independent queries overlap under asyncio.gather.
    Failures are re-raised as SourceQueryError.
    """
    try:
        return await asyncio.to_thread(query.execute)
    except Exception as e:
        raise SourceQueryError(source, operation, e) from e


def rows_of(response: Any) -> list[dict]:
    """Rows from a postgrest response, tolerating a missing payload."""
    data = getattr(response, "data", None)
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        return [data]
    return []


def count_of(response: Any) -> int:
    count = getattr(response, "count", None)
    return count if isinstance(count, int) else 0
