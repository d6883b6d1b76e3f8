"""Site configuration - per-deployment search exclusions loaded from the primary store."""

import time
from typing import Callable, Optional, Sequence
from supabase import Client

from src.models.search import ListingFilters
from src.models.site_config import SiteConfiguration
from src.services.supabase_client import PRIMARY, SupabaseClient, execute_query, rows_of
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)

SITE_CONFIGURATION_TABLE = "site_configuration"

# Applied by the public search route regardless of configuration
ALWAYS_EXCLUDED_PROPERTY_TYPES = ("Commercial Sale",)


class SiteConfigProvider:
    """Loads the single site configuration row, cached for ``ttl_seconds``."""

    def __init__(
        self,
        client: Optional[Client],
        ttl_seconds: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._config: Optional[SiteConfiguration] = None
        self._loaded_at = 0.0

    async def get(self) -> SiteConfiguration:
        """Current configuration; an empty one when it cannot be loaded."""
        if self._config is not None and self._clock() - self._loaded_at < self.ttl_seconds:
            return self._config

        try:
            async with SupabaseClient(self.client, PRIMARY) as client:
                query = client.table(SITE_CONFIGURATION_TABLE).select("*").limit(1)
                rows = rows_of(await execute_query(query, PRIMARY, "load_site_configuration"))
            config = SiteConfiguration.model_validate(rows[0]) if rows else SiteConfiguration()
        except Exception as e:
            logger.warning("Site configuration unavailable, using defaults", error=str(e))
            # Not cached, so the next call retries
            return SiteConfiguration()

        self._config = config
        self._loaded_at = self._clock()
        return config


def _merge(existing: Optional[list[str]], extra: Sequence[str]) -> Optional[list[str]]:
    merged = list(existing or [])
    for value in extra:
        if value not in merged:
            merged.append(value)
    return merged or None


def apply_site_config(
    filters: ListingFilters,
    config: SiteConfiguration,
    always_excluded_property_types: Sequence[str] = (),
) -> ListingFilters:
    """Return a copy of ``filters`` with the site's exclusion and allow lists merged in."""
    return filters.model_copy(update={
        "excluded_property_types": _merge(
            filters.excluded_property_types,
            [*config.get_excluded_property_types(), *always_excluded_property_types],
        ),
        "excluded_property_sub_types": _merge(
            filters.excluded_property_sub_types, config.get_excluded_property_sub_types()
        ),
        "allowed_cities": _merge(filters.allowed_cities, config.get_allowed_cities()),
        "excluded_statuses": _merge(filters.excluded_statuses, config.get_excluded_statuses()),
    })
