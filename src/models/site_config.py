"""Per-deployment site configuration for listing search."""

from pydantic import BaseModel, Field


class ToggleEntry(BaseModel):
    """One configurable value and whether the toggle is switched on."""
    value: str
    enabled: bool = True


class SiteConfiguration(BaseModel):
    """Exclusion and allow lists applied to every search on a site."""
    excluded_property_types: list[ToggleEntry] = Field(default_factory=list)
    excluded_property_sub_types: list[ToggleEntry] = Field(default_factory=list)
    allowed_cities: list[ToggleEntry] = Field(default_factory=list)
    excluded_statuses: list[ToggleEntry] = Field(default_factory=list)

    @staticmethod
    def _enabled(entries: list[ToggleEntry]) -> list[str]:
        return [entry.value for entry in entries if entry.enabled and entry.value]

    def get_excluded_property_types(self) -> list[str]:
        return self._enabled(self.excluded_property_types)

    def get_excluded_property_sub_types(self) -> list[str]:
        return self._enabled(self.excluded_property_sub_types)

    def get_allowed_cities(self) -> list[str]:
        return self._enabled(self.allowed_cities)

    def get_excluded_statuses(self) -> list[str]:
        return self._enabled(self.excluded_statuses)
