from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Observed windows ranged from 120 to 240 minutes; 130 matches the current display client.
DEFAULT_DEPARTURE_WINDOW_MINUTES = 130


class ItineraryStrategy(str, Enum):
    """How itineraries are reshaped before display."""

    MERGE = "merge"
    SPLIT = "split"
    NONE = "none"


class TransitConfig(BaseSettings):
    """Configuration for the upstream transit API and the display pipeline.

    Automatically loads from environment variables and .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    api_key: str | None = Field(default=None, alias="TRANSIT_API_KEY")
    api_base_url: str = Field(
        default="https://external.transitapp.com/v3/public", alias="TRANSIT_API_BASE_URL"
    )
    request_timeout: float = Field(default=10.0, alias="TRANSIT_REQUEST_TIMEOUT")

    # Screen location
    latitude: float | None = Field(default=None, alias="TRANSIT_LATITUDE")
    longitude: float | None = Field(default=None, alias="TRANSIT_LONGITUDE")
    max_distance_meters: int = Field(default=500, alias="TRANSIT_MAX_DISTANCE")

    # Display pipeline
    departure_window_minutes: int = Field(
        default=DEFAULT_DEPARTURE_WINDOW_MINUTES, alias="TRANSIT_DEPARTURE_WINDOW_MINUTES"
    )
    group_itineraries_by_stop: bool = Field(default=False, alias="TRANSIT_GROUP_ITINERARIES")
    split_itinerary_variants: bool = Field(default=False, alias="TRANSIT_SPLIT_VARIANTS")
    filter_redundant_terminus: bool = Field(default=False, alias="TRANSIT_FILTER_TERMINUS")

    # Response cache
    realtime_ttl_ms: int = Field(default=5000, alias="REALTIME_CACHE_TTL")
    schedule_ttl_ms: int = Field(default=120000, alias="STATIC_CACHE_TTL")
    max_cache_entries: int = Field(default=100, alias="TRANSIT_MAX_CACHE_ENTRIES")
    cache_sweep_interval_seconds: float = Field(default=60.0, alias="TRANSIT_CACHE_SWEEP_INTERVAL")

    @property
    def itinerary_strategy(self) -> ItineraryStrategy:
        """Resolve the grouping flags into a single strategy (merge wins if both are set)."""
        if self.group_itineraries_by_stop:
            return ItineraryStrategy.MERGE
        if self.split_itinerary_variants:
            return ItineraryStrategy.SPLIT
        return ItineraryStrategy.NONE


@lru_cache
def get_transit_config() -> TransitConfig:
    """Get transit configuration (cached singleton).

    Returns:
        TransitConfig with values from .env file or environment variables.
    """
    return TransitConfig()
