"""Pydantic models for the upstream nearby-routes response.

These models describe the flat (v3-style) shape produced by the format
normalizer. Only the fields the display pipeline reads are modelled.
"""

from pydantic import BaseModel, ConfigDict, Field

from transit_screen.models.alerts import Alert


class ScheduleItem(BaseModel):
    """One scheduled or predicted departure."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    departure_time: int = Field(description="Unix timestamp in seconds")
    scheduled_departure_time: int | None = None
    is_real_time: bool = False
    is_cancelled: bool | None = None
    is_last: bool | None = None
    rt_trip_id: str | None = None
    trip_search_key: str | None = Field(
        default=None, description="Colon-delimited key, e.g. TSL:agency:variant:segment:trip"
    )


class ClosestStop(BaseModel):
    """Stop on an itinerary closest to the screen location."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    stop_name: str | None = None
    global_stop_id: str | None = None
    parent_station_global_stop_id: str | None = None
    stop_lat: float | None = None
    stop_lon: float | None = None
    distance: int | None = Field(default=None, description="Distance reported upstream (meters)")


class Itinerary(BaseModel):
    """One directional variant of a route with its own departures."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    itinerary_id: str | None = None
    direction_id: int | None = None
    headsign: str | None = None
    merged_headsign: str | None = None
    direction_headsign: str | None = None
    branch_code: str | None = None
    closest_stop: ClosestStop | None = None
    variant_id: str | None = None
    schedule_items: list[ScheduleItem] = []

    @property
    def display_headsign(self) -> str | None:
        """Headsign shown to riders (merged, then direction-specific, then plain)."""
        return self.merged_headsign or self.direction_headsign or self.headsign


class RouteDisplayName(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    elements: list[str | None] = []


class Route(BaseModel):
    """A route near the screen location with its itineraries and alerts."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    global_route_id: str
    route_short_name: str | None = None
    route_long_name: str | None = None
    route_color: str | None = None
    route_text_color: str | None = None
    route_display_short_name: RouteDisplayName | None = None
    route_type: int | None = None
    mode_name: str | None = None
    branch_code: str | None = None
    alerts: list[Alert] = []
    itineraries: list[Itinerary] = []
    schedule_items: list[ScheduleItem] = Field(
        default_factory=list, description="Flat list of every itinerary's departures"
    )


class NearbyRoutesResponse(BaseModel):
    """Normalized upstream response."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    routes: list[Route] = []
