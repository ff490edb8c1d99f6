from transit_screen.app import mcp
from transit_screen.models.responses import GetNearbyRoutesResponse
from transit_screen.services.nearby_service import (
    get_nearby_routes as _get_nearby_routes,
)


@mcp.tool()
async def get_nearby_routes(
    latitude: float | None = None,
    longitude: float | None = None,
    max_distance: int | None = None,
) -> GetNearbyRoutesResponse:
    """Get upcoming departures for transit routes near a location.

    Routes are ready for display: itineraries are merged or split per
    configuration, departures outside the display window are dropped, and
    itineraries whose destination is the stop itself can be hidden.

    When api_available is False, the error block says why (rate limit with
    retry_after_seconds, authentication, timeout, unavailable, or invalid request).

    Args:
        latitude: Latitude of the screen (default: configured location).
        longitude: Longitude of the screen (default: configured location).
        max_distance: Search radius in meters (50-1500, default: configured distance).

    Returns:
        GetNearbyRoutesResponse with display-ready routes.
    """
    if max_distance is not None:
        # Validate and clamp radius to 50-1500 meters
        max_distance = max(50, min(1500, max_distance))

    return await _get_nearby_routes(
        latitude=latitude,
        longitude=longitude,
        max_distance=max_distance,
    )
