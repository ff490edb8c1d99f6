from transit_screen.app import mcp
from transit_screen.models.responses import GetServiceAlertsResponse
from transit_screen.services.nearby_service import (
    get_service_alerts as _get_service_alerts,
)


@mcp.tool()
async def get_service_alerts(
    latitude: float | None = None,
    longitude: float | None = None,
    max_distance: int | None = None,
    limit: int = 50,
) -> GetServiceAlertsResponse:
    """Get service alerts affecting the routes and stops near a location.

    Only alerts relevant to a displayed route or stop are returned. Severe
    and warning alerts come first.

    Args:
        latitude: Latitude of the screen (default: configured location).
        longitude: Longitude of the screen (default: configured location).
        max_distance: Search radius in meters (default: configured distance).
        limit: Maximum number of alerts to return (1-100, default: 50).

    Returns:
        GetServiceAlertsResponse with ranked alerts.
    """
    # Validate and clamp limit to 1-100
    limit = max(1, min(100, limit))

    return await _get_service_alerts(
        latitude=latitude,
        longitude=longitude,
        max_distance=max_distance,
        limit=limit,
    )
