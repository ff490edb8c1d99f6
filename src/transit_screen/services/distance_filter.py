"""Client-side distance check for routes returned by the upstream API.

The upstream radius parameter is not reliable, so routes are re-checked
against the actual coordinates of their closest stops.
"""

import math

from transit_screen.models.nearby import ClosestStop, Route

# Earth's radius in meters for haversine calculation
EARTH_RADIUS_METERS = 6_371_000


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Calculate the great-circle distance between two points in meters.

    Args:
        lat1, lon1: First point coordinates in degrees.
        lat2, lon2: Second point coordinates in degrees.

    Returns:
        Distance in meters.
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def stop_within(stop: ClosestStop | None, latitude: float, longitude: float, max_distance: float) -> bool:
    """Check whether a stop lies within max_distance meters; stops without coordinates never do."""
    if stop is None or stop.stop_lat is None or stop.stop_lon is None:
        return False
    return haversine_distance(latitude, longitude, stop.stop_lat, stop.stop_lon) <= max_distance


def filter_routes_by_distance(
    routes: list[Route], latitude: float, longitude: float, max_distance: float
) -> list[Route]:
    """Keep routes with at least one itinerary whose closest stop is within max_distance."""
    return [
        route
        for route in routes
        if any(
            stop_within(itinerary.closest_stop, latitude, longitude, max_distance)
            for itinerary in route.itineraries
        )
    ]
