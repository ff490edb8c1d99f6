"""Match service alerts against the routes and stops shown on screen."""

from collections.abc import Iterable

from transit_screen.models.alerts import Alert, InformedEntity
from transit_screen.models.nearby import Route


def collect_stop_ids(routes: Iterable[Route]) -> frozenset[str]:
    """Collect every closest-stop id across all itineraries of all routes."""
    return frozenset(
        itinerary.closest_stop.global_stop_id
        for route in routes
        for itinerary in route.itineraries
        if itinerary.closest_stop is not None and itinerary.closest_stop.global_stop_id
    )


def entity_matches(entity: InformedEntity, route: Route, stop_ids: frozenset[str]) -> bool:
    """Check one informed entity against a route and the visible stops.

    A trip id never excludes on its own; only route and stop ids narrow the match.
    """
    if entity.is_unscoped:
        return True

    route_ok = entity.global_route_id is None or entity.global_route_id == route.global_route_id
    stop_ok = entity.global_stop_id is None or entity.global_stop_id in stop_ids
    return route_ok and stop_ok


def is_alert_relevant(alert: Alert, route: Route, stop_ids: frozenset[str]) -> bool:
    """Check whether an alert applies to a route given the visible stops.

    Alerts without informed entities apply everywhere.
    """
    if not alert.informed_entities:
        return True
    return any(entity_matches(entity, route, stop_ids) for entity in alert.informed_entities)
