"""Departure window filtering for the display.

A departure is shown when it is strictly in the future and no further away
than the configured window.
"""

import time

from transit_screen.data.config import DEFAULT_DEPARTURE_WINDOW_MINUTES
from transit_screen.models.nearby import Itinerary, Route


def should_show_departure(
    departure_time: int,
    window_minutes: int = DEFAULT_DEPARTURE_WINDOW_MINUTES,
    now: float | None = None,
) -> bool:
    """Check whether a departure falls in the display window.

    Args:
        departure_time: Departure as a Unix timestamp in seconds.
        window_minutes: How far ahead departures are shown.
        now: Current Unix time in seconds (default: time.time()).

    Returns:
        True if 0 < time until departure <= window.
    """
    if now is None:
        now = time.time()
    diff_ms = departure_time * 1000 - now * 1000
    return 0 < diff_ms <= window_minutes * 60_000


def has_shown_departure(
    route: Route,
    itinerary: Itinerary | None = None,
    window_minutes: int = DEFAULT_DEPARTURE_WINDOW_MINUTES,
    now: float | None = None,
) -> bool:
    """Check whether an itinerary (or, without one, any of the route's itineraries)
    has at least one departure in the display window."""
    if now is None:
        now = time.time()

    if itinerary is not None:
        return any(
            should_show_departure(item.departure_time, window_minutes, now)
            for item in itinerary.schedule_items
        )
    return any(has_shown_departure(route, itin, window_minutes, now) for itin in route.itineraries)


def filter_departure_window(
    routes: list[Route],
    window_minutes: int = DEFAULT_DEPARTURE_WINDOW_MINUTES,
    now: float | None = None,
) -> list[Route]:
    """Drop departures outside the window, then itineraries and routes left empty."""
    if now is None:
        now = time.time()

    result: list[Route] = []
    for route in routes:
        itineraries = []
        for itinerary in route.itineraries:
            items = [
                item
                for item in itinerary.schedule_items
                if should_show_departure(item.departure_time, window_minutes, now)
            ]
            if items:
                itineraries.append(itinerary.model_copy(update={"schedule_items": items}))
        if itineraries:
            result.append(route.model_copy(update={"itineraries": itineraries}))
    return result
