"""Detect headsigns that only name the stop the screen is standing at."""

import re
from functools import lru_cache

from transit_screen.models.nearby import Itinerary

STATION_SUFFIX = re.compile(r"\s*station$", re.IGNORECASE)


@lru_cache(maxsize=1024)
def _terminus_pattern(stop_name: str) -> re.Pattern[str] | None:
    """Build the anchored headsign pattern for a stop, or None if nothing is left to match."""
    core = STATION_SUFFIX.sub("", stop_name.strip().lower()).strip()
    if not core:
        return None
    # "<words> to <core>" or "<core>", each optionally followed by "station"
    return re.compile(rf"^(?:(?:\w+\s+)*to\s+)?{re.escape(core)}(?:\s+station)?$")


def is_redundant_terminus(stop_name: str | None, headsign: str | None) -> bool:
    """Check whether a headsign merely names the stop it departs from.

    Examples (stop "Union Station"):
        "Union Station" -> True
        "North to Union Station" -> True
        "Downtown via Union Station" -> False
    """
    if not stop_name or not headsign:
        return False

    pattern = _terminus_pattern(stop_name)
    if pattern is None:
        return False
    return pattern.match(headsign.strip().lower()) is not None


def is_terminus_itinerary(itinerary: Itinerary) -> bool:
    """Check an itinerary's display headsign against its own closest stop."""
    if itinerary.closest_stop is None:
        return False
    return is_redundant_terminus(itinerary.closest_stop.stop_name, itinerary.display_headsign)
