"""Heuristic matching of headsigns and alerts against the screen location."""

from transit_screen.matching.alert_matcher import (
    collect_stop_ids,
    entity_matches,
    is_alert_relevant,
)
from transit_screen.matching.terminus_matcher import (
    is_redundant_terminus,
    is_terminus_itinerary,
)

__all__ = [
    # Alerts
    "collect_stop_ids",
    "entity_matches",
    "is_alert_relevant",
    # Terminus
    "is_redundant_terminus",
    "is_terminus_itinerary",
]
