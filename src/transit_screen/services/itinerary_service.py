"""Reshape a route's itineraries before display.

Two independent strategies address opposite upstream defects:

- merge_itineraries combines itineraries that show the same destination
  (distinct physical variants reported separately).
- split_itinerary separates an itinerary whose departures belong to several
  branches (over-merged upstream), using the variant id in each trip key.

They are not inverses; configuration picks one, the other, or neither.
"""

from collections.abc import Iterable

from transit_screen.data.config import ItineraryStrategy
from transit_screen.models.nearby import Itinerary, Route, ScheduleItem

UNKNOWN_DIRECTION = "undefined"
UNKNOWN_HEADSIGN = "unknown"
UNKNOWN_VARIANT = "unknown"


def merge_key(itinerary: Itinerary) -> str:
    """Key identifying an itinerary's destination card: direction plus display headsign."""
    direction = UNKNOWN_DIRECTION if itinerary.direction_id is None else str(itinerary.direction_id)
    return f"{direction}_{itinerary.display_headsign or UNKNOWN_HEADSIGN}"


def sort_schedule_items(items: Iterable[ScheduleItem]) -> list[ScheduleItem]:
    return sorted(items, key=lambda item: item.departure_time)


def merge_itineraries(itineraries: list[Itinerary]) -> list[Itinerary]:
    """Combine itineraries sharing a merge key into one.

    Groups keep the order in which their first member appears. The first
    member of a group is used as the template for display attributes (members
    are assumed to agree on them) and receives every member's departures,
    sorted by departure time.
    """
    groups: dict[str, list[Itinerary]] = {}
    for itinerary in itineraries:
        groups.setdefault(merge_key(itinerary), []).append(itinerary)

    merged: list[Itinerary] = []
    for members in groups.values():
        if len(members) == 1:
            merged.append(members[0])
            continue

        items = [item for member in members for item in member.schedule_items]
        merged.append(members[0].model_copy(update={"schedule_items": sort_schedule_items(items)}))
    return merged


def parse_variant_id(trip_search_key: str | None) -> str | None:
    """Extract the variant id from a trip search key.

    Format: TSL:agency:variant:segment:trip

    Example: "TSL:50430640:1883:6:74" -> "1883"
    """
    if not trip_search_key:
        return None
    parts = trip_search_key.split(":")
    if len(parts) < 3:
        return None
    return parts[2] or None


def group_by_variant(items: list[ScheduleItem]) -> dict[str, list[ScheduleItem]]:
    """Group schedule items by variant id, using "unknown" when the key has none.

    Unknown items are folded into the largest real variant when one exists
    (ties go to the variant seen first), so a missing trip key doesn't create
    a spurious branch. Items keep their original relative order, so folded
    items stay interleaved by position instead of being appended after the
    variant's own items.
    """
    keys = [parse_variant_id(item.trip_search_key) or UNKNOWN_VARIANT for item in items]

    counts: dict[str, int] = {}
    for key in keys:
        counts[key] = counts.get(key, 0) + 1

    real_variants = [key for key in counts if key != UNKNOWN_VARIANT]
    if UNKNOWN_VARIANT in counts and real_variants:
        dominant = real_variants[0]
        for key in real_variants[1:]:
            if counts[key] > counts[dominant]:
                dominant = key
        keys = [dominant if key == UNKNOWN_VARIANT else key for key in keys]

    groups: dict[str, list[ScheduleItem]] = {}
    for key, item in zip(keys, items):
        groups.setdefault(key, []).append(item)
    return groups


def _variant_id(key: str) -> str | None:
    return None if key == UNKNOWN_VARIANT else key


def split_itinerary(itinerary: Itinerary) -> list[Itinerary]:
    """Split an over-merged itinerary into one itinerary per variant."""
    if not itinerary.schedule_items:
        return [itinerary]

    groups = group_by_variant(itinerary.schedule_items)

    if len(groups) == 1:
        (key,) = groups
        return [itinerary.model_copy(update={"variant_id": _variant_id(key)})]

    return [
        itinerary.model_copy(update={"variant_id": _variant_id(key), "schedule_items": items})
        for key, items in groups.items()
    ]


def split_itineraries(itineraries: list[Itinerary]) -> list[Itinerary]:
    return [split for itinerary in itineraries for split in split_itinerary(itinerary)]


def apply_itinerary_strategy(route: Route, strategy: ItineraryStrategy) -> Route:
    """Return a copy of route with its itineraries merged, split, or untouched."""
    if strategy == ItineraryStrategy.MERGE:
        return route.model_copy(update={"itineraries": merge_itineraries(route.itineraries)})
    if strategy == ItineraryStrategy.SPLIT:
        return route.model_copy(update={"itineraries": split_itineraries(route.itineraries)})
    return route
