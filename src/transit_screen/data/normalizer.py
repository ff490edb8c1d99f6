"""Translate the nested (v4) nearby-routes payload into the flat (v3) shape.

v4 groups itineraries that share a closest stop under ``merged_itineraries``,
with the group's departures listed once and tagged with the itinerary they
belong to. The display pipeline expects each itinerary to carry its own stop
and departures, so this module flattens the groups back out.
"""

import logging
from typing import Any

logger = logging.getLogger(__name__)

# Field on a v4 schedule item referencing the itinerary it belongs to
ITINERARY_REF_FIELD = "itinerary_id"


def _require_list(value: Any, name: str) -> list:
    """Return value as a list, treating None as empty and rejecting anything else."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise TypeError(f"Expected '{name}' to be a list, got {type(value).__name__}")
    return value


def _require_dict(value: Any, name: str) -> dict[str, Any]:
    """Return value unchanged if it is a dict, rejecting anything else (including None)."""
    if not isinstance(value, dict):
        raise TypeError(f"Expected '{name}' entry to be an object, got {type(value).__name__}")
    return value


def _group_schedule_items(
    group: dict[str, Any],
) -> tuple[dict[str, list[dict[str, Any]]], list[dict[str, Any]]]:
    """Collect a group's schedule items by itinerary reference, stripping the reference.

    Returns:
        Tuple of (items keyed by itinerary reference, every stripped item in order).
    """
    items_by_itinerary: dict[str, list[dict[str, Any]]] = {}
    all_items: list[dict[str, Any]] = []
    for item in _require_list(group.get("schedule_items"), "schedule_items"):
        item = _require_dict(item, "schedule_items")
        ref = item.get(ITINERARY_REF_FIELD)
        public_item = {k: v for k, v in item.items() if k != ITINERARY_REF_FIELD}
        all_items.append(public_item)
        if ref is not None:
            items_by_itinerary.setdefault(str(ref), []).append(public_item)
    return items_by_itinerary, all_items


def flatten_route(route: dict[str, Any]) -> dict[str, Any]:
    """Flatten a single v4 route into v3 shape.

    Args:
        route: Route dict containing ``merged_itineraries``.

    Returns:
        New route dict with ``itineraries`` and ``schedule_items`` lists.
    """
    route = _require_dict(route, "nearby_routes")
    groups = _require_list(route.get("merged_itineraries"), "merged_itineraries")

    itineraries: list[dict[str, Any]] = []
    schedule_items: list[dict[str, Any]] = []

    for group in groups:
        group = _require_dict(group, "merged_itineraries")
        items_by_itinerary, group_items = _group_schedule_items(group)
        closest_stop = group.get("closest_stop")

        for itinerary in _require_list(group.get("itineraries"), "itineraries"):
            itinerary = _require_dict(itinerary, "itineraries")
            ref = itinerary.get(ITINERARY_REF_FIELD)
            items = items_by_itinerary.get(str(ref), []) if ref is not None else []
            itineraries.append({**itinerary, "closest_stop": closest_stop, "schedule_items": list(items)})

        # flat list kept for clients that predate per-itinerary departures
        schedule_items.extend(group_items)

    flat = {k: v for k, v in route.items() if k != "merged_itineraries"}
    flat["itineraries"] = itineraries
    flat["schedule_items"] = schedule_items
    return flat


def normalize_nearby_payload(payload: Any) -> Any:
    """Convert a v4 nearby-routes payload into the v3 ``{"routes": [...]}`` shape.

    Payloads without a ``nearby_routes`` key are treated as already flat and
    returned unchanged.

    Raises:
        TypeError: If a nested collection is not a list or one of its
            entries is not an object.
    """
    if not isinstance(payload, dict) or "nearby_routes" not in payload:
        return payload

    routes = [flatten_route(route) for route in _require_list(payload["nearby_routes"], "nearby_routes")]
    logger.debug(f"Normalized {len(routes)} routes from v4 payload")

    normalized = {k: v for k, v in payload.items() if k != "nearby_routes"}
    normalized["routes"] = routes
    return normalized
