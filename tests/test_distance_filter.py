"""Tests for the Haversine distance filter."""

import math

import pytest

from transit_screen.models.nearby import ClosestStop, Itinerary, Route
from transit_screen.services.distance_filter import (
    filter_routes_by_distance,
    haversine_distance,
    stop_within,
)

ORIGIN = (45.5017, -73.5673)
NEARBY = (45.5040, -73.5673)
FAR = (45.5200, -73.5673)


def _route(route_id: str, *stops: tuple[float, float] | None) -> Route:
    return Route(
        global_route_id=route_id,
        itineraries=[
            Itinerary(
                closest_stop=None
                if stop is None
                else ClosestStop(stop_lat=stop[0], stop_lon=stop[1])
            )
            for stop in stops
        ],
    )


class TestHaversineDistance:
    def test_same_point(self) -> None:
        assert haversine_distance(*ORIGIN, *ORIGIN) == 0

    def test_one_degree_latitude(self) -> None:
        expected = 6_371_000 * math.pi / 180
        assert haversine_distance(0, 0, 1, 0) == pytest.approx(expected)

    def test_symmetric(self) -> None:
        assert haversine_distance(*ORIGIN, *FAR) == pytest.approx(haversine_distance(*FAR, *ORIGIN))


class TestStopWithin:
    def test_exact_distance_is_inclusive(self) -> None:
        d = haversine_distance(*ORIGIN, *NEARBY)
        stop = ClosestStop(stop_lat=NEARBY[0], stop_lon=NEARBY[1])

        assert stop_within(stop, *ORIGIN, d) is True
        assert stop_within(stop, *ORIGIN, d - 1) is False

    def test_missing_coordinates(self) -> None:
        assert stop_within(None, *ORIGIN, 1000) is False
        assert stop_within(ClosestStop(stop_lat=45.5), *ORIGIN, 1000) is False


class TestFilterRoutesByDistance:
    def test_keeps_route_with_any_close_stop(self) -> None:
        routes = [
            _route("near", FAR, NEARBY),
            _route("far", FAR),
            _route("unknown", None),
        ]

        result = filter_routes_by_distance(routes, *ORIGIN, 500)

        assert [r.global_route_id for r in result] == ["near"]
        # the route is kept whole
        assert len(result[0].itineraries) == 2

    def test_empty(self) -> None:
        assert filter_routes_by_distance([], *ORIGIN, 500) == []
