"""Tests for alert relevance matching."""

from transit_screen.matching.alert_matcher import collect_stop_ids, entity_matches, is_alert_relevant
from transit_screen.models.alerts import Alert, InformedEntity
from transit_screen.models.nearby import ClosestStop, Itinerary, Route


def _route(route_id: str = "R1", stop_ids: tuple[str, ...] = ("S1",)) -> Route:
    return Route(
        global_route_id=route_id,
        itineraries=[
            Itinerary(closest_stop=ClosestStop(global_stop_id=stop_id)) for stop_id in stop_ids
        ],
    )


STOPS = frozenset({"S1"})


class TestCollectStopIds:
    def test_collects_across_routes(self) -> None:
        routes = [_route("R1", ("S1", "S2")), _route("R2", ("S2", "S3"))]
        assert collect_stop_ids(routes) == frozenset({"S1", "S2", "S3"})

    def test_skips_missing_stops(self) -> None:
        route = Route(
            global_route_id="R1",
            itineraries=[Itinerary(), Itinerary(closest_stop=ClosestStop(stop_name="No id"))],
        )
        assert collect_stop_ids([route]) == frozenset()


class TestEntityMatches:
    def test_unscoped_entity_matches(self) -> None:
        assert entity_matches(InformedEntity(), _route(), STOPS) is True

    def test_route_only(self) -> None:
        assert entity_matches(InformedEntity(global_route_id="R1"), _route(), STOPS) is True
        assert entity_matches(InformedEntity(global_route_id="R2"), _route(), STOPS) is False

    def test_stop_only(self) -> None:
        assert entity_matches(InformedEntity(global_stop_id="S1"), _route(), STOPS) is True
        assert entity_matches(InformedEntity(global_stop_id="S9"), _route(), STOPS) is False

    def test_route_and_stop_must_both_match(self) -> None:
        entity = InformedEntity(global_route_id="R1", global_stop_id="S9")
        assert entity_matches(entity, _route(), STOPS) is False

    def test_trip_only_matches(self) -> None:
        assert entity_matches(InformedEntity(rt_trip_id="T1"), _route(), STOPS) is True

    def test_numeric_ids_coerced(self) -> None:
        entity = InformedEntity.model_validate({"global_route_id": 24})
        assert entity_matches(entity, _route("24"), STOPS) is True


class TestIsAlertRelevant:
    def test_no_entities_is_global(self) -> None:
        assert is_alert_relevant(Alert(title="Strike"), _route(), STOPS) is True

    def test_any_entity_matching(self) -> None:
        alert = Alert(
            informed_entities=[
                InformedEntity(global_route_id="R2"),
                InformedEntity(global_stop_id="S1"),
            ]
        )
        assert is_alert_relevant(alert, _route(), STOPS) is True

    def test_no_entity_matching(self) -> None:
        alert = Alert(
            informed_entities=[
                InformedEntity(global_route_id="R2"),
                InformedEntity(global_stop_id="S9"),
            ]
        )
        assert is_alert_relevant(alert, _route(), STOPS) is False
