"""Tests for redundant-terminus detection."""

import pytest

from transit_screen.matching.terminus_matcher import is_redundant_terminus, is_terminus_itinerary
from transit_screen.models.nearby import ClosestStop, Itinerary


class TestIsRedundantTerminus:
    @pytest.mark.parametrize(
        "headsign",
        [
            "Union Station",
            "Union",
            "union station",
            "North to Union Station",
            "Southbound to Union",
            "To Union Station",
            "  Union Station  ",
        ],
    )
    def test_headsign_naming_the_stop(self, headsign: str) -> None:
        assert is_redundant_terminus("Union Station", headsign) is True

    @pytest.mark.parametrize(
        "headsign",
        [
            "Downtown via Union Station",
            "Union Square",
            "Union Station Bus Terminal",
            "Oakville",
            "Unionville",
        ],
    )
    def test_other_destinations(self, headsign: str) -> None:
        assert is_redundant_terminus("Union Station", headsign) is False

    def test_stop_without_station_suffix(self) -> None:
        assert is_redundant_terminus("Berri-UQAM", "Berri-UQAM Station") is True
        assert is_redundant_terminus("Berri-UQAM", "Berri") is False

    def test_punctuation_before_to_is_not_matched(self) -> None:
        # only word characters may precede "to"
        assert is_redundant_terminus("Union Station", "Eastbound - to Union") is False

    def test_stop_name_with_regex_characters(self) -> None:
        assert is_redundant_terminus("St. George (Bloor)", "St. George (Bloor)") is True
        assert is_redundant_terminus("St. George (Bloor)", "StX George (Bloor)") is False

    def test_empty_core_never_filters(self) -> None:
        assert is_redundant_terminus("Station", "Station") is False
        assert is_redundant_terminus("  ", "Anything") is False

    def test_missing_values(self) -> None:
        assert is_redundant_terminus(None, "Union") is False
        assert is_redundant_terminus("Union Station", None) is False
        assert is_redundant_terminus("Union Station", "") is False


class TestIsTerminusItinerary:
    def test_uses_display_headsign(self) -> None:
        itinerary = Itinerary(
            merged_headsign="Union Station",
            headsign="Downtown",
            closest_stop=ClosestStop(stop_name="Union Station"),
        )
        assert is_terminus_itinerary(itinerary) is True

    def test_no_closest_stop(self) -> None:
        assert is_terminus_itinerary(Itinerary(merged_headsign="Union Station")) is False
