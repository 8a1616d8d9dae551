"""Tests for location search helpers."""

import pytest

from aura.core.modules.location.models import Location
from aura.core.modules.location.utils import (
    bounding_box,
    dedupe_locations,
    parse_coordinates,
    rank_locations,
    score_name,
)
from aura.errors import ValidationError


def location(name: str, address: str = "Kuala Lumpur", lat: float = 3.15, lng: float = 101.71) -> Location:
    return Location(id=f"LOC-{name}", name=name, address=address, lat=lat, lng=lng)


class TestParseCoordinates:
    def test_valid(self):
        assert parse_coordinates("3.15,101.71") == (3.15, 101.71)
        assert parse_coordinates("3.,101.7") == (3.0, 101.7)

    @pytest.mark.parametrize("value", ["3.15, 101.71", "3,101", "-3.15,101.71", "3.155,101.71", "abc"])
    def test_invalid(self, value):
        with pytest.raises(ValidationError, match="Invalid location"):
            parse_coordinates(value)


class TestBoundingBox:
    def test_contains_center_and_excludes_far_points(self):
        box = bounding_box(3.15, 101.71, 300)
        assert box.contains(3.15, 101.71)
        assert box.contains(5.41, 100.33)  # Penang
        assert not box.contains(1.35, 103.82 + 5)

    def test_radius_in_degrees_of_latitude(self):
        box = bounding_box(0, 0, 111.19)
        assert box.max_lat == pytest.approx(1.0, abs=0.01)
        assert box.min_lat == pytest.approx(-1.0, abs=0.01)


class TestScoreName:
    """Tests for score_name function."""

    def test_exact_first_word(self):
        assert score_name("Starbucks KLCC", "starbucks") == 3

    def test_name_prefix(self):
        assert score_name("Starbucks KLCC", "starb") == 2

    def test_first_word_prefix_after_whitespace(self):
        assert score_name("  Starbucks", "starb") == 2
        assert score_name("Star Bucks", "star b") == 2

    def test_contains(self):
        assert score_name("Old Town Kopitiam", "town") == 0

    def test_no_match(self):
        assert score_name("Old Town Kopitiam", "mamak") == -1


class TestRankLocations:
    def test_order_by_score_then_length_then_name(self):
        ranked = rank_locations(
            [location("Old Village Cafe"), location("Village Park"), location("Village"), location("Villa Cafe")],
            "Village",
        )
        assert [loc.name for _, loc in ranked] == ["Village", "Village Park", "Old Village Cafe", "Villa Cafe"]
        assert [score for score, _ in ranked] == [3, 3, 0, -1]


class TestDedupeLocations:
    def test_same_name_and_address_ignoring_case(self):
        unique = dedupe_locations([location("KLCC"), location("klcc"), location("KLCC", address="Penang")])
        assert [(loc.name, loc.address) for loc in unique] == [("KLCC", "Kuala Lumpur"), ("KLCC", "Penang")]
