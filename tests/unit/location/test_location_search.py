"""Tests for LocationService.search."""

import asyncio

import httpx
import pytest

from aura.core.modules.location.models import Place
from aura.errors import ValidationError


class FakePlaces:
    def __init__(self, places=None, error=None):
        self.places = places or []
        self.error = error
        self.calls = []

    async def text_search(self, query, lat, lng):
        self.calls.append((query, lat, lng))
        if self.error is not None:
            raise self.error
        return self.places


def store(core, *names, lat=3.15, lng=101.71):
    locations = core.database.get_collection("locations")
    for index, name in enumerate(names):
        locations.documents.append(
            {"_id": f"LOC25300000000{index}", "name": name, "address": f"{name} street", "lat": lat, "lng": lng}
        )


class TestSearch:
    def test_enough_good_matches_come_from_db(self, core):
        store(core, "Kopi A", "Kopi B", "Kopi C", "Kopi D", "Kopi E", "Nasi Lemak")
        core.services.location.places = FakePlaces()

        result = asyncio.run(core.services.location.search("3.15,101.71", "kopi"))

        assert result.source == "db"
        assert [loc.name for loc in result.locations] == ["Kopi A", "Kopi B", "Kopi C", "Kopi D", "Kopi E"]
        assert core.services.location.places.calls == []

    def test_lowercase_query_matches_capitalised_names(self, core):
        store(core, "Kopi A")

        result = asyncio.run(core.services.location.search("3.15,101.71", "kopi"))

        assert [loc.name for loc in result.locations] == ["Kopi A"]

    def test_far_locations_filtered_out(self, core):
        store(core, "Kopi Far", lat=40.71, lng=74.0)

        result = asyncio.run(core.services.location.search("3.15,101.71", "Kopi"))

        assert result.source == "db"
        assert result.locations == []

    def test_contains_fallback_when_no_prefix_match(self, core):
        store(core, "Old Kopi House")

        result = asyncio.run(core.services.location.search("3.15,101.71", "kopi"))

        assert [loc.name for loc in result.locations] == ["Old Kopi House"]

    def test_too_few_matches_fetch_and_store_places(self, core):
        store(core, "Kopi A")
        places = [
            Place(name="Kopi A", address="Kopi A street", lat=3.15, lng=101.71),
            Place(name="Kopi Z", address="Jalan Z", lat=3.16, lng=101.72),
        ]
        core.services.location.places = FakePlaces(places)

        result = asyncio.run(core.services.location.search("3.15,101.71", "Kopi"))

        assert result.source == "places"
        assert [loc.name for loc in result.locations] == ["Kopi A", "Kopi Z"]
        assert result.locations[0].id == "LOC253000000000"
        assert result.locations[1].id.startswith("LOC")
        assert len(core.database.get_collection("locations").documents) == 2

    def test_places_failure_falls_back_to_db(self, core):
        store(core, "Kopi A")
        core.services.location.places = FakePlaces(error=httpx.ConnectError("down"))

        result = asyncio.run(core.services.location.search("3.15,101.71", "Kopi"))

        assert result.source == "db"
        assert [loc.name for loc in result.locations] == ["Kopi A"]

    def test_empty_query_rejected(self, core):
        with pytest.raises(ValidationError):
            asyncio.run(core.services.location.search("3.15,101.71", "  "))
