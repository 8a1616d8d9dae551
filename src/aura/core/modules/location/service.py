import asyncio
import re
from typing import Any

import httpx
import structlog
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.location.models import Location, LocationSearchResult, Place
from aura.core.modules.location.places import PlacesClient
from aura.core.modules.location.utils import bounding_box, dedupe_locations, parse_coordinates, rank_locations
from aura.errors import ValidationError

logger = structlog.get_logger(__name__)

PREFIX_MATCH_LIMIT = 100
FALLBACK_SAMPLE_SIZE = 50


class LocationService(Service):
    """Searches stored locations and tops them up from the places API."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("locations")
        self.places: PlacesClient | None = None

    async def on_start(self) -> None:
        await self._collection.create_index([("name", 1)])
        await self._collection.create_index([("name", 1), ("address", 1)])
        config = self.core.config
        if config.google_maps_api_key:
            self.places = PlacesClient(config.google_maps_api_key, config.places_api_url)

    async def on_stop(self) -> None:
        if self.places is not None:
            await self.places.aclose()

    async def search(self, coordinates: str, query: str) -> LocationSearchResult:
        """Find locations near ``coordinates`` ("lat,lng") whose name matches ``query``.

        Stored locations are returned when there are enough good matches; otherwise
        the places API is asked (when configured) and its results are stored.
        """
        lat, lng = parse_coordinates(coordinates)
        q = query.strip()
        if not q:
            raise ValidationError("Query cannot be empty")

        exact, capitalized = await asyncio.gather(self._prefix_search(q), self._prefix_search(q[0].upper() + q[1:]))
        candidates = dedupe_locations([*exact, *capitalized])
        if not candidates:
            candidates = await self._contains_search(q)

        box = bounding_box(lat, lng, self.core.config.location_search_radius_km)
        ranked = rank_locations((location for location in candidates if box.contains(location.lat, location.lng)), q)
        locations = [location for _, location in ranked]
        best_score = ranked[0][0] if ranked else -1

        db_result = LocationSearchResult(source="db", locations=locations)
        if best_score != 0 and len(locations) >= self.core.config.location_min_results:
            return db_result
        if self.places is None:
            return db_result

        try:
            places = await self.places.text_search(q, lat, lng)
        except httpx.HTTPError:
            logger.exception("places_search_failed", query=q)
            return db_result

        stored = await asyncio.gather(*(self._store_place(place) for place in places))
        logger.info("locations_synced", query=q, count=len(stored))
        return LocationSearchResult(source="places", locations=list(stored))

    async def _prefix_search(self, prefix: str) -> list[Location]:
        cursor = (
            self._collection.find({"name": {"$regex": f"^{re.escape(prefix)}"}}).sort("name", 1).limit(PREFIX_MATCH_LIMIT)
        )
        return await Location.list_cursor(cursor)

    async def _contains_search(self, query: str) -> list[Location]:
        """Scan a sample of locations for the query anywhere in name or address."""
        cursor = self._collection.find({}).sort("name", 1).limit(FALLBACK_SAMPLE_SIZE)
        sample = await Location.list_cursor(cursor)
        q = query.lower()
        return [location for location in sample if q in location.name.lower() or q in location.address.lower()]

    async def _store_place(self, place: Place) -> Location:
        existing = await self._collection.find_one({"name": place.name, "address": place.address})
        if existing is not None:
            return Location.model_validate(existing)

        location_id = await self.core.services.counter.next_id(IdSeries.LOCATION)
        location = Location(id=location_id, **place.model_dump())
        await self._collection.insert_one(location.to_mongo())
        return location
