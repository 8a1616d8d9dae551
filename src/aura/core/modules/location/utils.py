"""Geometry and ranking helpers for location search."""

import math
import re
from collections.abc import Iterable
from typing import NamedTuple

from aura.core.modules.location.models import Location
from aura.errors import ValidationError

EARTH_RADIUS_KM = 6371
COORDINATES_RE = re.compile(r"^\d{1,3}\.\d{0,2},\d{1,3}\.\d{0,2}$")


class BoundingBox(NamedTuple):
    min_lat: float
    max_lat: float
    min_lng: float
    max_lng: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng


def parse_coordinates(value: str) -> tuple[float, float]:
    """Parse ``"lat,lng"`` as sent by the app (e.g. ``"3.15,101.71"``)."""
    if not COORDINATES_RE.fullmatch(value):
        raise ValidationError(f"Invalid location '{value}', expected 'lat,lng'")
    lat, lng = (float(part) for part in value.split(","))
    return lat, lng


def bounding_box(lat: float, lng: float, radius_km: float) -> BoundingBox:
    """Approximate square around a point; good enough for a few hundred km."""
    lat_delta = math.degrees(radius_km / EARTH_RADIUS_KM)
    lng_delta = math.degrees(radius_km / (EARTH_RADIUS_KM * math.cos(math.radians(lat))))
    return BoundingBox(lat - lat_delta, lat + lat_delta, lng - lng_delta, lng + lng_delta)


def score_name(name: str, query: str) -> int:
    """How well a place name matches a lower-cased query.

    3 exact first word, 2 name starts with query, 1 first word starts with
    query, 0 contains it, -1 no match.
    """
    normalized = name.strip().lower()
    words = normalized.split()
    first = words[0] if words else ""
    if first == query:
        return 3
    if normalized.startswith(query):
        return 2
    if first.startswith(query):
        return 1
    if query in normalized:
        return 0
    return -1


def rank_locations(locations: Iterable[Location], query: str) -> list[tuple[int, Location]]:
    """Sort by score (best first), then shorter names, then alphabetically."""
    q = query.strip().lower()
    scored = [(score_name(location.name, q), location) for location in locations]
    return sorted(scored, key=lambda item: (-item[0], len(item[1].name), item[1].name))


def dedupe_locations(locations: Iterable[Location]) -> list[Location]:
    """Drop repeats of the same lower-cased name and address."""
    seen: set[tuple[str, str]] = set()
    unique = []
    for location in locations:
        key = (location.name.lower(), location.address.lower())
        if key not in seen:
            seen.add(key)
            unique.append(location)
    return unique
