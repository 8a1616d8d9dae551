from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from aura.core.db import MongoModel
from aura.utils import now


class Place(BaseModel):
    """A named point, as returned by the places text search."""

    name: str
    address: str
    lat: float
    lng: float


class Location(MongoModel):
    """Known place. Indexed on name (prefix search) and (name, address)."""

    name: str
    address: str
    lat: float
    lng: float
    created_at: datetime = Field(default_factory=now)


class LocationRef(BaseModel):
    """Location snapshot embedded in events."""

    id: str = Field(..., description="Location ID")
    name: str = Field(..., description="Place name")
    address: str = Field(..., description="Formatted address")
    lat: float = Field(..., ge=-90, le=90, description="Latitude")
    lng: float = Field(..., ge=-180, le=180, description="Longitude")


class LocationSearchResult(BaseModel):
    """Search outcome and where it came from."""

    source: Literal["db", "places"] = Field(..., description="'db' for stored locations, 'places' after a places sync")
    locations: list[Location] = Field(..., description="Matching locations, best first")
