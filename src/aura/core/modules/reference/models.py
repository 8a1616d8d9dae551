"""References: saved now-event drafts that can be reused to set up a meetup."""

from datetime import datetime

from pydantic import BaseModel, Field

from aura.core.db import MongoModel
from aura.core.modules.event.models import Participant
from aura.core.modules.location.models import LocationRef
from aura.utils import now


class ReferenceData(BaseModel):
    """Editable fields of a reference."""

    reference_name: str = Field(..., min_length=1, description="Name the owner files the reference under")
    title: str = Field(..., min_length=1, description="Event title")
    event_type: str = Field(..., description="Event category")
    event_status: str = Field(..., description="Status shown to participants")
    location: LocationRef = Field(..., description="Where the event takes place")
    participant_ids: list[str] = Field(default_factory=list, description="Users to invite")
    max_participants: int = Field(..., ge=1, description="Capacity")
    image: str | None = Field(None, description="Cover image URL")
    desc: str = Field(..., description="Description")


class Reference(MongoModel, ReferenceData):
    """Stored reference. Participant names and avatars are copied from the profiles."""

    owner_id: str
    participants: list[Participant] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None
