"""Events: past (memories), now (joinable meetups) and future (places to go)."""

from datetime import datetime
from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from aura.core.db import MongoModel
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.location.models import LocationRef
from aura.core.modules.membership.models import GroupEntry
from aura.utils import now


class EventKind(StrEnum):
    PAST = "past"
    NOW = "now"
    FUTURE = "future"

    @property
    def collection(self) -> str:
        return self.series.collection

    @property
    def series(self) -> IdSeries:
        return {
            EventKind.PAST: IdSeries.PAST_EVENT,
            EventKind.NOW: IdSeries.NOW_EVENT,
            EventKind.FUTURE: IdSeries.FUTURE_EVENT,
        }[self]


class Participant(BaseModel):
    id: str
    name: str
    avatar: str | None = None


class EventEntry(GroupEntry):
    """A participant's copy of a now-event, stored under ``users.events.{event_id}``."""

    kind: EventKind = EventKind.NOW
    title: str


class PastEventData(BaseModel):
    """Editable fields of a past event."""

    title: str = Field(..., min_length=1, description="Event title")
    event_type: str = Field(..., description="Event category")
    desc: str = Field(..., description="Description")
    images: list[str] = Field(default_factory=list, description="Image URLs")
    location: LocationRef = Field(..., description="Where it happened")
    start_date: datetime = Field(..., description="Start time")
    end_date: datetime = Field(..., description="End time")


class NowEventData(PastEventData):
    """Editable fields of a now event."""

    event_status: str = Field(..., description="Status shown to participants")
    max_participants: int = Field(..., ge=1, description="Capacity including the owner")


class FutureEventData(BaseModel):
    """Editable fields of a future event."""

    title: str = Field(..., min_length=1, description="Event title")
    event_type: str = Field(..., description="Event category")
    desc: str = Field(..., description="Description")
    images: list[str] = Field(default_factory=list, description="Image URLs")
    location: LocationRef = Field(..., description="Where it takes place")
    location_avatar: str | None = Field(None, description="Location picture URL")
    operation_time: str = Field("", description="Opening hours, free text")


EventData = PastEventData | NowEventData | FutureEventData


class PastEvent(MongoModel, PastEventData):
    kind: Literal[EventKind.PAST] = EventKind.PAST
    owner_id: str
    participants: list[Participant]
    participant_ids: list[str]
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None


class NowEvent(MongoModel, NowEventData):
    """Authoritative record of a joinable event; membership is projected to participants."""

    kind: Literal[EventKind.NOW] = EventKind.NOW
    owner_id: str
    participants: list[Participant]
    participant_ids: list[str]
    version: int = 1
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None

    def entry_for(self) -> EventEntry:
        return EventEntry(id=self.id, title=self.title, participant_ids=list(self.participant_ids), version=self.version)


class FutureEvent(MongoModel, FutureEventData):
    kind: Literal[EventKind.FUTURE] = EventKind.FUTURE
    owner_id: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None


Event = Annotated[PastEvent | NowEvent | FutureEvent, Field(discriminator="kind")]

EVENT_MODELS: dict[EventKind, type[PastEvent] | type[NowEvent] | type[FutureEvent]] = {
    EventKind.PAST: PastEvent,
    EventKind.NOW: NowEvent,
    EventKind.FUTURE: FutureEvent,
}

EVENT_DATA_MODELS: dict[EventKind, type[PastEventData] | type[NowEventData] | type[FutureEventData]] = {
    EventKind.PAST: PastEventData,
    EventKind.NOW: NowEventData,
    EventKind.FUTURE: FutureEventData,
}
