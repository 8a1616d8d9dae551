"""Travel plans: one daily plan per day, each with timed schedule items."""

from datetime import datetime

from pydantic import BaseModel, Field

from aura.core.db import MongoModel
from aura.core.modules.event.models import Participant
from aura.utils import now


class ScheduleTime(BaseModel):
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)


class ScheduleItemData(BaseModel):
    """Editable fields of a schedule item."""

    title: str = Field(..., min_length=1, description="What happens")
    assigned_by: str = Field(..., description="Who is responsible")
    time: ScheduleTime = Field(..., description="Time of day")


class ScheduleItem(ScheduleItemData):
    id: str


class DailyPlan(BaseModel):
    """One day of a travel plan. Items are keyed by id so they can be updated in place."""

    id: str
    date: datetime  # Midnight UTC
    schedule_items: dict[str, ScheduleItem] = Field(default_factory=dict)


class TravelPlan(MongoModel):
    """Trip between two calendar days (inclusive). Daily plans are keyed by id."""

    owner_id: str
    title: str
    start_date: datetime  # Midnight UTC
    end_date: datetime  # Midnight UTC
    participants: list[Participant]
    participant_ids: list[str]
    daily_plans: dict[str, DailyPlan] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None
