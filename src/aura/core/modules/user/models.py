from datetime import datetime

from pydantic import BaseModel, Field

from aura.core.db import MongoModel
from aura.core.modules.chat.models import ChatEntry
from aura.core.modules.event.models import EventEntry
from aura.utils import now


class User(MongoModel):
    """App user, identified by phone number.

    ``chats`` and ``events`` hold this user's projected copy of every group
    they belong to, keyed by group id.
    """

    phone_no: str
    country_code: str
    name: str
    sex: str
    avatar: str | None = None
    aura_coins: int = 0
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None
    chats: dict[str, ChatEntry] = Field(default_factory=dict)
    events: dict[str, EventEntry] = Field(default_factory=dict)


class UserView(BaseModel):
    """Own profile (API representation)."""

    id: str = Field(..., description="User ID")
    phone_no: str = Field(..., description="Phone number without country code")
    country_code: str = Field(..., description="Country calling code, e.g. +60")
    name: str = Field(..., description="Display name")
    sex: str = Field(..., description="Sex")
    avatar: str | None = Field(None, description="Avatar URL")
    aura_coins: int = Field(..., description="Aura coin balance")
    created_at: datetime = Field(..., description="Registration time")
    updated_at: datetime | None = Field(None, description="Last profile update")
    chats: dict[str, ChatEntry] = Field(default_factory=dict, description="Chats the user belongs to, by chat ID")
    events: dict[str, EventEntry] = Field(default_factory=dict, description="Now events the user takes part in, by event ID")

    @classmethod
    def from_domain(cls, user: User) -> "UserView":
        """Create view model from domain model."""
        return cls.model_validate(user.model_dump())


class PublicUserView(BaseModel):
    """What other users may see."""

    id: str = Field(..., description="User ID")
    name: str = Field(..., description="Display name")
    sex: str = Field(..., description="Sex")
    avatar: str | None = Field(None, description="Avatar URL")

    @classmethod
    def from_domain(cls, user: User) -> "PublicUserView":
        return cls(id=user.id, name=user.name, sex=user.sex, avatar=user.avatar)
