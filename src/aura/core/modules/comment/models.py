from datetime import datetime

from pydantic import Field

from aura.core.db import MongoModel
from aura.utils import now


class Comment(MongoModel):
    """Comment on a future event. Author name and avatar are copied from the profile."""

    event_id: str
    user_id: str
    name: str
    avatar: str | None = None
    content: str
    like_count: int = 0
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime | None = None
