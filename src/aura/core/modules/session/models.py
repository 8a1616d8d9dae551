"""Session and one-time password models."""

from datetime import datetime
from typing import NewType

from pydantic import BaseModel, Field

from aura.utils import now

AuthToken = NewType("AuthToken", str)


class Session(BaseModel):
    """User authentication session.

    Indexed on auth_token - unique, user_id, created_at (TTL).
    """

    user_id: str
    auth_token: str
    created_at: datetime = Field(default_factory=now)


class OtpCode(BaseModel):
    """Login code sent to a phone number. One per phone, TTL-indexed on created_at."""

    phone_no: str
    code: str
    created_at: datetime = Field(default_factory=now)
