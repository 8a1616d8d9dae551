"""Per-user copies of group membership."""

from enum import StrEnum

from pydantic import BaseModel, Field


class MembershipField(StrEnum):
    """Map on the user document that holds one entry per group."""

    CHATS = "chats"
    EVENTS = "events"


class GroupEntry(BaseModel):
    """Common shape of a projected membership entry.

    ``version`` is copied from the authoritative group record; a projection
    never replaces an entry that carries a newer version.
    """

    id: str
    participant_ids: list[str]
    version: int = 0


class FanoutResult(BaseModel):
    """Outcome of writing one group update to many user documents."""

    group_id: str
    succeeded: list[str] = Field(default_factory=list)
    failed: list[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed
