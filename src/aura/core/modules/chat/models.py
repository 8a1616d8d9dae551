"""Group chats: the authoritative record, its per-user projection and messages."""

from datetime import datetime

from pydantic import Field

from aura.core.db import MongoModel
from aura.core.modules.membership.models import GroupEntry
from aura.utils import now


class ChatEntry(GroupEntry):
    """A participant's copy of a chat, stored under ``users.chats.{chat_id}``."""

    group_name: str | None = None
    group_avatar: str | None = None
    last_message: str | None = None
    last_message_at: datetime | None = None
    sender_id: str | None = None
    sender_name: str | None = None
    sender_avatar: str | None = None
    unread_count: int = 0


class Chat(MongoModel):
    """Authoritative chat record.

    Every mutation is a single atomic update that also increments ``version``;
    participants' copies are projected from it afterwards.
    """

    participant_ids: list[str]
    group_name: str | None = None
    group_avatar: str | None = None
    last_message: str | None = None
    last_message_at: datetime | None = None
    sender_id: str | None = None
    sender_name: str | None = None
    sender_avatar: str | None = None
    unread_counts: dict[str, int] = Field(default_factory=dict)  # user id -> unread messages
    version: int = 1
    deleted: bool = False  # set while participant entries are being retracted
    created_at: datetime = Field(default_factory=now)

    def entry_for(self, user_id: str) -> ChatEntry:
        """Project the record into the copy kept by ``user_id``."""
        return ChatEntry(
            id=self.id,
            participant_ids=list(self.participant_ids),
            version=self.version,
            group_name=self.group_name,
            group_avatar=self.group_avatar,
            last_message=self.last_message,
            last_message_at=self.last_message_at,
            sender_id=self.sender_id,
            sender_name=self.sender_name,
            sender_avatar=self.sender_avatar,
            unread_count=self.unread_counts.get(user_id, 0),
        )


class Message(MongoModel):
    """Chat message. Indexed on (chat_id, created_at)."""

    chat_id: str
    sender_id: str
    message: str
    created_at: datetime = Field(default_factory=now)
