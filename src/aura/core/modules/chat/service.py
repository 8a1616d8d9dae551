from datetime import UTC, datetime
from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.chat.models import Chat, ChatEntry, Message
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.membership.models import FanoutResult, MembershipField
from aura.core.modules.membership.service import unique_ids
from aura.core.pagination import PaginationResult, paginate
from aura.errors import NotFoundError, PreconditionFailedError, ValidationError

logger = structlog.get_logger(__name__)

NEVER = datetime.min.replace(tzinfo=UTC)


class ChatService(Service):
    """Group chats with membership replicated into every participant's user document."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("chats")
        self._messages = database.get_collection("messages")

    async def on_start(self) -> None:
        await self._collection.create_index([("participant_ids", 1)])
        await self._messages.create_index([("chat_id", 1), ("created_at", -1)])

    async def get_chat(self, chat_id: str) -> Chat:
        chat = await self._get_record(chat_id)
        if chat.deleted:
            raise NotFoundError(f"Chat '{chat_id}' does not exist")
        return chat

    async def create_chat(self, owner_id: str, participant_ids: list[str]) -> Chat:
        """Create a chat between the given users and the owner."""
        ids = unique_ids([*participant_ids, owner_id])
        await self.core.services.membership.load_participants(MembershipField.CHATS, "", ids, require_entry=False)

        chat_id = await self.core.services.counter.next_id(IdSeries.CHAT)
        chat = Chat(id=chat_id, participant_ids=ids, unread_counts=dict.fromkeys(ids, 0))
        await self._collection.insert_one(chat.to_mongo())
        await self._project(chat)

        logger.info("chat_created", chat_id=chat_id, participant_count=len(ids))
        return chat

    async def update_chat(self, user_id: str, chat_id: str, group_name: str | None, group_avatar: str | None) -> Chat:
        """Change group name and/or avatar; ``None`` leaves a field as it is."""
        chat = await self._load_for_member(user_id, chat_id)

        changes = {key: value for key, value in (("group_name", group_name), ("group_avatar", group_avatar)) if value is not None}
        if not changes:
            return chat

        chat = await self._apply(chat_id, {"_id": chat_id}, {"$set": changes, "$inc": {"version": 1}})
        await self._project(chat)
        return chat

    async def delete_chat(self, user_id: str, chat_id: str) -> FanoutResult:
        """Delete the chat, its messages, and every participant's entry.

        The record is first marked deleted, which blocks every other operation on it,
        and is removed only once all entries are retracted. After a partial failure,
        calling this again or ``resync_chat`` finishes the job.
        """
        chat = await self._get_record(chat_id)
        self.core.services.membership.ensure_member(chat_id, user_id, chat.participant_ids)
        if not chat.deleted:
            await self.core.services.membership.load_participants(MembershipField.CHATS, chat_id, chat.participant_ids)
            doc = await self._collection.find_one_and_update(
                {"_id": chat_id, "deleted": {"$ne": True}},
                {"$set": {"deleted": True}, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
            )
            chat = Chat.model_validate(doc) if doc is not None else await self._get_record(chat_id)

        return await self._finish_delete(chat)

    async def send_message(self, sender_id: str, chat_id: str, text: str) -> Message:
        """Store the message and update last-message state on every copy.

        The sender's unread count is reset to 0, everyone else's goes up by one.
        """
        text = text.strip()
        if not text:
            raise ValidationError("Message cannot be empty")

        chat = await self._load_for_member(sender_id, chat_id)
        sender = await self.core.services.user.get_user(sender_id)

        message_id = await self.core.services.counter.next_id(IdSeries.MESSAGE)
        message = Message(id=message_id, chat_id=chat_id, sender_id=sender_id, message=text)
        await self._messages.insert_one(message.to_mongo())

        increments: dict[str, int] = {
            f"unread_counts.{user_id}": 1 for user_id in chat.participant_ids if user_id != sender_id
        }
        chat = await self._apply(
            chat_id,
            {"_id": chat_id, "participant_ids": sender_id},
            {
                "$set": {
                    "last_message": text,
                    "last_message_at": message.created_at,
                    "sender_id": sender_id,
                    "sender_name": sender.name,
                    "sender_avatar": sender.avatar,
                    f"unread_counts.{sender_id}": 0,
                },
                "$inc": {**increments, "version": 1},
            },
            conflict=f"You are not a member of '{chat_id}'",
        )
        await self._project(chat)
        return message

    async def add_member(self, user_id: str, chat_id: str, added_user_id: str) -> Chat:
        """Append a user to the chat.

        The new member's entry lists the existing participants followed by the new id,
        the same list every existing member ends up with. A previously kicked user may
        still hold an older entry; the projection replaces it.
        """
        chat = await self._load_for_member(user_id, chat_id)
        if added_user_id in chat.participant_ids:
            raise PreconditionFailedError(f"User '{added_user_id}' already in the chat")

        await self.core.services.membership.load_participants(
            MembershipField.CHATS, chat_id, [added_user_id], require_entry=False
        )

        # The $ne guard serialises concurrent adds of the same user
        chat = await self._apply(
            chat_id,
            {"_id": chat_id, "participant_ids": {"$ne": added_user_id}},
            {
                "$push": {"participant_ids": added_user_id},
                "$set": {f"unread_counts.{added_user_id}": 0},
                "$inc": {"version": 1},
            },
            conflict=f"User '{added_user_id}' already in the chat",
        )
        await self._project(chat)

        logger.info("chat_member_added", chat_id=chat_id, user_id=added_user_id, by=user_id)
        return chat

    async def kick_member(self, user_id: str, chat_id: str, kicked_user_id: str) -> Chat:
        """Remove a user from the chat.

        Remaining participants get the shortened list. The kicked user's own entry is
        left untouched unless ``kick_removes_entry`` is enabled.
        """
        chat = await self._load_for_member(user_id, chat_id)
        if kicked_user_id not in chat.participant_ids:
            raise PreconditionFailedError(f"User '{kicked_user_id}' is not in the chat")

        chat = await self._apply(
            chat_id,
            {"_id": chat_id, "participant_ids": kicked_user_id},
            {
                "$pull": {"participant_ids": kicked_user_id},
                "$unset": {f"unread_counts.{kicked_user_id}": ""},
                "$inc": {"version": 1},
            },
            conflict=f"User '{kicked_user_id}' is not in the chat",
        )
        await self._project(chat)
        if self.core.config.kick_removes_entry:
            await self.core.services.membership.retract(MembershipField.CHATS, chat_id, [kicked_user_id])

        logger.info("chat_member_kicked", chat_id=chat_id, user_id=kicked_user_id, by=user_id)
        return chat

    async def mark_read(self, user_id: str, chat_id: str) -> ChatEntry:
        """Reset the caller's unread count."""
        chat = await self.get_chat(chat_id)
        self.core.services.membership.ensure_member(chat_id, user_id, chat.participant_ids)

        chat = await self._apply(
            chat_id,
            {"_id": chat_id, "participant_ids": user_id},
            {"$set": {f"unread_counts.{user_id}": 0}, "$inc": {"version": 1}},
            conflict=f"You are not a member of '{chat_id}'",
        )
        await self._project(chat, [user_id])
        return chat.entry_for(user_id)

    async def list_chats(self, user_id: str) -> list[ChatEntry]:
        """The caller's chats, most recent activity first."""
        user = await self.core.services.user.get_user(user_id)
        entries = list(user.chats.values())
        return sorted(entries, key=lambda entry: entry.last_message_at or NEVER, reverse=True)

    async def list_messages(self, user_id: str, chat_id: str, limit: int = 50, offset: int = 0) -> PaginationResult[Message]:
        """Paginated messages, newest first."""
        chat = await self.get_chat(chat_id)
        self.core.services.membership.ensure_member(chat_id, user_id, chat.participant_ids)

        return await paginate(self._messages, Message, {"chat_id": chat_id}, limit, offset)

    async def resync_chat(self, user_id: str, chat_id: str) -> FanoutResult:
        """Re-project the authoritative record to every participant (repair after partial failure).

        For a chat whose deletion stopped halfway, the remaining entries are retracted instead.
        """
        chat = await self._get_record(chat_id)
        self.core.services.membership.ensure_member(chat_id, user_id, chat.participant_ids)
        if chat.deleted:
            return await self._finish_delete(chat)

        await self.core.services.membership.load_participants(
            MembershipField.CHATS, chat_id, chat.participant_ids, require_entry=False
        )
        result = await self._project(chat)
        logger.info("chat_resynced", chat_id=chat_id, version=chat.version)
        return result

    async def _load_for_member(self, user_id: str, chat_id: str) -> Chat:
        """Load the chat, check the caller is a member and every participant holds the chat."""
        chat = await self.get_chat(chat_id)
        self.core.services.membership.ensure_member(chat_id, user_id, chat.participant_ids)
        await self.core.services.membership.load_participants(MembershipField.CHATS, chat_id, chat.participant_ids)
        return chat

    async def _get_record(self, chat_id: str) -> Chat:
        """The stored chat, including one whose deletion is in progress."""
        chat = await Chat.find_by_id(self._collection, chat_id)
        if chat is None:
            raise NotFoundError(f"Chat '{chat_id}' does not exist")
        return chat

    async def _finish_delete(self, chat: Chat) -> FanoutResult:
        # Raises FanoutIncompleteError and keeps the marked record when some entries remain
        result = await self.core.services.membership.retract(MembershipField.CHATS, chat.id, chat.participant_ids)
        await self._messages.delete_many({"chat_id": chat.id})
        await self._collection.delete_one({"_id": chat.id})
        logger.info("chat_deleted", chat_id=chat.id)
        return result

    async def _apply(
        self, chat_id: str, query: dict[str, Any], update: dict[str, Any], conflict: str | None = None
    ) -> Chat:
        doc = await self._collection.find_one_and_update(
            {**query, "deleted": {"$ne": True}}, update, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            # A conflict only when the chat is still live, otherwise it vanished meanwhile
            await self.get_chat(chat_id)
            raise PreconditionFailedError(conflict or f"Chat '{chat_id}' changed concurrently")
        return Chat.model_validate(doc)

    async def _project(self, chat: Chat, user_ids: list[str] | None = None) -> FanoutResult:
        targets = user_ids if user_ids is not None else chat.participant_ids
        entries = {user_id: chat.entry_for(user_id).model_dump() for user_id in targets}
        return await self.core.services.membership.project(MembershipField.CHATS, chat.id, entries)
