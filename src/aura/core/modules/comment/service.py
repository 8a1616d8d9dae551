from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.comment.models import Comment
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.event.models import EventKind
from aura.core.pagination import PaginationResult, paginate
from aura.errors import NotFoundError, ValidationError
from aura.utils import now

logger = structlog.get_logger(__name__)


class CommentService(Service):
    """Manages comments on future events."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("comments")

    async def on_start(self) -> None:
        await self._collection.create_index([("event_id", 1), ("created_at", -1)])

    async def get_comment(self, comment_id: str) -> Comment:
        comment = await Comment.find_by_id(self._collection, comment_id)
        if comment is None:
            raise NotFoundError(f"Comment '{comment_id}' not found")
        return comment

    async def create_comment(self, user_id: str, event_id: str, content: str) -> Comment:
        if not content.strip():
            raise ValidationError("Comment cannot be empty")
        await self.core.services.event.get_event(EventKind.FUTURE, event_id)
        author = await self.core.services.user.get_user(user_id)

        comment_id = await self.core.services.counter.next_id(IdSeries.COMMENT)
        comment = Comment(
            id=comment_id, event_id=event_id, user_id=user_id, name=author.name, avatar=author.avatar, content=content
        )
        await self._collection.insert_one(comment.to_mongo())
        logger.debug("comment_created", comment_id=comment_id, event_id=event_id)
        return comment

    async def update_comment(self, user_id: str, comment_id: str, content: str) -> Comment:
        """Edit a comment (author only); refreshes the author's name and avatar."""
        if not content.strip():
            raise ValidationError("Comment cannot be empty")
        comment = await self.get_comment(comment_id)
        self.core.services.access.ensure_owner(comment.user_id, user_id, "comment")
        await self.core.services.event.get_event(EventKind.FUTURE, comment.event_id)
        author = await self.core.services.user.get_user(user_id)

        doc = await self._collection.find_one_and_update(
            {"_id": comment_id},
            {"$set": {"content": content, "name": author.name, "avatar": author.avatar, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError(f"Comment '{comment_id}' not found")
        return Comment.model_validate(doc)

    async def delete_comment(self, user_id: str, comment_id: str) -> None:
        comment = await self.get_comment(comment_id)
        self.core.services.access.ensure_owner(comment.user_id, user_id, "comment")
        await self._collection.delete_one({"_id": comment_id})

    async def get_event_comments(self, event_id: str, limit: int = 50, offset: int = 0) -> PaginationResult[Comment]:
        """Get paginated comments for an event, newest first."""
        await self.core.services.event.get_event(EventKind.FUTURE, event_id)
        return await paginate(self._collection, Comment, {"event_id": event_id}, limit, offset)

    async def delete_comments_by_event(self, event_id: str) -> int:
        """Delete all comments of an event and return how many were removed."""
        result = await self._collection.delete_many({"event_id": event_id})
        return result.deleted_count
