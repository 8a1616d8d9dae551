from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.event.models import Participant
from aura.core.modules.membership.service import unique_ids
from aura.core.modules.reference.models import Reference, ReferenceData
from aura.errors import NotFoundError, ValidationError
from aura.utils import now

logger = structlog.get_logger(__name__)


class ReferenceService(Service):
    """Per-user saved event drafts."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("references")

    async def on_start(self) -> None:
        await self._collection.create_index([("owner_id", 1), ("created_at", -1)])

    async def get_reference(self, reference_id: str) -> Reference:
        reference = await Reference.find_by_id(self._collection, reference_id)
        if reference is None:
            raise NotFoundError(f"Reference '{reference_id}' not found")
        return reference

    async def get_reference_for_owner(self, user_id: str, reference_id: str) -> Reference:
        """References are private to their owner."""
        reference = await self.get_reference(reference_id)
        self.core.services.access.ensure_owner(reference.owner_id, user_id, "reference")
        return reference

    async def list_references(self, owner_id: str) -> list[Reference]:
        """The owner's references, newest first."""
        cursor = self._collection.find({"owner_id": owner_id}).sort("created_at", -1)
        return await Reference.list_cursor(cursor)

    async def create_reference(self, owner_id: str, data: ReferenceData) -> Reference:
        await self.core.services.user.get_user(owner_id)
        fields = await self._resolve(data)

        reference_id = await self.core.services.counter.next_id(IdSeries.REFERENCE)
        reference = Reference(id=reference_id, owner_id=owner_id, **fields)
        await self._collection.insert_one(reference.to_mongo())
        logger.debug("reference_created", reference_id=reference_id, owner_id=owner_id)
        return reference

    async def update_reference(self, user_id: str, reference_id: str, data: ReferenceData) -> Reference:
        """Replace every editable field (owner only)."""
        await self.get_reference_for_owner(user_id, reference_id)
        fields = await self._resolve(data)

        doc = await self._collection.find_one_and_update(
            {"_id": reference_id},
            {"$set": {**fields, "updated_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise NotFoundError(f"Reference '{reference_id}' not found")
        return Reference.model_validate(doc)

    async def delete_reference(self, user_id: str, reference_id: str) -> None:
        await self.get_reference_for_owner(user_id, reference_id)
        await self._collection.delete_one({"_id": reference_id})
        logger.debug("reference_deleted", reference_id=reference_id)

    async def _resolve(self, data: ReferenceData) -> dict[str, Any]:
        """Stored fields of ``data``, with participant snapshots looked up by id.

        Raises:
            ValidationError: More participants than ``max_participants``.
            NotFoundError: A participant id matches no user.
        """
        ids = unique_ids(data.participant_ids)
        if len(ids) > data.max_participants:
            raise ValidationError(f"Too many participants: {len(ids)} > {data.max_participants}")
        users = await self.core.services.user.get_users(ids)
        missing = set(ids) - {user.id for user in users}
        if missing:
            raise NotFoundError(f"User '{sorted(missing)[0]}' not found")

        participants = [Participant(id=user.id, name=user.name, avatar=user.avatar).model_dump() for user in users]
        return {**data.model_dump(), "participant_ids": ids, "participants": participants}
