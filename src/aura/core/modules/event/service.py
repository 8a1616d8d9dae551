from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.event.models import (
    EVENT_DATA_MODELS,
    EVENT_MODELS,
    Event,
    EventData,
    EventKind,
    FutureEvent,
    FutureEventData,
    NowEvent,
    NowEventData,
    Participant,
    PastEvent,
    PastEventData,
)
from aura.core.modules.membership.models import FanoutResult, MembershipField
from aura.core.modules.membership.service import unique_ids
from aura.core.pagination import PaginationResult, paginate
from aura.errors import NotFoundError, PreconditionFailedError, ValidationError
from aura.utils import now

logger = structlog.get_logger(__name__)

JOIN_ATTEMPTS = 3


def check_dates(data: EventData) -> None:
    if isinstance(data, PastEventData) and data.end_date < data.start_date:
        raise ValidationError("End date must not be before start date")


class EventService(Service):
    """Past, now and future events. Now-event membership is projected into user documents."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collections: dict[EventKind, AsyncCollection[dict[str, Any]]] = {
            kind: database.get_collection(kind.collection) for kind in EventKind
        }

    async def on_start(self) -> None:
        for collection in self._collections.values():
            await collection.create_index([("owner_id", 1)])
        await self._collections[EventKind.NOW].create_index([("participant_ids", 1)])

    async def get_event(self, kind: EventKind, event_id: str) -> Event:
        event = await EVENT_MODELS[kind].find_by_id(self._collections[kind], event_id)
        if event is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        return event

    async def get_now_event(self, event_id: str) -> NowEvent:
        event = await NowEvent.find_by_id(self._collections[EventKind.NOW], event_id)
        if event is None:
            raise NotFoundError(f"Event '{event_id}' not found")
        return event

    async def list_events(
        self, kind: EventKind, owner_id: str | None = None, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Event]:
        """Paginated events of one kind, newest first, optionally by owner."""
        query: dict[str, Any] = {"owner_id": owner_id} if owner_id else {}
        return await paginate(self._collections[kind], EVENT_MODELS[kind], query, limit, offset)  # type: ignore[return-value]

    async def create_past_event(self, owner_id: str, data: PastEventData) -> PastEvent:
        check_dates(data)
        owner = await self.core.services.user.get_user(owner_id)

        event_id = await self.core.services.counter.next_id(EventKind.PAST.series)
        event = PastEvent(
            id=event_id,
            owner_id=owner_id,
            participants=[Participant(id=owner.id, name=owner.name, avatar=owner.avatar)],
            participant_ids=[owner.id],
            **data.model_dump(),
        )
        await self._collections[EventKind.PAST].insert_one(event.to_mongo())
        logger.info("event_created", kind=EventKind.PAST, event_id=event_id)
        return event

    async def create_now_event(self, owner_id: str, data: NowEventData, participant_ids: list[str]) -> NowEvent:
        """Create a joinable event; the owner always comes first in the participant list."""
        check_dates(data)
        ids = unique_ids([owner_id, *participant_ids])
        if len(ids) > data.max_participants:
            raise ValidationError(f"Too many participants: {len(ids)} > {data.max_participants}")

        docs = await self.core.services.membership.load_participants(MembershipField.EVENTS, "", ids, require_entry=False)
        participants = [Participant(id=user_id, name=docs[user_id]["name"], avatar=docs[user_id].get("avatar")) for user_id in ids]

        event_id = await self.core.services.counter.next_id(EventKind.NOW.series)
        event = NowEvent(id=event_id, owner_id=owner_id, participants=participants, participant_ids=ids, **data.model_dump())
        await self._collections[EventKind.NOW].insert_one(event.to_mongo())
        await self._project(event)

        logger.info("event_created", kind=EventKind.NOW, event_id=event_id, participant_count=len(ids))
        return event

    async def create_future_event(self, owner_id: str, data: FutureEventData) -> FutureEvent:
        await self.core.services.user.get_user(owner_id)

        event_id = await self.core.services.counter.next_id(EventKind.FUTURE.series)
        event = FutureEvent(id=event_id, owner_id=owner_id, **data.model_dump())
        await self._collections[EventKind.FUTURE].insert_one(event.to_mongo())
        logger.info("event_created", kind=EventKind.FUTURE, event_id=event_id)
        return event

    async def update_event(self, kind: EventKind, user_id: str, event_id: str, data: EventData) -> Event:
        """Replace the editable fields (owner only). Participants are managed by join/leave."""
        if type(data) is not EVENT_DATA_MODELS[kind]:
            raise ValidationError(f"Invalid data for a {kind} event")
        check_dates(data)

        event = await self.get_event(kind, event_id)
        self.core.services.access.ensure_owner(event.owner_id, user_id, "event")

        if isinstance(event, NowEvent) and isinstance(data, NowEventData) and len(event.participant_ids) > data.max_participants:
            raise ValidationError(f"Event already has {len(event.participant_ids)} participants")

        query: dict[str, Any] = {"_id": event_id}
        update: dict[str, Any] = {"$set": {**data.model_dump(), "updated_at": now()}}
        if isinstance(data, NowEventData):
            # No participant beyond the new capacity, re-checked against joins in flight
            query[f"participant_ids.{data.max_participants}"] = {"$exists": False}
            update["$inc"] = {"version": 1}
        doc = await self._collections[kind].find_one_and_update(query, update, return_document=ReturnDocument.AFTER)
        if doc is None:
            if kind != EventKind.NOW:
                raise NotFoundError(f"Event '{event_id}' not found")
            current = await self.get_now_event(event_id)
            raise ValidationError(f"Event already has {len(current.participant_ids)} participants")

        updated = EVENT_MODELS[kind].model_validate(doc)
        if isinstance(updated, NowEvent):
            await self._project(updated)
        return updated

    async def delete_event(self, kind: EventKind, user_id: str, event_id: str) -> None:
        """Delete an event (owner only), with its comments or membership entries.

        A now-event record outlives a partially failed retraction, so deleting
        again clears the remaining entries.
        """
        event = await self.get_event(kind, event_id)
        self.core.services.access.ensure_owner(event.owner_id, user_id, "event")

        if isinstance(event, NowEvent):
            await self.core.services.membership.retract(MembershipField.EVENTS, event_id, event.participant_ids)
        await self._collections[kind].delete_one({"_id": event_id})
        if kind == EventKind.FUTURE:
            await self.core.services.comment.delete_comments_by_event(event_id)

        logger.info("event_deleted", kind=kind, event_id=event_id)

    async def join_event(self, user_id: str, event_id: str) -> NowEvent:
        """Add the caller to a now-event.

        Raises:
            PreconditionFailedError: Already joined, or the event is full.
        """
        event = await self.get_now_event(event_id)
        await self.core.services.membership.load_participants(MembershipField.EVENTS, event_id, event.participant_ids)
        user = await self.core.services.user.get_user(user_id)
        participant = Participant(id=user.id, name=user.name, avatar=user.avatar).model_dump()

        for _ in range(JOIN_ATTEMPTS):
            if user_id in event.participant_ids:
                raise PreconditionFailedError("You already joined this event")
            if len(event.participant_ids) >= event.max_participants:
                raise PreconditionFailedError("Event is full")

            # Capacity and duplicate checks are repeated inside the atomic update:
            # participant_ids.{max - 1} exists only when the event is full under the capacity read above
            doc = await self._collections[EventKind.NOW].find_one_and_update(
                {
                    "_id": event_id,
                    "max_participants": event.max_participants,
                    "participant_ids": {"$ne": user_id},
                    f"participant_ids.{event.max_participants - 1}": {"$exists": False},
                },
                {"$push": {"participant_ids": user_id, "participants": participant}, "$inc": {"version": 1}},
                return_document=ReturnDocument.AFTER,
            )
            if doc is not None:
                break
            event = await self.get_now_event(event_id)
        else:
            raise PreconditionFailedError("Event changed while joining, try again")

        event = NowEvent.model_validate(doc)
        await self._project(event)
        logger.info("event_joined", event_id=event_id, user_id=user_id)
        return event

    async def leave_event(self, user_id: str, event_id: str) -> NowEvent:
        """Remove the caller from a now-event; the owner cannot leave their own event."""
        event = await self.get_now_event(event_id)
        if event.owner_id == user_id:
            raise PreconditionFailedError("The owner cannot leave the event")
        self.core.services.membership.ensure_member(event_id, user_id, event.participant_ids)

        doc = await self._collections[EventKind.NOW].find_one_and_update(
            {"_id": event_id, "participant_ids": user_id},
            {"$pull": {"participant_ids": user_id, "participants": {"id": user_id}}, "$inc": {"version": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            raise PreconditionFailedError(f"You are not a member of '{event_id}'")

        event = NowEvent.model_validate(doc)
        await self._project(event)
        await self.core.services.membership.retract(MembershipField.EVENTS, event_id, [user_id])
        logger.info("event_left", event_id=event_id, user_id=user_id)
        return event

    async def _project(self, event: NowEvent) -> FanoutResult:
        entry = event.entry_for().model_dump()
        entries = dict.fromkeys(event.participant_ids, entry)
        return await self.core.services.membership.project(MembershipField.EVENTS, event.id, entries)
