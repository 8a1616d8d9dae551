import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from aura.core.core import Service
from aura.core.modules.membership.models import FanoutResult, MembershipField
from aura.errors import FanoutIncompleteError, NotFoundError, PreconditionFailedError

logger = structlog.get_logger(__name__)


def unique_ids(ids: Iterable[str]) -> list[str]:
    """Drop duplicates while keeping the first occurrence order."""
    return list(dict.fromkeys(ids))


class MembershipService(Service):
    """Fans group state out to the documents of every participant.

    Groups (chats, now-events) keep one authoritative record; each participant's
    user document holds a projected copy under ``{field}.{group_id}``. Writes go
    to all participants concurrently and are reported per participant, so a
    partial failure is visible to the caller and can be repaired by projecting
    again from the authoritative record.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._users = database.get_collection("users")

    async def load_participants(
        self, field: MembershipField, group_id: str, participant_ids: Iterable[str], *, require_entry: bool = True
    ) -> dict[str, dict[str, Any]]:
        """Fetch every participant document and check it already lists the group.

        Raises:
            NotFoundError: A participant document does not exist.
            PreconditionFailedError: ``require_entry`` is set and a participant has no entry for the group.
        """
        ids = unique_ids(participant_ids)
        docs = await asyncio.gather(*(self._users.find_one({"_id": user_id}) for user_id in ids))

        participants: dict[str, dict[str, Any]] = {}
        for user_id, doc in zip(ids, docs, strict=True):
            if doc is None:
                raise NotFoundError(f"User '{user_id}' does not exist")
            if require_entry and group_id not in (doc.get(field) or {}):
                raise PreconditionFailedError(f"'{group_id}' does not exist for user '{user_id}'")
            participants[user_id] = doc
        return participants

    @staticmethod
    def ensure_member(group_id: str, user_id: str, participant_ids: Iterable[str]) -> None:
        """Raise PreconditionFailedError unless ``user_id`` is one of the participants."""
        if user_id not in participant_ids:
            raise PreconditionFailedError(f"You are not a member of '{group_id}'")

    async def project(
        self, field: MembershipField, group_id: str, entries: Mapping[str, Mapping[str, Any]]
    ) -> FanoutResult:
        """Write each participant's entry with a targeted, version-guarded ``$set``.

        Re-running a projection with the same entries is harmless, which makes it
        the repair path after a partial failure.
        """
        path = f"{field}.{group_id}"

        def write(user_id: str) -> Awaitable[Any]:
            entry = dict(entries[user_id])
            return self._users.update_one(
                {
                    "_id": user_id,
                    "$or": [{path: {"$exists": False}}, {f"{path}.version": {"$lte": entry["version"]}}],
                },
                {"$set": {path: entry}},
            )

        return await self._fanout(group_id, list(entries), write)

    async def retract(self, field: MembershipField, group_id: str, user_ids: Iterable[str]) -> FanoutResult:
        """Remove the group entry from each user document."""
        path = f"{field}.{group_id}"

        def write(user_id: str) -> Awaitable[Any]:
            return self._users.update_one({"_id": user_id}, {"$unset": {path: ""}})

        return await self._fanout(group_id, unique_ids(user_ids), write)

    async def _fanout(
        self, group_id: str, user_ids: list[str], write: Callable[[str], Awaitable[Any]]
    ) -> FanoutResult:
        outcomes = await asyncio.gather(*(write(user_id) for user_id in user_ids), return_exceptions=True)

        result = FanoutResult(group_id=group_id)
        for user_id, outcome in zip(user_ids, outcomes, strict=True):
            if isinstance(outcome, PyMongoError):
                logger.warning("fanout_write_failed", group_id=group_id, user_id=user_id, error=str(outcome))
                result.failed.append(user_id)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(user_id)

        if not result.complete:
            logger.error("fanout_incomplete", group_id=group_id, succeeded=result.succeeded, failed=result.failed)
            raise FanoutIncompleteError(group_id, result.succeeded, result.failed)
        return result
