from datetime import datetime
from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from aura.core.core import Service
from aura.core.modules.counter.models import DEFAULT_SEQUENCE_WIDTH, SEQUENCE_CEILING, Counter, IdSeries
from aura.errors import AllocationExhaustedError, StorageUnavailableError
from aura.utils import now

logger = structlog.get_logger(__name__)


def bucket_key(collection: str, moment: datetime) -> str:
    """Counter key for a collection in the month of ``moment``: ``{collection}{YY}{M}``."""
    return f"{collection}{moment.year % 100:02d}{moment.month}"


def format_id(prefix: str, moment: datetime, sequence: int, width: int = DEFAULT_SEQUENCE_WIDTH) -> str:
    """Render ``{prefix}{YY}{M}{sequence}`` with the sequence zero-padded to ``width``.

    Sequences longer than ``width`` are kept whole, the id just gets longer.
    """
    return f"{prefix}{moment.year % 100:02d}{moment.month}{sequence:0{width}d}"


class CounterService(Service):
    """Allocates sequential ids from monthly counter buckets."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("counters")

    async def allocate(
        self, collection: str, prefix: str, width: int = DEFAULT_SEQUENCE_WIDTH, moment: datetime | None = None
    ) -> str:
        """Atomically take the next sequence number of the bucket and format it as an id.

        Raises:
            AllocationExhaustedError: The bucket reached the sequence ceiling. Nothing is written.
            StorageUnavailableError: MongoDB could not be reached.
        """
        moment = moment or now()
        key = bucket_key(collection, moment)
        sequence = await self._increment(key)
        return format_id(prefix, moment, sequence, width)

    async def next_id(self, series: IdSeries, moment: datetime | None = None) -> str:
        """Allocate an id of a known family."""
        return await self.allocate(series.collection, series.prefix, series.width, moment)

    async def current(self, collection: str, moment: datetime | None = None) -> int:
        """Last number handed out in the bucket, 0 if nothing was allocated yet."""
        return await self._current_by_key(bucket_key(collection, moment or now()))

    async def _current_by_key(self, key: str) -> int:
        doc = await self._collection.find_one({"_id": key})
        if doc is None:
            return 0
        return Counter.model_validate(doc).last_number

    async def _increment(self, key: str) -> int:
        # The ceiling is part of the filter: an exhausted bucket does not match, the upsert
        # then collides with the existing _id and nothing is written.
        for _ in range(2):
            try:
                doc = await self._collection.find_one_and_update(
                    {"_id": key, "last_number": {"$lt": SEQUENCE_CEILING - 1}},
                    {"$inc": {"last_number": 1}},
                    upsert=True,
                    return_document=ReturnDocument.AFTER,
                )
            except DuplicateKeyError:
                # Exhausted bucket, or a concurrent caller created the bucket first
                if await self._current_by_key(key) >= SEQUENCE_CEILING - 1:
                    logger.warning("counter_exhausted", bucket=key)
                    raise AllocationExhaustedError(f"Counter '{key}' reached max limit") from None
                continue
            except ConnectionFailure as e:
                raise StorageUnavailableError from e
            return int(doc["last_number"])
        raise StorageUnavailableError(f"Counter '{key}' could not be incremented")
