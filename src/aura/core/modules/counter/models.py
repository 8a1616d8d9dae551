"""Monthly counters behind the human-readable sequential ids."""

from enum import Enum

from aura.core.db import MongoModel

DEFAULT_SEQUENCE_WIDTH = 9
SEQUENCE_CEILING = 999_999_999_999  # 12 decimal digits; this number is never handed out


class IdSeries(Enum):
    """Id families: (counter collection, id prefix, sequence width)."""

    USER = ("users", "US", DEFAULT_SEQUENCE_WIDTH)
    CHAT = ("chats", "CH", DEFAULT_SEQUENCE_WIDTH)
    MESSAGE = ("messages", "MS", 12)
    PAST_EVENT = ("pastEvents", "PE", 12)
    NOW_EVENT = ("nowEvents", "NE", 12)
    FUTURE_EVENT = ("futureEvents", "FE", 12)
    COMMENT = ("comments", "C", 12)
    LOCATION = ("locations", "LOC", DEFAULT_SEQUENCE_WIDTH)
    TRAVEL_PLAN = ("travelPlans", "TP", DEFAULT_SEQUENCE_WIDTH)
    DAILY_PLAN = ("dailyPlans", "DP", 12)
    SCHEDULE_ITEM = ("scheduleItems", "SI", 14)
    REFERENCE = ("reference", "RF", 12)

    def __init__(self, collection: str, prefix: str, width: int) -> None:
        self.collection = collection
        self.prefix = prefix
        self.width = width


class Counter(MongoModel):
    """Last sequence number handed out in one (collection, year, month) bucket.

    The id is the bucket key, e.g. ``chats2511``. Created on first allocation,
    only ever incremented, never deleted.
    """

    last_number: int = 0
