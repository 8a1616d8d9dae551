from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.cursor import AsyncCursor


class MongoModel(BaseModel):
    """Document keyed by a sequential string id such as ``CH2511000000007``.

    Stored as ``_id``, exposed as ``id`` in API responses.
    """

    id: str = Field(alias="_id", serialization_alias="id")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_serialization_defaults_required=True,
    )

    def to_mongo(self) -> dict[str, Any]:
        data = self.model_dump()
        data["_id"] = data.pop("id")
        return data

    @classmethod
    async def find_by_id(cls, collection: AsyncCollection[dict[str, Any]], doc_id: str) -> Self | None:
        doc = await collection.find_one({"_id": doc_id})
        return cls.model_validate(doc) if doc is not None else None

    @classmethod
    async def list_cursor(cls, cursor: AsyncCursor[dict[str, Any]]) -> list[Self]:
        return [cls.model_validate(item) async for item in cursor]
