from typing import Any

from pydantic import BaseModel, Field, computed_field
from pymongo.asynchronous.collection import AsyncCollection

from aura.core.db import MongoModel


class PaginationResult[T](BaseModel):
    """One page of a list endpoint."""

    items: list[T] = Field(..., description="Items of this page")
    total: int = Field(..., description="Number of matching items across all pages", ge=0)
    limit: int = Field(..., description="Page size", ge=1)
    offset: int = Field(..., description="Items skipped before this page", ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_more(self) -> bool:
        """Whether items remain after this page."""
        return self.offset + len(self.items) < self.total


async def paginate[M: MongoModel](
    collection: AsyncCollection[dict[str, Any]],
    model: type[M],
    query: dict[str, Any],
    limit: int,
    offset: int,
    sort: tuple[str, int] = ("created_at", -1),
) -> PaginationResult[M]:
    """Count and fetch one page of ``query``, newest first unless ``sort`` says otherwise."""
    total = await collection.count_documents(query)
    cursor = collection.find(query).sort(*sort).skip(offset).limit(limit)
    items = await model.list_cursor(cursor)
    return PaginationResult(items=items, total=total, limit=limit, offset=offset)
