"""In-memory stand-in for the parts of the async MongoDB API the services use.

Every method runs without awaiting anything, so each call is atomic with
respect to other coroutines, the same guarantee MongoDB gives for a single
document update.
"""

import copy
import re
from dataclasses import dataclass
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import AutoReconnect, DuplicateKeyError

MISSING = object()


def get_path(doc: Any, path: str) -> Any:
    value = doc
    for part in path.split("."):
        if isinstance(value, dict):
            value = value.get(part, MISSING)
        elif isinstance(value, list) and part.isdigit():
            index = int(part)
            value = value[index] if index < len(value) else MISSING
        else:
            return MISSING
        if value is MISSING:
            return MISSING
    return value


def equals(value: Any, expected: Any) -> bool:
    if isinstance(value, list) and not isinstance(expected, list):
        return expected in value
    return value == expected


def match_condition(value: Any, condition: Any) -> bool:
    if not (isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition)):
        return value is not MISSING and equals(value, condition)

    for operator, operand in condition.items():
        if operator == "$exists":
            if (value is not MISSING) != operand:
                return False
        elif operator == "$ne":
            if value is not MISSING and equals(value, operand):
                return False
        elif operator == "$in":
            if value is MISSING or not any(equals(value, item) for item in operand):
                return False
        elif operator in ("$lt", "$lte", "$gt", "$gte"):
            if value is MISSING:
                return False
            ok = {
                "$lt": value < operand,
                "$lte": value <= operand,
                "$gt": value > operand,
                "$gte": value >= operand,
            }[operator]
            if not ok:
                return False
        elif operator == "$regex":
            if not isinstance(value, str) or re.search(operand, value) is None:
                return False
        else:
            raise NotImplementedError(operator)
    return True


def matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(doc, sub) for sub in condition):
                return False
        elif not match_condition(get_path(doc, key), condition):
            return False
    return True


def parent_of(doc: dict[str, Any], path: str, create: bool) -> tuple[Any, str]:
    parts = path.split(".")
    target: Any = doc
    for part in parts[:-1]:
        if isinstance(target, list):
            target = target[int(part)]
            continue
        if part not in target:
            if not create:
                return None, parts[-1]
            target[part] = {}
        target = target[part]
    return target, parts[-1]


def apply_update(doc: dict[str, Any], update: dict[str, Any]) -> None:
    for operator, fields in update.items():
        for path, operand in fields.items():
            if operator == "$set":
                parent, key = parent_of(doc, path, create=True)
                parent[key] = copy.deepcopy(operand)
            elif operator == "$unset":
                parent, key = parent_of(doc, path, create=False)
                if isinstance(parent, dict):
                    parent.pop(key, None)
            elif operator == "$inc":
                parent, key = parent_of(doc, path, create=True)
                parent[key] = parent.get(key, 0) + operand
            elif operator == "$push":
                parent, key = parent_of(doc, path, create=True)
                parent.setdefault(key, []).append(copy.deepcopy(operand))
            elif operator == "$pull":
                parent, key = parent_of(doc, path, create=False)
                if parent is None or key not in parent:
                    continue
                if isinstance(operand, dict):
                    parent[key] = [
                        item
                        for item in parent[key]
                        if not (isinstance(item, dict) and all(item.get(k) == v for k, v in operand.items()))
                    ]
                else:
                    parent[key] = [item for item in parent[key] if item != operand]
            else:
                raise NotImplementedError(operator)


@dataclass
class UpdateResult:
    matched_count: int
    modified_count: int


@dataclass
class DeleteResult:
    deleted_count: int


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs
        self._skip = 0
        self._limit = 0

    def sort(self, key: str, direction: int = 1) -> "FakeCursor":
        present = [doc for doc in self._docs if get_path(doc, key) is not MISSING]
        absent = [doc for doc in self._docs if get_path(doc, key) is MISSING]
        present.sort(key=lambda doc: get_path(doc, key), reverse=direction < 0)
        self._docs = present + absent if direction > 0 else absent + present
        return self

    def skip(self, count: int) -> "FakeCursor":
        self._skip = count
        return self

    def limit(self, count: int) -> "FakeCursor":
        self._limit = count
        return self

    def __aiter__(self) -> "FakeCursor":
        docs = self._docs[self._skip :]
        if self._limit:
            docs = docs[: self._limit]
        self._iter = iter(docs)
        return self

    async def __anext__(self) -> dict[str, Any]:
        try:
            return copy.deepcopy(next(self._iter))
        except StopIteration:
            raise StopAsyncIteration from None


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.documents: list[dict[str, Any]] = []
        self.fail_writes_for: set[str] = set()  # _id values whose update_one raises AutoReconnect

    def _find(self, query: dict[str, Any]) -> dict[str, Any] | None:
        return next((doc for doc in self.documents if matches(doc, query)), None)

    def get(self, doc_id: str) -> dict[str, Any] | None:
        """Stored document by id, without copying (for test assertions and tampering)."""
        return self._find({"_id": doc_id})

    async def create_index(self, *args: Any, **kwargs: Any) -> str:
        return "index"

    async def find_one(self, query: dict[str, Any]) -> dict[str, Any] | None:
        doc = self._find(query)
        return copy.deepcopy(doc) if doc is not None else None

    def find(self, query: dict[str, Any]) -> FakeCursor:
        return FakeCursor([doc for doc in self.documents if matches(doc, query)])

    async def count_documents(self, query: dict[str, Any]) -> int:
        return sum(1 for doc in self.documents if matches(doc, query))

    async def insert_one(self, doc: dict[str, Any]) -> None:
        doc = {"_id": ObjectId(), **doc}
        if self.get(doc["_id"]) is not None:
            raise DuplicateKeyError(f"Duplicate _id {doc['_id']!r} in {self.name}")
        self.documents.append(copy.deepcopy(doc))

    def _upsert(self, query: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
        seed = {key: value for key, value in query.items() if not key.startswith("$") and not isinstance(value, dict)}
        if "_id" in seed and self.get(seed["_id"]) is not None:
            raise DuplicateKeyError(f"Duplicate _id {seed['_id']!r} in {self.name}")
        doc: dict[str, Any] = {}
        for path, value in seed.items():
            parent, key = parent_of(doc, path, create=True)
            parent[key] = value
        apply_update(doc, update)
        self.documents.append(doc)
        return doc

    async def update_one(self, query: dict[str, Any], update: dict[str, Any], upsert: bool = False) -> UpdateResult:
        if query.get("_id") in self.fail_writes_for:
            raise AutoReconnect(f"connection lost while writing {query['_id']!r}")
        doc = self._find(query)
        if doc is None:
            if upsert:
                self._upsert(query, update)
            return UpdateResult(matched_count=0, modified_count=0)
        apply_update(doc, update)
        return UpdateResult(matched_count=1, modified_count=1)

    async def find_one_and_update(
        self,
        query: dict[str, Any],
        update: dict[str, Any],
        upsert: bool = False,
        return_document: bool = ReturnDocument.BEFORE,
    ) -> dict[str, Any] | None:
        doc = self._find(query)
        if doc is None:
            if not upsert:
                return None
            doc = self._upsert(query, update)
            return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else None

        before = copy.deepcopy(doc)
        apply_update(doc, update)
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def delete_one(self, query: dict[str, Any]) -> DeleteResult:
        doc = self._find(query)
        if doc is None:
            return DeleteResult(deleted_count=0)
        self.documents.remove(doc)
        return DeleteResult(deleted_count=1)

    async def delete_many(self, query: dict[str, Any]) -> DeleteResult:
        kept = [doc for doc in self.documents if not matches(doc, query)]
        deleted = len(self.documents) - len(kept)
        self.documents = kept
        return DeleteResult(deleted_count=deleted)


class FakeDatabase:
    def __init__(self, name: str = "aura_test") -> None:
        self.name = name
        self._collections: dict[str, FakeCollection] = {}

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


def users_of(core: Any) -> FakeCollection:
    """The in-memory users collection of a test Core, for inspecting projected entries."""
    return core.database.get_collection("users")
