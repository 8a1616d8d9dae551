from typing import Any

import structlog
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.user.models import User
from aura.core.modules.user.validators import validate_phone
from aura.errors import NotFoundError, ValidationError
from aura.utils import now

logger = structlog.get_logger(__name__)


class UserService(Service):
    """Manages user documents. Profiles are read from MongoDB on every call."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("users")

    async def on_start(self) -> None:
        await self._collection.create_index([("phone_no", 1)], unique=True)

    async def get_user(self, user_id: str) -> User:
        user = await User.find_by_id(self._collection, user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    async def find_user_by_phone(self, phone_no: str) -> User | None:
        doc = await self._collection.find_one({"phone_no": phone_no})
        return User.model_validate(doc) if doc is not None else None

    async def get_user_by_phone(self, phone_no: str) -> User:
        user = await self.find_user_by_phone(phone_no)
        if user is None:
            raise NotFoundError(f"User with phone '{phone_no}' not found")
        return user

    async def create_user(self, phone_no: str, country_code: str, name: str, sex: str, avatar: str | None) -> User:
        """Register a new user with a freshly allocated ``US`` id."""
        validate_phone(country_code, phone_no)
        if not name.strip():
            raise ValidationError("Name cannot be empty")
        if await self.find_user_by_phone(phone_no) is not None:
            raise ValidationError("This phone number is already registered")

        user_id = await self.core.services.counter.next_id(IdSeries.USER)
        user = User(id=user_id, phone_no=phone_no, country_code=country_code, name=name, sex=sex, avatar=avatar or None)
        await self._collection.insert_one(user.to_mongo())
        logger.info("user_created", user_id=user_id)
        return user

    async def update_profile(self, user_id: str, name: str, sex: str, avatar: str | None) -> User:
        """Replace the editable profile fields."""
        if not name.strip():
            raise ValidationError("Name cannot be empty")

        result = await self._collection.update_one(
            {"_id": user_id}, {"$set": {"name": name, "sex": sex, "avatar": avatar or None, "updated_at": now()}}
        )
        if result.matched_count == 0:
            raise NotFoundError(f"User '{user_id}' not found")
        return await self.get_user(user_id)

    async def get_users(self, user_ids: list[str]) -> list[User]:
        """Users with the given ids, in the same order; unknown ids are skipped."""
        docs = await User.list_cursor(self._collection.find({"_id": {"$in": user_ids}}))
        by_id = {user.id: user for user in docs}
        return [by_id[user_id] for user_id in user_ids if user_id in by_id]
