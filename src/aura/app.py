from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

from pymongo.asynchronous.database import AsyncDatabase

from aura.config import Config
from aura.core.core import Core
from aura.core.modules.chat.models import Chat, ChatEntry, Message
from aura.core.modules.comment.models import Comment
from aura.core.modules.event.models import Event, EventData, EventKind, FutureEventData, NowEvent, NowEventData, PastEventData
from aura.core.modules.location.models import LocationSearchResult
from aura.core.modules.membership.models import FanoutResult
from aura.core.modules.reference.models import Reference, ReferenceData
from aura.core.modules.session.models import AuthToken
from aura.core.modules.travel_plan.models import DailyPlan, ScheduleItemData, TravelPlan
from aura.core.modules.user.models import PublicUserView, UserView
from aura.core.modules.user.validators import validate_phone
from aura.core.pagination import PaginationResult
from aura.errors import ValidationError


class App:
    """Facade for all application operations, authenticates the caller before delegating to Core."""

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self._core = Core(config, database)

    @property
    def config(self) -> Config:
        return self._core.config

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Application lifespan management - delegates to Core."""
        async with self._core.lifespan():
            yield

    # Auth

    async def is_auth_token_valid(self, auth_token: AuthToken) -> bool:
        """Check if authentication token is valid."""
        return await self._core.services.session.is_auth_token_valid(auth_token)

    async def request_otp(self, phone_no: str, country_code: str) -> str:
        """Issue a one-time password for the phone number and return it."""
        validate_phone(country_code, phone_no)
        return await self._core.services.session.issue_otp(phone_no)

    async def login(self, phone_no: str, country_code: str, otp: str) -> AuthToken | None:
        """Verify the OTP and open a session.

        Returns None when no user has this phone number yet; the OTP is then
        left in place so the client can go on to register with it.
        """
        validate_phone(country_code, phone_no)
        user = await self._core.services.user.find_user_by_phone(phone_no)
        await self._core.services.session.verify_otp(phone_no, otp, consume=user is not None)
        if user is None:
            return None
        return await self._core.services.session.create_session(user.id)

    async def register(
        self, phone_no: str, country_code: str, otp: str, name: str, sex: str, avatar: str | None
    ) -> tuple[AuthToken, UserView]:
        """Create the user behind a verified phone number and open a session."""
        validate_phone(country_code, phone_no)
        if await self._core.services.user.find_user_by_phone(phone_no) is not None:
            raise ValidationError("This phone number is already registered")
        await self._core.services.session.verify_otp(phone_no, otp)
        user = await self._core.services.user.create_user(phone_no, country_code, name, sex, avatar)
        auth_token = await self._core.services.session.create_session(user.id)
        return auth_token, UserView.from_domain(user)

    async def logout(self, auth_token: AuthToken) -> None:
        """Invalidate user session."""
        await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.session.invalidate_session(auth_token)

    # Users

    async def get_current_user(self, auth_token: AuthToken) -> UserView:
        """Get current authenticated user profile, with chat and event entries."""
        current_user = await self._core.services.access.ensure_authenticated_user(auth_token)
        return UserView.from_domain(current_user)

    async def update_profile(self, auth_token: AuthToken, name: str, sex: str, avatar: str | None) -> UserView:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        user = await self._core.services.user.update_profile(user_id, name, sex, avatar)
        return UserView.from_domain(user)

    async def get_user(self, auth_token: AuthToken, user_id: str) -> PublicUserView:
        """Get another user's public profile."""
        await self._core.services.access.ensure_authenticated(auth_token)
        user = await self._core.services.user.get_user(user_id)
        return PublicUserView.from_domain(user)

    # Chats

    async def list_chats(self, auth_token: AuthToken) -> list[ChatEntry]:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.list_chats(user_id)

    async def create_chat(self, auth_token: AuthToken, participant_ids: list[str]) -> Chat:
        """Create a chat; the caller is added to the participants."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.create_chat(user_id, participant_ids)

    async def get_chat(self, auth_token: AuthToken, chat_id: str) -> ChatEntry:
        """Get the caller's view of a chat (members only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        chat = await self._core.services.chat.get_chat(chat_id)
        self._core.services.membership.ensure_member(chat_id, user_id, chat.participant_ids)
        return chat.entry_for(user_id)

    async def update_chat(
        self, auth_token: AuthToken, chat_id: str, group_name: str | None, group_avatar: str | None
    ) -> Chat:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.update_chat(user_id, chat_id, group_name, group_avatar)

    async def delete_chat(self, auth_token: AuthToken, chat_id: str) -> FanoutResult:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.delete_chat(user_id, chat_id)

    async def send_message(self, auth_token: AuthToken, chat_id: str, message: str) -> Message:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.send_message(user_id, chat_id, message)

    async def list_messages(
        self, auth_token: AuthToken, chat_id: str, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Message]:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.list_messages(user_id, chat_id, limit, offset)

    async def add_chat_member(self, auth_token: AuthToken, chat_id: str, member_id: str) -> Chat:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.add_member(user_id, chat_id, member_id)

    async def kick_chat_member(self, auth_token: AuthToken, chat_id: str, member_id: str) -> Chat:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.kick_member(user_id, chat_id, member_id)

    async def mark_chat_read(self, auth_token: AuthToken, chat_id: str) -> ChatEntry:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.mark_read(user_id, chat_id)

    async def resync_chat(self, auth_token: AuthToken, chat_id: str) -> FanoutResult:
        """Re-project a chat to all of its members (members only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.chat.resync_chat(user_id, chat_id)

    # Events

    async def list_events(
        self, auth_token: AuthToken, kind: EventKind, owner_id: str | None = None, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Event]:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.list_events(kind, owner_id, limit, offset)

    async def get_event(self, auth_token: AuthToken, kind: EventKind, event_id: str) -> Event:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.get_event(kind, event_id)

    async def create_past_event(self, auth_token: AuthToken, data: PastEventData) -> Event:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.create_past_event(user_id, data)

    async def create_now_event(self, auth_token: AuthToken, data: NowEventData, participant_ids: list[str]) -> Event:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.create_now_event(user_id, data, participant_ids)

    async def create_future_event(self, auth_token: AuthToken, data: FutureEventData) -> Event:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.create_future_event(user_id, data)

    async def update_event(self, auth_token: AuthToken, kind: EventKind, event_id: str, data: EventData) -> Event:
        """Update an event (owner only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.update_event(kind, user_id, event_id, data)

    async def delete_event(self, auth_token: AuthToken, kind: EventKind, event_id: str) -> None:
        """Delete an event (owner only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.event.delete_event(kind, user_id, event_id)

    async def join_event(self, auth_token: AuthToken, event_id: str) -> NowEvent:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.join_event(user_id, event_id)

    async def leave_event(self, auth_token: AuthToken, event_id: str) -> NowEvent:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.event.leave_event(user_id, event_id)

    # Comments

    async def get_event_comments(
        self, auth_token: AuthToken, event_id: str, limit: int = 50, offset: int = 0
    ) -> PaginationResult[Comment]:
        """Get paginated comments for a future event."""
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.comment.get_event_comments(event_id, limit, offset)

    async def create_comment(self, auth_token: AuthToken, event_id: str, content: str) -> Comment:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.comment.create_comment(user_id, event_id, content)

    async def update_comment(self, auth_token: AuthToken, comment_id: str, content: str) -> Comment:
        """Edit a comment (author only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.comment.update_comment(user_id, comment_id, content)

    async def delete_comment(self, auth_token: AuthToken, comment_id: str) -> None:
        """Delete a comment (author only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.comment.delete_comment(user_id, comment_id)

    # Locations

    async def search_locations(self, auth_token: AuthToken, coordinates: str, query: str) -> LocationSearchResult:
        await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.location.search(coordinates, query)

    # Travel plans

    async def list_travel_plans(self, auth_token: AuthToken) -> list[TravelPlan]:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.list_plans(user_id)

    async def get_travel_plan(self, auth_token: AuthToken, plan_id: str) -> TravelPlan:
        """Get a travel plan (participants only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.get_plan_for_participant(user_id, plan_id)

    async def create_travel_plan(self, auth_token: AuthToken, title: str, start_date: date, end_date: date) -> TravelPlan:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.create_plan(user_id, title, start_date, end_date)

    async def update_travel_plan(
        self, auth_token: AuthToken, plan_id: str, title: str, start_date: date, end_date: date
    ) -> TravelPlan:
        """Change title and dates (owner only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.update_plan(user_id, plan_id, title, start_date, end_date)

    async def delete_travel_plan(self, auth_token: AuthToken, plan_id: str) -> None:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.travel_plan.delete_plan(user_id, plan_id)

    async def add_schedule_item(
        self, auth_token: AuthToken, plan_id: str, daily_plan_id: str, data: ScheduleItemData
    ) -> DailyPlan:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.add_schedule_item(user_id, plan_id, daily_plan_id, data)

    async def update_schedule_item(
        self, auth_token: AuthToken, plan_id: str, daily_plan_id: str, item_id: str, data: ScheduleItemData
    ) -> DailyPlan:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.update_schedule_item(user_id, plan_id, daily_plan_id, item_id, data)

    async def delete_schedule_item(self, auth_token: AuthToken, plan_id: str, daily_plan_id: str, item_id: str) -> DailyPlan:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.travel_plan.delete_schedule_item(user_id, plan_id, daily_plan_id, item_id)

    # References

    async def list_references(self, auth_token: AuthToken) -> list[Reference]:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.reference.list_references(user_id)

    async def get_reference(self, auth_token: AuthToken, reference_id: str) -> Reference:
        """Get a reference (owner only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.reference.get_reference_for_owner(user_id, reference_id)

    async def create_reference(self, auth_token: AuthToken, data: ReferenceData) -> Reference:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.reference.create_reference(user_id, data)

    async def update_reference(self, auth_token: AuthToken, reference_id: str, data: ReferenceData) -> Reference:
        """Replace a reference's fields (owner only)."""
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        return await self._core.services.reference.update_reference(user_id, reference_id, data)

    async def delete_reference(self, auth_token: AuthToken, reference_id: str) -> None:
        user_id = await self._core.services.access.ensure_authenticated(auth_token)
        await self._core.services.reference.delete_reference(user_id, reference_id)
