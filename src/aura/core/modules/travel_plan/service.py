from datetime import date
from typing import Any

import structlog
from pymongo import ReturnDocument
from pymongo.asynchronous.database import AsyncDatabase

from aura.core.core import Service
from aura.core.modules.counter.models import IdSeries
from aura.core.modules.event.models import Participant
from aura.core.modules.travel_plan.models import DailyPlan, ScheduleItem, ScheduleItemData, TravelPlan
from aura.core.modules.travel_plan.utils import MAX_TRIP_DAYS, day_range, diff_days
from aura.errors import AccessDeniedError, NotFoundError, ValidationError
from aura.utils import now, start_of_day

logger = structlog.get_logger(__name__)


def check_trip(title: str, start_date: date, end_date: date) -> None:
    if not title.strip():
        raise ValidationError("Title cannot be empty")
    if end_date < start_date:
        raise ValidationError("End date must not be before start date")
    if (end_date - start_date).days + 1 > MAX_TRIP_DAYS:
        raise ValidationError(f"Travel plan cannot be longer than {MAX_TRIP_DAYS} days")


class TravelPlanService(Service):
    """Travel plans owned by one user; participants edit the daily schedules."""

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        super().__init__(database)
        self._collection = database.get_collection("travelPlans")

    async def on_start(self) -> None:
        await self._collection.create_index([("participant_ids", 1)])

    async def get_plan(self, plan_id: str) -> TravelPlan:
        plan = await TravelPlan.find_by_id(self._collection, plan_id)
        if plan is None:
            raise NotFoundError(f"Travel plan '{plan_id}' not found")
        return plan

    async def get_plan_for_participant(self, user_id: str, plan_id: str) -> TravelPlan:
        plan = await self.get_plan(plan_id)
        if user_id not in plan.participant_ids:
            raise AccessDeniedError("Forbidden: You are not a participant of this travel plan")
        return plan

    async def list_plans(self, user_id: str) -> list[TravelPlan]:
        """Plans the user takes part in, by start date."""
        cursor = self._collection.find({"participant_ids": user_id}).sort("start_date", 1)
        return await TravelPlan.list_cursor(cursor)

    async def create_plan(self, owner_id: str, title: str, start_date: date, end_date: date) -> TravelPlan:
        """Create a plan with an empty daily plan for every day of the trip."""
        check_trip(title, start_date, end_date)
        owner = await self.core.services.user.get_user(owner_id)

        plan_id = await self.core.services.counter.next_id(IdSeries.TRAVEL_PLAN)
        daily_plans = {}
        for day in day_range(start_date, end_date):
            daily_plan = await self._new_daily_plan(day)
            daily_plans[daily_plan.id] = daily_plan

        plan = TravelPlan(
            id=plan_id,
            owner_id=owner_id,
            title=title,
            start_date=start_of_day(start_date),
            end_date=start_of_day(end_date),
            participants=[Participant(id=owner.id, name=owner.name, avatar=owner.avatar)],
            participant_ids=[owner.id],
            daily_plans=daily_plans,
        )
        await self._collection.insert_one(plan.to_mongo())
        logger.info("travel_plan_created", plan_id=plan_id, days=len(daily_plans))
        return plan

    async def update_plan(self, user_id: str, plan_id: str, title: str, start_date: date, end_date: date) -> TravelPlan:
        """Change title and dates (owner only).

        Days still inside the new range keep their daily plan and items; days
        outside it are dropped and new days get an empty daily plan.
        """
        check_trip(title, start_date, end_date)
        plan = await self.get_plan(plan_id)
        self.core.services.access.ensure_owner(plan.owner_id, user_id, "travel plan")

        current_days = sorted(daily_plan.date.date() for daily_plan in plan.daily_plans.values())
        days_to_add, days_to_remove = diff_days(current_days, day_range(start_date, end_date))

        to_set: dict[str, Any] = {
            "title": title,
            "start_date": start_of_day(start_date),
            "end_date": start_of_day(end_date),
            "updated_at": now(),
        }
        for day in days_to_add:
            daily_plan = await self._new_daily_plan(day)
            to_set[f"daily_plans.{daily_plan.id}"] = daily_plan.model_dump()

        removed = set(days_to_remove)
        to_unset = {
            f"daily_plans.{daily_plan.id}": "" for daily_plan in plan.daily_plans.values() if daily_plan.date.date() in removed
        }

        update: dict[str, Any] = {"$set": to_set}
        if to_unset:
            update["$unset"] = to_unset
        doc = await self._collection.find_one_and_update({"_id": plan_id}, update, return_document=ReturnDocument.AFTER)
        if doc is None:
            raise NotFoundError(f"Travel plan '{plan_id}' not found")

        logger.debug("travel_plan_updated", plan_id=plan_id, added=len(days_to_add), removed=len(to_unset))
        return TravelPlan.model_validate(doc)

    async def delete_plan(self, user_id: str, plan_id: str) -> None:
        plan = await self.get_plan(plan_id)
        self.core.services.access.ensure_owner(plan.owner_id, user_id, "travel plan")
        await self._collection.delete_one({"_id": plan_id})

    async def add_schedule_item(self, user_id: str, plan_id: str, daily_plan_id: str, data: ScheduleItemData) -> DailyPlan:
        await self._load_daily_plan(user_id, plan_id, daily_plan_id)

        item_id = await self.core.services.counter.next_id(IdSeries.SCHEDULE_ITEM)
        item = ScheduleItem(id=item_id, **data.model_dump())
        path = f"daily_plans.{daily_plan_id}"
        return await self._apply(
            plan_id, daily_plan_id, {path: {"$exists": True}}, {"$set": {f"{path}.schedule_items.{item_id}": item.model_dump()}}
        )

    async def update_schedule_item(
        self, user_id: str, plan_id: str, daily_plan_id: str, item_id: str, data: ScheduleItemData
    ) -> DailyPlan:
        daily_plan = await self._load_daily_plan(user_id, plan_id, daily_plan_id)
        if item_id not in daily_plan.schedule_items:
            raise NotFoundError(f"Schedule item '{item_id}' not found")

        item = ScheduleItem(id=item_id, **data.model_dump())
        path = f"daily_plans.{daily_plan_id}.schedule_items.{item_id}"
        return await self._apply(plan_id, daily_plan_id, {path: {"$exists": True}}, {"$set": {path: item.model_dump()}})

    async def delete_schedule_item(self, user_id: str, plan_id: str, daily_plan_id: str, item_id: str) -> DailyPlan:
        daily_plan = await self._load_daily_plan(user_id, plan_id, daily_plan_id)
        if item_id not in daily_plan.schedule_items:
            raise NotFoundError(f"Schedule item '{item_id}' not found")

        path = f"daily_plans.{daily_plan_id}.schedule_items.{item_id}"
        return await self._apply(plan_id, daily_plan_id, {path: {"$exists": True}}, {"$unset": {path: ""}})

    async def _new_daily_plan(self, day: date) -> DailyPlan:
        daily_plan_id = await self.core.services.counter.next_id(IdSeries.DAILY_PLAN)
        return DailyPlan(id=daily_plan_id, date=start_of_day(day))

    async def _load_daily_plan(self, user_id: str, plan_id: str, daily_plan_id: str) -> DailyPlan:
        plan = await self.get_plan_for_participant(user_id, plan_id)
        if daily_plan_id not in plan.daily_plans:
            raise NotFoundError(f"Daily plan '{daily_plan_id}' not found")
        return plan.daily_plans[daily_plan_id]

    async def _apply(self, plan_id: str, daily_plan_id: str, guard: dict[str, Any], update: dict[str, Any]) -> DailyPlan:
        """Targeted update of one daily plan; the guard fails if it was removed meanwhile."""
        doc = await self._collection.find_one_and_update(
            {"_id": plan_id, **guard}, update, return_document=ReturnDocument.AFTER
        )
        if doc is None:
            raise NotFoundError(f"Daily plan '{daily_plan_id}' not found")
        return TravelPlan.model_validate(doc).daily_plans[daily_plan_id]
