"""Travel plan endpoints. Plans are edited by their owner; schedules by any participant."""

from datetime import date

from fastapi import APIRouter
from pydantic import BaseModel, Field

from aura.core.modules.travel_plan.models import DailyPlan, ScheduleItemData, TravelPlan
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["travel-plans"])


class TravelPlanRequest(BaseModel):
    """Request to create or update a travel plan."""

    title: str = Field(..., min_length=1, description="Trip title")
    start_date: date = Field(..., description="First day of the trip")
    end_date: date = Field(..., description="Last day of the trip (inclusive)")


@router.get(
    "/travel-plans",
    summary="List travel plans",
    description="Get the travel plans the caller takes part in, by start date.",
    operation_id="listTravelPlans",
    responses={
        200: {"description": "Travel plans"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_travel_plans(app: AppDep, auth_token: AuthTokenDep) -> list[TravelPlan]:
    return await app.list_travel_plans(auth_token)


@router.post(
    "/travel-plans",
    summary="Create travel plan",
    description="Create a travel plan with one empty daily plan per day.",
    operation_id="createTravelPlan",
    status_code=201,
    responses={
        201: {"description": "Travel plan created"},
        400: {"model": ErrorResponse, "description": "Invalid dates"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_travel_plan(request: TravelPlanRequest, app: AppDep, auth_token: AuthTokenDep) -> TravelPlan:
    return await app.create_travel_plan(auth_token, request.title, request.start_date, request.end_date)


@router.get(
    "/travel-plans/{plan_id}",
    summary="Get travel plan",
    operation_id="getTravelPlan",
    responses={
        200: {"description": "Travel plan"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Travel plan not found"},
    },
)
async def get_travel_plan(plan_id: str, app: AppDep, auth_token: AuthTokenDep) -> TravelPlan:
    return await app.get_travel_plan(auth_token, plan_id)


@router.put(
    "/travel-plans/{plan_id}",
    summary="Update travel plan",
    description="Change title and dates. Days still within the new dates keep their schedule.",
    operation_id="updateTravelPlan",
    responses={
        200: {"description": "Travel plan updated"},
        400: {"model": ErrorResponse, "description": "Invalid dates"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Travel plan not found"},
    },
)
async def update_travel_plan(
    plan_id: str, request: TravelPlanRequest, app: AppDep, auth_token: AuthTokenDep
) -> TravelPlan:
    return await app.update_travel_plan(auth_token, plan_id, request.title, request.start_date, request.end_date)


@router.delete(
    "/travel-plans/{plan_id}",
    summary="Delete travel plan",
    operation_id="deleteTravelPlan",
    status_code=204,
    responses={
        204: {"description": "Travel plan deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner"},
        404: {"model": ErrorResponse, "description": "Travel plan not found"},
    },
)
async def delete_travel_plan(plan_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_travel_plan(auth_token, plan_id)


@router.post(
    "/travel-plans/{plan_id}/daily-plans/{daily_plan_id}/items",
    summary="Add schedule item",
    operation_id="addScheduleItem",
    status_code=201,
    responses={
        201: {"description": "Updated daily plan"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Travel plan or daily plan not found"},
    },
)
async def add_schedule_item(
    plan_id: str, daily_plan_id: str, request: ScheduleItemData, app: AppDep, auth_token: AuthTokenDep
) -> DailyPlan:
    return await app.add_schedule_item(auth_token, plan_id, daily_plan_id, request)


@router.put(
    "/travel-plans/{plan_id}/daily-plans/{daily_plan_id}/items/{item_id}",
    summary="Update schedule item",
    operation_id="updateScheduleItem",
    responses={
        200: {"description": "Updated daily plan"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Travel plan, daily plan or item not found"},
    },
)
async def update_schedule_item(
    plan_id: str, daily_plan_id: str, item_id: str, request: ScheduleItemData, app: AppDep, auth_token: AuthTokenDep
) -> DailyPlan:
    return await app.update_schedule_item(auth_token, plan_id, daily_plan_id, item_id, request)


@router.delete(
    "/travel-plans/{plan_id}/daily-plans/{daily_plan_id}/items/{item_id}",
    summary="Delete schedule item",
    operation_id="deleteScheduleItem",
    responses={
        200: {"description": "Updated daily plan"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not a participant"},
        404: {"model": ErrorResponse, "description": "Travel plan, daily plan or item not found"},
    },
)
async def delete_schedule_item(
    plan_id: str, daily_plan_id: str, item_id: str, app: AppDep, auth_token: AuthTokenDep
) -> DailyPlan:
    return await app.delete_schedule_item(auth_token, plan_id, daily_plan_id, item_id)
