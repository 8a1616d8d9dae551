"""Event endpoints for the three kinds: past, now and future."""

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import Field

from aura.core.modules.event.models import Event, EventKind, FutureEventData, NowEvent, NowEventData, PastEventData
from aura.core.pagination import PaginationResult
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse, FanoutErrorResponse

router: APIRouter = APIRouter(tags=["events"])

FANOUT_RESPONSE = {"model": FanoutErrorResponse, "description": "Update reached only some participants"}


class CreateNowEventRequest(NowEventData):
    """Now event with its initial participants (the caller is added as owner)."""

    participant_ids: list[str] = Field(default_factory=list, description="Users to add besides the owner")


@router.get(
    "/events/{kind}",
    summary="List events",
    description="Get paginated events of one kind, newest first, optionally only those of one owner.",
    operation_id="listEvents",
    responses={
        200: {"description": "Paginated list of events"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_events(
    kind: EventKind,
    app: AppDep,
    auth_token: AuthTokenDep,
    owner_id: Annotated[str | None, Query(description="Only events of this owner")] = None,
    limit: Annotated[int, Query(ge=1, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Event]:
    return await app.list_events(auth_token, kind, owner_id, limit, offset)


@router.get(
    "/events/{kind}/{event_id}",
    summary="Get event",
    operation_id="getEvent",
    responses={
        200: {"description": "Event"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def get_event(kind: EventKind, event_id: str, app: AppDep, auth_token: AuthTokenDep) -> Event:
    return await app.get_event(auth_token, kind, event_id)


@router.post(
    "/events/past",
    summary="Create past event",
    description="Record an event that already happened. The caller is the only participant.",
    operation_id="createPastEvent",
    status_code=201,
    responses={
        201: {"description": "Event created"},
        400: {"model": ErrorResponse, "description": "Invalid event data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_past_event(request: PastEventData, app: AppDep, auth_token: AuthTokenDep) -> Event:
    return await app.create_past_event(auth_token, request)


@router.post(
    "/events/now",
    summary="Create now event",
    description="Create a joinable event. Every participant gets the event in their event list.",
    operation_id="createNowEvent",
    status_code=201,
    responses={
        201: {"description": "Event created"},
        400: {"model": ErrorResponse, "description": "Invalid event data or too many participants"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Participant not found"},
        503: FANOUT_RESPONSE,
    },
)
async def create_now_event(request: CreateNowEventRequest, app: AppDep, auth_token: AuthTokenDep) -> Event:
    data = NowEventData.model_validate(request.model_dump(exclude={"participant_ids"}))
    return await app.create_now_event(auth_token, data, request.participant_ids)


@router.post(
    "/events/future",
    summary="Create future event",
    description="Add a place to go to.",
    operation_id="createFutureEvent",
    status_code=201,
    responses={
        201: {"description": "Event created"},
        400: {"model": ErrorResponse, "description": "Invalid event data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def create_future_event(request: FutureEventData, app: AppDep, auth_token: AuthTokenDep) -> Event:
    return await app.create_future_event(auth_token, request)


@router.put(
    "/events/past/{event_id}",
    summary="Update past event",
    operation_id="updatePastEvent",
    responses={
        200: {"description": "Event updated"},
        400: {"model": ErrorResponse, "description": "Invalid event data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this event"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def update_past_event(event_id: str, request: PastEventData, app: AppDep, auth_token: AuthTokenDep) -> Event:
    return await app.update_event(auth_token, EventKind.PAST, event_id, request)


@router.put(
    "/events/now/{event_id}",
    summary="Update now event",
    description="Update event details. Participants change through join and leave.",
    operation_id="updateNowEvent",
    responses={
        200: {"description": "Event updated"},
        400: {"model": ErrorResponse, "description": "Invalid event data"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this event"},
        404: {"model": ErrorResponse, "description": "Event not found"},
        503: FANOUT_RESPONSE,
    },
)
async def update_now_event(event_id: str, request: NowEventData, app: AppDep, auth_token: AuthTokenDep) -> Event:
    return await app.update_event(auth_token, EventKind.NOW, event_id, request)


@router.put(
    "/events/future/{event_id}",
    summary="Update future event",
    operation_id="updateFutureEvent",
    responses={
        200: {"description": "Event updated"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this event"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def update_future_event(event_id: str, request: FutureEventData, app: AppDep, auth_token: AuthTokenDep) -> Event:
    return await app.update_event(auth_token, EventKind.FUTURE, event_id, request)


@router.delete(
    "/events/{kind}/{event_id}",
    summary="Delete event",
    description="Delete an event with its comments (future) or participant entries (now).",
    operation_id="deleteEvent",
    status_code=204,
    responses={
        204: {"description": "Event deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the owner of this event"},
        404: {"model": ErrorResponse, "description": "Event not found"},
        503: FANOUT_RESPONSE,
    },
)
async def delete_event(kind: EventKind, event_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_event(auth_token, kind, event_id)


@router.post(
    "/events/now/{event_id}/join",
    summary="Join event",
    operation_id="joinEvent",
    responses={
        200: {"description": "Joined"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Event not found"},
        409: {"model": ErrorResponse, "description": "Already joined or event is full"},
        503: FANOUT_RESPONSE,
    },
)
async def join_event(event_id: str, app: AppDep, auth_token: AuthTokenDep) -> NowEvent:
    return await app.join_event(auth_token, event_id)


@router.post(
    "/events/now/{event_id}/leave",
    summary="Leave event",
    description="Leave a now event. The owner cannot leave.",
    operation_id="leaveEvent",
    responses={
        200: {"description": "Left"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Event not found"},
        409: {"model": ErrorResponse, "description": "Not a participant, or the caller is the owner"},
        503: FANOUT_RESPONSE,
    },
)
async def leave_event(event_id: str, app: AppDep, auth_token: AuthTokenDep) -> NowEvent:
    return await app.leave_event(auth_token, event_id)
