"""Group chat endpoints. Every operation except create requires chat membership."""

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from aura.core.modules.chat.models import Chat, ChatEntry, Message
from aura.core.modules.membership.models import FanoutResult
from aura.core.pagination import PaginationResult
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse, FanoutErrorResponse

router: APIRouter = APIRouter(tags=["chats"])

FANOUT_RESPONSE = {"model": FanoutErrorResponse, "description": "Update reached only some participants, resync the chat"}


class CreateChatRequest(BaseModel):
    """Request to create a chat."""

    participant_ids: list[str] = Field(..., min_length=1, description="Users to chat with, the caller is added")


class UpdateChatRequest(BaseModel):
    """Request to change group metadata. Omitted fields stay as they are."""

    group_name: str | None = Field(None, description="Group name")
    group_avatar: str | None = Field(None, description="Group avatar URL")


class SendMessageRequest(BaseModel):
    message: str = Field(..., min_length=1, description="Message text")


class AddMemberRequest(BaseModel):
    user_id: str = Field(..., description="User to add")


@router.get(
    "/chats",
    summary="List chats",
    description="Get the caller's chats, most recent activity first.",
    operation_id="listChats",
    responses={
        200: {"description": "Chat entries of the caller"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def list_chats(app: AppDep, auth_token: AuthTokenDep) -> list[ChatEntry]:
    return await app.list_chats(auth_token)


@router.post(
    "/chats",
    summary="Create chat",
    description="Create a chat between the caller and the given users.",
    operation_id="createChat",
    status_code=201,
    responses={
        201: {"description": "Chat created"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Participant not found"},
        503: FANOUT_RESPONSE,
    },
)
async def create_chat(request: CreateChatRequest, app: AppDep, auth_token: AuthTokenDep) -> Chat:
    return await app.create_chat(auth_token, request.participant_ids)


@router.get(
    "/chats/{chat_id}",
    summary="Get chat",
    description="Get the caller's view of a chat.",
    operation_id="getChat",
    responses={
        200: {"description": "Chat entry"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
    },
)
async def get_chat(chat_id: str, app: AppDep, auth_token: AuthTokenDep) -> ChatEntry:
    return await app.get_chat(auth_token, chat_id)


@router.patch(
    "/chats/{chat_id}",
    summary="Update chat",
    description="Change group name and/or avatar.",
    operation_id="updateChat",
    responses={
        200: {"description": "Chat updated"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
        503: FANOUT_RESPONSE,
    },
)
async def update_chat(chat_id: str, request: UpdateChatRequest, app: AppDep, auth_token: AuthTokenDep) -> Chat:
    return await app.update_chat(auth_token, chat_id, request.group_name, request.group_avatar)


@router.delete(
    "/chats/{chat_id}",
    summary="Delete chat",
    description="Delete the chat, its messages and every participant's entry.",
    operation_id="deleteChat",
    status_code=204,
    responses={
        204: {"description": "Chat deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
        503: FANOUT_RESPONSE,
    },
)
async def delete_chat(chat_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_chat(auth_token, chat_id)


@router.get(
    "/chats/{chat_id}/messages",
    summary="List messages",
    description="Get paginated messages, newest first.",
    operation_id="listMessages",
    responses={
        200: {"description": "Paginated list of messages"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
    },
)
async def list_messages(
    chat_id: str,
    app: AppDep,
    auth_token: AuthTokenDep,
    limit: Annotated[int, Query(ge=1, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Message]:
    return await app.list_messages(auth_token, chat_id, limit, offset)


@router.post(
    "/chats/{chat_id}/messages",
    summary="Send message",
    description="Send a message. Every other member's unread count goes up by one.",
    operation_id="sendMessage",
    status_code=201,
    responses={
        201: {"description": "Message sent"},
        400: {"model": ErrorResponse, "description": "Empty message"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
        503: FANOUT_RESPONSE,
    },
)
async def send_message(chat_id: str, request: SendMessageRequest, app: AppDep, auth_token: AuthTokenDep) -> Message:
    return await app.send_message(auth_token, chat_id, request.message)


@router.post(
    "/chats/{chat_id}/members",
    summary="Add member",
    description="Add a user to the chat.",
    operation_id="addChatMember",
    responses={
        200: {"description": "Member added"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat or user not found"},
        409: {"model": ErrorResponse, "description": "User already in the chat, or caller not a member"},
        503: FANOUT_RESPONSE,
    },
)
async def add_member(chat_id: str, request: AddMemberRequest, app: AppDep, auth_token: AuthTokenDep) -> Chat:
    return await app.add_chat_member(auth_token, chat_id, request.user_id)


@router.delete(
    "/chats/{chat_id}/members/{user_id}",
    summary="Kick member",
    description="Remove a user from the chat.",
    operation_id="kickChatMember",
    responses={
        200: {"description": "Member removed"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "User not in the chat, or caller not a member"},
        503: FANOUT_RESPONSE,
    },
)
async def kick_member(chat_id: str, user_id: str, app: AppDep, auth_token: AuthTokenDep) -> Chat:
    return await app.kick_chat_member(auth_token, chat_id, user_id)


@router.post(
    "/chats/{chat_id}/read",
    summary="Mark chat read",
    description="Reset the caller's unread count.",
    operation_id="markChatRead",
    responses={
        200: {"description": "Updated chat entry"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
    },
)
async def mark_read(chat_id: str, app: AppDep, auth_token: AuthTokenDep) -> ChatEntry:
    return await app.mark_chat_read(auth_token, chat_id)


@router.post(
    "/chats/{chat_id}/resync",
    summary="Resync chat",
    description="Write the current chat state to every member again, repairing entries left behind by a failed update.",
    operation_id="resyncChat",
    responses={
        200: {"description": "All entries written"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Chat not found"},
        409: {"model": ErrorResponse, "description": "Not a member of this chat"},
        503: FANOUT_RESPONSE,
    },
)
async def resync_chat(chat_id: str, app: AppDep, auth_token: AuthTokenDep) -> FanoutResult:
    return await app.resync_chat(auth_token, chat_id)
