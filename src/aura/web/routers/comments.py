"""Comment endpoints for future events."""

from typing import Annotated

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from aura.core.modules.comment.models import Comment
from aura.core.pagination import PaginationResult
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["comments"])


class CommentRequest(BaseModel):
    """Request to create or edit a comment."""

    content: str = Field(..., description="The comment text", min_length=1)


@router.get(
    "/events/future/{event_id}/comments",
    summary="List event comments",
    description="Get paginated comments for a future event, newest first.",
    operation_id="listComments",
    responses={
        200: {"description": "Paginated list of comments"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def list_comments(
    event_id: str,
    app: AppDep,
    auth_token: AuthTokenDep,
    limit: Annotated[int, Query(ge=1, description="Maximum items to return")] = 50,
    offset: Annotated[int, Query(ge=0, description="Number of items to skip")] = 0,
) -> PaginationResult[Comment]:
    return await app.get_event_comments(auth_token, event_id, limit, offset)


@router.post(
    "/events/future/{event_id}/comments",
    summary="Create comment",
    description="Add a comment to a future event.",
    operation_id="createComment",
    status_code=201,
    responses={
        201: {"description": "Comment created successfully"},
        400: {"model": ErrorResponse, "description": "Empty comment"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Event not found"},
    },
)
async def create_comment(event_id: str, request: CommentRequest, app: AppDep, auth_token: AuthTokenDep) -> Comment:
    return await app.create_comment(auth_token, event_id, request.content)


@router.put(
    "/comments/{comment_id}",
    summary="Edit comment",
    description="Change the text of a comment. Only its author can edit it.",
    operation_id="updateComment",
    responses={
        200: {"description": "Comment updated"},
        400: {"model": ErrorResponse, "description": "Empty comment"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def update_comment(comment_id: str, request: CommentRequest, app: AppDep, auth_token: AuthTokenDep) -> Comment:
    return await app.update_comment(auth_token, comment_id, request.content)


@router.delete(
    "/comments/{comment_id}",
    summary="Delete comment",
    operation_id="deleteComment",
    status_code=204,
    responses={
        204: {"description": "Comment deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Not the author"},
        404: {"model": ErrorResponse, "description": "Comment not found"},
    },
)
async def delete_comment(comment_id: str, app: AppDep, auth_token: AuthTokenDep) -> None:
    await app.delete_comment(auth_token, comment_id)
