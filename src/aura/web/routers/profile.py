from fastapi import APIRouter
from pydantic import BaseModel, Field

from aura.core.modules.user.models import UserView
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse

router = APIRouter(tags=["profile"])


class UpdateProfileRequest(BaseModel):
    """Request to update the editable profile fields."""

    name: str = Field(..., min_length=1, description="Display name")
    sex: str = Field(..., description="Sex")
    avatar: str | None = Field(None, description="Avatar URL")


@router.get(
    "/profile",
    summary="Get current user profile",
    description="Get the profile of the currently authenticated user.",
    operation_id="getCurrentUserProfile",
    responses={
        200: {"description": "Current user profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def get_profile(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)


@router.put(
    "/profile",
    summary="Update profile",
    description="Replace name, sex and avatar of the currently authenticated user.",
    operation_id="updateProfile",
    responses={
        200: {"description": "Updated profile"},
        400: {"model": ErrorResponse, "description": "Invalid request"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def update_profile(request: UpdateProfileRequest, app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.update_profile(auth_token, request.name, request.sex, request.avatar)
