from fastapi import APIRouter

from aura.core.modules.user.models import PublicUserView
from aura.web.deps import AppDep, AuthTokenDep
from aura.web.openapi import ErrorResponse

router = APIRouter(tags=["users"])


@router.get(
    "/users/{user_id}",
    summary="Get user",
    description="Get the public profile of a user.",
    operation_id="getUser",
    responses={
        200: {"description": "Public profile"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "User not found"},
    },
)
async def get_user(user_id: str, app: AppDep, auth_token: AuthTokenDep) -> PublicUserView:
    return await app.get_user(auth_token, user_id)
