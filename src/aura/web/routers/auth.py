from fastapi import APIRouter, Response
from pydantic import BaseModel, Field

from aura.core.modules.session.models import AuthToken
from aura.core.modules.user.models import UserView
from aura.web.deps import AUTH_COOKIE, AppDep, AuthTokenDep, ConfigDep
from aura.web.openapi import ErrorResponse

router = APIRouter(tags=["auth"])


class OtpRequest(BaseModel):
    """Request a one-time password for a phone number."""

    country_code: str = Field(..., description="Country calling code, only +60 is supported")
    phone_no: str = Field(..., description="Phone number without country code")


class OtpResponse(BaseModel):
    """OTP issue confirmation."""

    sent: bool = Field(..., description="Whether a code was issued")
    otp: str | None = Field(None, description="The code itself, returned in debug mode only")


class LoginRequest(OtpRequest):
    """Authentication request."""

    otp: str = Field(..., min_length=1, description="One-time password received for the phone")


class LoginResponse(BaseModel):
    """Authentication response."""

    token: str | None = Field(None, description="Authentication token for subsequent requests")
    registration_required: bool = Field(False, description="No user has this phone number yet, call /auth/register")


class RegisterRequest(LoginRequest):
    """Registration request, the OTP must still be valid."""

    name: str = Field(..., min_length=1, description="Display name")
    sex: str = Field(..., description="Sex")
    avatar: str | None = Field(None, description="Avatar URL")


class RegisterResponse(BaseModel):
    token: str = Field(..., description="Authentication token for subsequent requests")
    user: UserView = Field(..., description="The new user")


def set_auth_cookie(response: Response, token: AuthToken, max_age: int) -> None:
    # Cookie for browser-based clients; mobile clients use the bearer token
    response.set_cookie(key=AUTH_COOKIE, value=token, httponly=True, samesite="lax", secure=False, max_age=max_age)


@router.post(
    "/auth/otp",
    summary="Request OTP",
    description="Issue a one-time password for the phone number. Any previous code for the phone is replaced.",
    operation_id="requestOtp",
    responses={
        200: {"description": "Code issued"},
        400: {"model": ErrorResponse, "description": "Invalid phone number"},
    },
)
async def request_otp(request: OtpRequest, app: AppDep, config: ConfigDep) -> OtpResponse:
    otp = await app.request_otp(request.phone_no, request.country_code)
    return OtpResponse(sent=True, otp=otp if config.debug else None)


@router.post(
    "/auth/login",
    summary="Authenticate user",
    description=(
        "Log in with phone number and OTP. Responds 202 with registration_required when the phone "
        "is not registered yet; the OTP then stays valid for /auth/register."
    ),
    operation_id="login",
    responses={
        200: {"description": "Successfully authenticated"},
        202: {"description": "Phone number not registered"},
        400: {"model": ErrorResponse, "description": "Invalid phone number or OTP"},
    },
)
async def login(request: LoginRequest, app: AppDep, config: ConfigDep, response: Response) -> LoginResponse:
    """Authenticate user and create session."""
    token = await app.login(request.phone_no, request.country_code, request.otp)
    if token is None:
        response.status_code = 202
        return LoginResponse(registration_required=True)

    set_auth_cookie(response, token, config.session_ttl_days * 24 * 60 * 60)
    return LoginResponse(token=token)


@router.post(
    "/auth/register",
    summary="Register user",
    description="Create a user for a phone number verified with an OTP and log in.",
    operation_id="register",
    status_code=201,
    responses={
        201: {"description": "User registered"},
        400: {"model": ErrorResponse, "description": "Invalid data, OTP, or phone already registered"},
    },
)
async def register(request: RegisterRequest, app: AppDep, config: ConfigDep, response: Response) -> RegisterResponse:
    token, user = await app.register(
        request.phone_no, request.country_code, request.otp, request.name, request.sex, request.avatar
    )
    set_auth_cookie(response, token, config.session_ttl_days * 24 * 60 * 60)
    return RegisterResponse(token=token, user=user)


@router.get(
    "/auth/me",
    summary="Current user",
    description="Validate the token and return the authenticated user with chat and event entries.",
    operation_id="getMe",
    responses={
        200: {"description": "Authenticated user"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def me(app: AppDep, auth_token: AuthTokenDep) -> UserView:
    return await app.get_current_user(auth_token)


@router.post(
    "/auth/logout",
    summary="End session",
    description="Invalidate the current authentication session.",
    operation_id="logout",
    status_code=204,
    responses={
        204: {"description": "Successfully logged out"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
    },
)
async def logout(app: AppDep, auth_token: AuthTokenDep, response: Response) -> None:
    await app.logout(auth_token)
    response.delete_cookie(AUTH_COOKIE)
