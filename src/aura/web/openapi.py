from typing import Any

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi
from pydantic import BaseModel, ConfigDict, Field

API_VERSION = "0.1.0"

TAGS: list[dict[str, str]] = [
    {"name": "auth", "description": "Phone number login with one-time codes"},
    {"name": "profile", "description": "The signed-in user"},
    {"name": "users", "description": "Public profiles"},
    {"name": "chats", "description": "Group chats and messages"},
    {"name": "events", "description": "Past, now and future events"},
    {"name": "comments", "description": "Comments on future events"},
    {"name": "locations", "description": "Nearby place search"},
    {"name": "travel-plans", "description": "Day by day trip schedules"},
    {"name": "references", "description": "Saved event drafts"},
]

SECURITY_SCHEMES: dict[str, dict[str, str]] = {
    "BearerAuth": {"type": "http", "scheme": "bearer", "description": "Session token from login or register"},
    "AuthTokenCookie": {"type": "apiKey", "in": "cookie", "name": "auth_token", "description": "Same token as a cookie"},
}

# Routes reachable without a session
PUBLIC_ROUTES = frozenset(
    {
        ("get", "/health"),
        ("post", "/api/v1/auth/otp"),
        ("post", "/api/v1/auth/login"),
        ("post", "/api/v1/auth/register"),
    }
)


def build_openapi_schema(app: FastAPI) -> dict[str, Any]:
    schema = get_openapi(
        title=app.title,
        version=API_VERSION,
        summary="Chats, events and travel plans for the Aura mobile app",
        routes=app.routes,
        tags=TAGS,
    )
    schema.setdefault("components", {})["securitySchemes"] = SECURITY_SCHEMES
    schema["security"] = [{name: []} for name in SECURITY_SCHEMES]
    for path, operations in schema["paths"].items():
        for method, operation in operations.items():
            operation["security"] = [] if (method, path) in PUBLIC_ROUTES else schema["security"]
    return schema


def set_custom_openapi(app: FastAPI) -> None:
    def openapi() -> dict[str, Any]:
        if app.openapi_schema is None:
            app.openapi_schema = build_openapi_schema(app)
        return app.openapi_schema

    app.openapi = openapi  # type: ignore[method-assign]


class ErrorResponse(BaseModel):
    """Body of every non-2xx response."""

    message: str = Field(..., description="Human-readable error message")
    type: str = Field(..., description="Machine-readable error type")

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"message": "Invalid OTP", "type": "validation_error"},
                {"message": "Chat 'CH2511000000007' does not exist", "type": "not_found"},
                {"message": "Event is full", "type": "precondition_failed"},
            ]
        }
    )


class FanoutErrorResponse(ErrorResponse):
    """Returned when a membership update reached only some participants."""

    succeeded: list[str] = Field(default_factory=list, description="Participants whose copy was updated")
    failed: list[str] = Field(default_factory=list, description="Participants to repair with a resync")
