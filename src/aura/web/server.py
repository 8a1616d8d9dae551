from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import ConnectionFailure

from aura.app import App
from aura.config import Config
from aura.errors import ServiceError, UserError
from aura.web.error_handlers import (
    connection_failure_handler,
    general_exception_handler,
    service_error_handler,
    user_error_handler,
)
from aura.web.middleware import request_id_middleware
from aura.web.openapi import set_custom_openapi
from aura.web.routers import (
    auth_router,
    chats_router,
    comments_router,
    events_router,
    locations_router,
    profile_router,
    references_router,
    travel_plans_router,
    users_router,
)

API_PREFIX = "/api/v1"

API_ROUTERS: tuple[APIRouter, ...] = (
    auth_router,
    profile_router,
    users_router,
    chats_router,
    events_router,
    comments_router,
    locations_router,
    travel_plans_router,
    references_router,
)


def create_fastapi_app(app_instance: App, config: Config) -> FastAPI:
    """HTTP front of ``app_instance``; the App's lifespan runs inside the FastAPI one."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
        app.state.app = app_instance
        app.state.config = config
        async with app_instance.lifespan():
            yield

    app = FastAPI(title="Aura API", lifespan=lifespan)

    app.middleware("http")(request_id_middleware)
    if config.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "healthy"}

    for router in API_ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    app.add_exception_handler(UserError, user_error_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(ConnectionFailure, connection_failure_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    set_custom_openapi(app)
    return app
