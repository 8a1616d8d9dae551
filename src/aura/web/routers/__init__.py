from aura.web.routers.auth import router as auth_router
from aura.web.routers.chats import router as chats_router
from aura.web.routers.comments import router as comments_router
from aura.web.routers.events import router as events_router
from aura.web.routers.locations import router as locations_router
from aura.web.routers.profile import router as profile_router
from aura.web.routers.references import router as references_router
from aura.web.routers.travel_plans import router as travel_plans_router
from aura.web.routers.users import router as users_router

__all__ = [
    "auth_router",
    "chats_router",
    "comments_router",
    "events_router",
    "locations_router",
    "profile_router",
    "references_router",
    "travel_plans_router",
    "users_router",
]
