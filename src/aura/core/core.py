from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, cast
from urllib.parse import urlparse

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from aura.config import Config

if TYPE_CHECKING:
    from aura.core.modules.access.service import AccessService
    from aura.core.modules.chat.service import ChatService
    from aura.core.modules.comment.service import CommentService
    from aura.core.modules.counter.service import CounterService
    from aura.core.modules.event.service import EventService
    from aura.core.modules.location.service import LocationService
    from aura.core.modules.membership.service import MembershipService
    from aura.core.modules.reference.service import ReferenceService
    from aura.core.modules.session.service import SessionService
    from aura.core.modules.travel_plan.service import TravelPlanService
    from aura.core.modules.user.service import UserService

logger = structlog.get_logger(__name__)

# attribute -> "module:Class", started top to bottom and stopped in reverse
SERVICE_REGISTRY: tuple[tuple[str, str], ...] = (
    ("counter", "aura.core.modules.counter.service:CounterService"),
    ("user", "aura.core.modules.user.service:UserService"),
    ("session", "aura.core.modules.session.service:SessionService"),
    ("access", "aura.core.modules.access.service:AccessService"),
    ("membership", "aura.core.modules.membership.service:MembershipService"),
    ("chat", "aura.core.modules.chat.service:ChatService"),
    ("event", "aura.core.modules.event.service:EventService"),
    ("comment", "aura.core.modules.comment.service:CommentService"),
    ("location", "aura.core.modules.location.service:LocationService"),
    ("travel_plan", "aura.core.modules.travel_plan.service:TravelPlanService"),
    ("reference", "aura.core.modules.reference.service:ReferenceService"),
)


def load_service_class(target: str) -> type[Service]:
    module_path, class_name = target.split(":")
    return cast(type[Service], getattr(importlib.import_module(module_path), class_name))


class Service:
    """A unit of domain logic owning one or more collections.

    Services reach each other through ``self.core.services``.
    """

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self.database = database
        self._core: Core | None = None

    async def on_start(self) -> None:
        pass

    async def on_stop(self) -> None:
        pass

    @property
    def core(self) -> Core:
        if self._core is None:
            raise RuntimeError(f"{type(self).__name__} is not attached to a Core")
        return self._core

    def set_core(self, core: Core) -> None:
        self._core = core


class Services:
    counter: CounterService
    user: UserService
    session: SessionService
    access: AccessService
    membership: MembershipService
    chat: ChatService
    event: EventService
    comment: CommentService
    location: LocationService
    travel_plan: TravelPlanService
    reference: ReferenceService

    def __init__(self, database: AsyncDatabase[dict[str, Any]]) -> None:
        self._ordered: list[Service] = []
        for name, target in SERVICE_REGISTRY:
            service = load_service_class(target)(database)
            setattr(self, name, service)
            self._ordered.append(service)

    def set_core(self, core: Core) -> None:
        for service in self._ordered:
            service.set_core(core)

    async def start_all(self) -> None:
        for service in self._ordered:
            await service.on_start()

    async def stop_all(self) -> None:
        for service in reversed(self._ordered):
            await service.on_stop()


class Core:
    """Config, database handle and the service registry.

    Without an explicit ``database`` the core opens its own MongoDB client
    from ``config.database_url`` and closes it on shutdown. A database passed
    in stays owned by the caller.
    """

    def __init__(self, config: Config, database: AsyncDatabase[dict[str, Any]] | None = None) -> None:
        self.config = config
        self.mongo_client: AsyncMongoClient[dict[str, Any]] | None = None
        if database is None:
            self.mongo_client = AsyncMongoClient(config.database_url, tz_aware=True)
            database = self.mongo_client.get_database(urlparse(config.database_url).path.lstrip("/"))
        self.database: AsyncDatabase[dict[str, Any]] = database
        self.services = Services(database)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        if self.mongo_client is not None:
            # Fail at startup rather than on the first request
            await self.mongo_client.admin.command("ping")
        await self.services.start_all()
        logger.info("core_started", database=self.database.name)

    async def on_stop(self) -> None:
        await self.services.stop_all()
        if self.mongo_client is not None:
            await self.mongo_client.aclose()
        logger.info("core_stopped")
