"""Shared pytest fixtures."""

import itertools
from collections.abc import Awaitable, Callable
from typing import Any

import pytest
from fakes import FakeDatabase

from aura.config import Config
from aura.core.core import Core
from aura.core.modules.user.models import User

TEST_DATABASE_URL = "mongodb://localhost:27017/aura_test"


def make_config(**overrides: Any) -> Config:
    return Config(database_url=TEST_DATABASE_URL, _env_file=None, **overrides)  # type: ignore[call-arg]


@pytest.fixture
def make_core() -> Callable[..., Core]:
    """Build a Core over an empty in-memory database, with config overrides."""

    def factory(**overrides: Any) -> Core:
        return Core(make_config(**overrides), FakeDatabase())  # type: ignore[arg-type]

    return factory


@pytest.fixture
def core(make_core):
    return make_core()


@pytest.fixture
def make_user() -> Callable[..., Awaitable[User]]:
    """Register users with distinct valid Malaysian phone numbers."""
    phones = (f"12{n:07d}" for n in itertools.count(1))

    async def factory(core: Core, name: str, avatar: str | None = None) -> User:
        return await core.services.user.create_user(next(phones), "+60", name, "female", avatar)

    return factory
