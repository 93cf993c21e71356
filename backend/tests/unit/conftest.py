"""Shared fixtures: a fully wired context over the in-memory adapters."""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from unittest.mock import AsyncMock
from uuid import UUID

import pytest
from okrhub.adapters.auth import BcryptPasswordHasher
from okrhub.adapters.memory import (
    InMemoryOkrRepository,
    InMemoryRoleRepository,
    InMemorySessionRepository,
    InMemoryTeamRepository,
    InMemoryUserRepository,
    MemoryStore,
)
from okrhub.core.context import Context
from okrhub.core.okr.types import CreateObjectiveParams, Objective, ObjectiveType
from okrhub.core.rbac.permissions import ensure_default_roles
from okrhub.core.users.types import CreateUserParams, User

# Lowest cost bcrypt accepts; keeps the suite fast.
TEST_BCRYPT_ROUNDS = 4

JAN_1 = datetime(2026, 1, 1, tzinfo=UTC)
MAR_31 = datetime(2026, 3, 31, tzinfo=UTC)


@pytest.fixture
def store() -> MemoryStore:
    """Create an empty in-memory store."""
    return MemoryStore()


@pytest.fixture
def email_service() -> AsyncMock:
    """Create mock email service."""
    return AsyncMock()


@pytest.fixture
async def context(store: MemoryStore, email_service: AsyncMock) -> Context:
    """Create a context over the in-memory adapters with default roles seeded."""
    ctx = Context(
        user_repository=InMemoryUserRepository(store),
        session_repository=InMemorySessionRepository(store),
        team_repository=InMemoryTeamRepository(store),
        role_repository=InMemoryRoleRepository(store),
        okr_repository=InMemoryOkrRepository(store),
        password_hasher=BcryptPasswordHasher(rounds=TEST_BCRYPT_ROUNDS),
        email_service=email_service,
    )
    await ensure_default_roles(ctx.role_repository)
    return ctx


@pytest.fixture
def make_user(context: Context) -> Callable[..., Awaitable[User]]:
    """Factory inserting users directly through the repository."""

    async def _make_user(email: str, name: str = "Test User") -> User:
        return await context.user_repository.create(
            CreateUserParams(email=email, name=name, hashed_password="not-a-real-hash")
        )

    return _make_user


@pytest.fixture
def make_objective(context: Context) -> Callable[..., Awaitable[Objective]]:
    """Factory inserting objectives directly through the repository."""

    async def _make_objective(
        owner_id: UUID,
        title: str = "Ship v1",
        objective_type: ObjectiveType = ObjectiveType.PERSONAL,
        team_id: UUID | None = None,
        start_date: datetime = JAN_1,
        end_date: datetime = MAR_31,
    ) -> Objective:
        return await context.okr_repository.create_objective(
            owner_id,
            CreateObjectiveParams(
                title=title,
                type=objective_type,
                team_id=team_id,
                start_date=start_date,
                end_date=end_date,
            ),
        )

    return _make_objective

