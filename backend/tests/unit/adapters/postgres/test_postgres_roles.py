"""Tests for the PostgreSQL role repository."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest
from okrhub.adapters.postgres import PostgresRoleRepository
from okrhub.core.exceptions import RoleRepositoryError
from okrhub.core.ids import to_epoch_ms, utc_now
from okrhub.core.rbac.types import CreateRoleParams


@pytest.fixture
def mock_db() -> MagicMock:
    """Create mock application database."""
    return MagicMock()


@pytest.fixture
def repository(mock_db: MagicMock) -> PostgresRoleRepository:
    """Create repository with mock database."""
    return PostgresRoleRepository(mock_db)


class TestCreateRole:
    """Tests for create_role."""

    async def test_duplicate_name(
        self, repository: PostgresRoleRepository, mock_db: MagicMock
    ) -> None:
        """A unique violation on the name becomes a repository error."""
        mock_db.execute_returning = AsyncMock(
            side_effect=asyncpg.UniqueViolationError("roles_name_key")
        )

        with pytest.raises(RoleRepositoryError, match="create role 'admin'"):
            await repository.create_role(CreateRoleParams(name="admin"))

    async def test_creates_role(
        self, repository: PostgresRoleRepository, mock_db: MagicMock
    ) -> None:
        """Returns the inserted role."""
        now = to_epoch_ms(utc_now())
        role_id = uuid4()
        mock_db.execute_returning = AsyncMock(
            return_value={
                "id": role_id,
                "name": "admin",
                "description": None,
                "created_at": now,
                "updated_at": now,
            }
        )

        role = await repository.create_role(CreateRoleParams(name="admin"))

        assert role.id == role_id
        assert role.name == "admin"


class TestPermissions:
    """Tests for permission checks."""

    async def test_has_permission(
        self, repository: PostgresRoleRepository, mock_db: MagicMock
    ) -> None:
        """A joined row means the permission is granted."""
        mock_db.fetch_one = AsyncMock(return_value={"granted": 1})

        assert await repository.has_permission(uuid4(), "team:edit") is True

    async def test_user_permissions_only_active_memberships(
        self, repository: PostgresRoleRepository, mock_db: MagicMock
    ) -> None:
        """Only active memberships contribute permissions."""
        mock_db.fetch_all = AsyncMock(return_value=[])
        team_id = uuid4()

        await repository.get_user_permissions(uuid4(), team_id)

        sql, *values = mock_db.fetch_all.call_args.args
        assert "tm.status = 'active'" in sql
        assert "tm.team_id = $2" in sql
        assert values[1] == team_id
