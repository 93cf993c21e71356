"""Tests for the PostgreSQL user repository."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from okrhub.adapters.postgres import PostgresUserRepository
from okrhub.core.exceptions import NotFoundError
from okrhub.core.ids import to_epoch_ms, utc_now
from okrhub.core.users.types import CreateUserParams, ListUsersQuery, UpdateUserParams


@pytest.fixture
def mock_db() -> MagicMock:
    """Create mock application database."""
    return MagicMock()


@pytest.fixture
def repository(mock_db: MagicMock) -> PostgresUserRepository:
    """Create repository with mock database."""
    return PostgresUserRepository(mock_db)


def user_row(**overrides: object) -> dict[str, object]:
    """A users row as asyncpg would return it."""
    now = to_epoch_ms(utc_now())
    row: dict[str, object] = {
        "id": uuid4(),
        "email": "ada@example.com",
        "name": "Ada",
        "avatar_url": None,
        "email_verified": False,
        "created_at": now,
        "updated_at": now,
    }
    row.update(overrides)
    return row


class TestCreate:
    """Tests for create method."""

    async def test_creates_user(self, repository: PostgresUserRepository, mock_db: MagicMock) -> None:
        """Inserts the user and converts timestamps."""
        row = user_row()
        mock_db.execute_returning = AsyncMock(return_value=row)

        user = await repository.create(
            CreateUserParams(email="ada@example.com", name="Ada", hashed_password="hash")
        )

        assert user.id == row["id"]
        assert user.created_at.tzinfo is not None
        assert to_epoch_ms(user.created_at) == row["created_at"]
        args = mock_db.execute_returning.call_args.args
        assert "INSERT INTO users" in args[0]
        assert args[2:5] == ("ada@example.com", "Ada", "hash")


class TestFind:
    """Tests for lookups."""

    async def test_find_by_email_is_case_insensitive(
        self, repository: PostgresUserRepository, mock_db: MagicMock
    ) -> None:
        """Email lookups compare lower-cased values."""
        mock_db.fetch_one = AsyncMock(return_value=user_row())

        user = await repository.find_by_email("ADA@example.com")

        assert user is not None
        assert "lower(email) = lower($1)" in mock_db.fetch_one.call_args.args[0]

    async def test_find_for_auth_includes_hash(
        self, repository: PostgresUserRepository, mock_db: MagicMock
    ) -> None:
        """The auth lookup carries the password hash."""
        mock_db.fetch_one = AsyncMock(return_value=user_row(hashed_password="$2b$hash"))

        user = await repository.find_by_email_for_auth("ada@example.com")

        assert user is not None
        assert user.hashed_password == "$2b$hash"
        assert not hasattr(user.to_user(), "hashed_password")

    async def test_returns_none_when_not_found(
        self, repository: PostgresUserRepository, mock_db: MagicMock
    ) -> None:
        """Returns None when the user does not exist."""
        mock_db.fetch_one = AsyncMock(return_value=None)

        assert await repository.find_by_id(uuid4()) is None


class TestUpdate:
    """Tests for update method."""

    async def test_writes_only_set_fields(
        self, repository: PostgresUserRepository, mock_db: MagicMock
    ) -> None:
        """Only provided fields appear in the SET clause."""
        mock_db.execute_returning = AsyncMock(return_value=user_row(name="Countess"))

        user = await repository.update(uuid4(), UpdateUserParams(name="Countess"))

        assert user.name == "Countess"
        sql = mock_db.execute_returning.call_args.args[0]
        assert "name = $1" in sql
        assert "email =" not in sql

    async def test_missing_user(self, repository: PostgresUserRepository, mock_db: MagicMock) -> None:
        """An update that touches no row is NotFound."""
        mock_db.execute_returning = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await repository.update(uuid4(), UpdateUserParams(name="Nobody"))


class TestTokens:
    """Tests for flag and token updates."""

    async def test_missing_user_raises(
        self, repository: PostgresUserRepository, mock_db: MagicMock
    ) -> None:
        """UPDATE 0 means the user is gone."""
        mock_db.execute = AsyncMock(return_value="UPDATE 0")

        with pytest.raises(NotFoundError):
            await repository.set_email_verified(uuid4(), True)


class TestList:
    """Tests for list method."""

    async def test_counts_and_pages(
        self, repository: PostgresUserRepository, mock_db: MagicMock
    ) -> None:
        """Count comes from its own query; rows are paged."""
        mock_db.fetch_value = AsyncMock(return_value=25)
        mock_db.fetch_all = AsyncMock(return_value=[user_row() for _ in range(10)])

        page = await repository.list(ListUsersQuery(search="ada"))

        assert page.count == 25
        assert len(page.items) == 10
        sql = mock_db.fetch_all.call_args.args[0]
        assert "ILIKE '%' || $1 || '%' ESCAPE" in sql
        assert "ORDER BY created_at DESC, id DESC" in sql
