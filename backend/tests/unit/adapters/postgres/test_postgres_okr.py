"""Tests for the PostgreSQL OKR repository."""

from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
from okrhub.adapters.postgres import PostgresOkrRepository
from okrhub.core.exceptions import NotFoundError
from okrhub.core.ids import to_epoch_ms, utc_now
from okrhub.core.okr.types import ListObjectivesQuery, ObjectiveType, UpdateObjectiveParams
from okrhub.core.pagination import Pagination


@pytest.fixture
def mock_db() -> MagicMock:
    """Create mock application database."""
    return MagicMock()


@pytest.fixture
def repository(mock_db: MagicMock) -> PostgresOkrRepository:
    """Create repository with mock database."""
    return PostgresOkrRepository(mock_db)


def objective_row(owner_id: UUID | None = None, **overrides: object) -> dict[str, object]:
    """An objectives row as asyncpg would return it."""
    now = to_epoch_ms(utc_now())
    row: dict[str, object] = {
        "id": uuid4(),
        "title": "Grow revenue",
        "description": None,
        "type": "personal",
        "owner_id": owner_id or uuid4(),
        "team_id": None,
        "parent_id": None,
        "start_date": now,
        "end_date": now + 86_400_000,
        "status": "draft",
        "created_at": now,
        "updated_at": now,
    }
    row.update(overrides)
    return row


def key_result_row(objective_id: object, **overrides: object) -> dict[str, object]:
    """A key_results row as asyncpg would return it."""
    now = to_epoch_ms(utc_now())
    row: dict[str, object] = {
        "id": uuid4(),
        "objective_id": objective_id,
        "title": "Close deals",
        "description": None,
        "type": "percentage",
        "target_value": 100.0,
        "current_value": 150.0,
        "unit": None,
        "start_date": now,
        "end_date": now,
        "status": "active",
        "created_at": now,
        "updated_at": now,
    }
    row.update(overrides)
    return row


class TestFindObjectiveWithKeyResults:
    """Tests for find_objective_with_key_results."""

    async def test_progress_computed_from_rows(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Key result progress is unclamped; objective progress is clamped."""
        row = objective_row()
        mock_db.fetch_one = AsyncMock(return_value=row)
        mock_db.fetch_all = AsyncMock(return_value=[key_result_row(row["id"])])

        objective = await repository.find_objective_with_key_results(row["id"])  # type: ignore[arg-type]

        assert objective is not None
        assert objective.key_results[0].progress_percentage == 150
        assert objective.progress_percentage == 100

    async def test_none_when_missing(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Returns None without loading key results."""
        mock_db.fetch_one = AsyncMock(return_value=None)
        mock_db.fetch_all = AsyncMock()

        assert await repository.find_objective_with_key_results(uuid4()) is None
        mock_db.fetch_all.assert_not_called()


class TestUpdateObjective:
    """Tests for update_objective."""

    async def test_enum_and_date_columns_are_converted(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Enums are written as values and datetimes as epoch milliseconds."""
        when = utc_now()
        mock_db.execute_returning = AsyncMock(return_value=objective_row(type="team"))

        await repository.update_objective(
            uuid4(), UpdateObjectiveParams(type=ObjectiveType.TEAM, end_date=when)
        )

        values = mock_db.execute_returning.call_args.args[1:]
        assert "team" in values
        assert to_epoch_ms(when) in values

    async def test_missing(self, repository: PostgresOkrRepository, mock_db: MagicMock) -> None:
        """No returned row is NotFound."""
        mock_db.execute_returning = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await repository.update_objective(uuid4(), UpdateObjectiveParams(title="x"))


class TestDeleteObjective:
    """Tests for delete_objective."""

    async def test_deletes_key_results_then_objective_in_transaction(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Both deletes run on the transaction's connection."""
        conn = MagicMock()
        conn.execute = AsyncMock(side_effect=["DELETE 3", "DELETE 1"])
        mock_db.transaction.return_value.__aenter__.return_value = conn

        await repository.delete_objective(uuid4())

        statements = [c.args[0] for c in conn.execute.call_args_list]
        assert statements[0].startswith("DELETE FROM key_results")
        assert statements[1].startswith("DELETE FROM objectives")

    async def test_missing(self, repository: PostgresOkrRepository, mock_db: MagicMock) -> None:
        """DELETE 0 on the objective is NotFound."""
        conn = MagicMock()
        conn.execute = AsyncMock(side_effect=["DELETE 0", "DELETE 0"])
        mock_db.transaction.return_value.__aenter__.return_value = conn

        with pytest.raises(NotFoundError):
            await repository.delete_objective(uuid4())


class TestListObjectives:
    """Tests for list_objectives."""

    async def test_filters_and_visibility(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Filters become parameterized conditions."""
        viewer = uuid4()
        mock_db.fetch_value = AsyncMock(return_value=25)
        mock_db.fetch_all = AsyncMock(return_value=[objective_row() for _ in range(10)])

        page = await repository.list_objectives(
            ListObjectivesQuery(
                search="revenue",
                type=ObjectiveType.TEAM,
                visible_to=viewer,
                pagination=Pagination(page=2, limit=10),
            )
        )

        assert page.count == 25
        assert len(page.items) == 10
        sql, *values = mock_db.fetch_all.call_args.args
        assert "type = $2" in sql
        assert "(owner_id = $3 OR type <> 'personal')" in sql
        assert values == ["revenue", "team", viewer, 10, 10]


class TestAccessPredicates:
    """Tests for access predicates."""

    async def test_team_objective(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Shared objectives are readable but not editable by others."""
        mock_db.fetch_one = AsyncMock(return_value=objective_row(type="team"))
        other = uuid4()

        assert await repository.can_user_access_objective(uuid4(), other) is True
        assert await repository.can_user_edit_objective(uuid4(), other) is False

    async def test_personal_objective(
        self, repository: PostgresOkrRepository, mock_db: MagicMock
    ) -> None:
        """Personal objectives are closed to others."""
        owner = uuid4()
        mock_db.fetch_one = AsyncMock(return_value=objective_row(owner_id=owner))

        assert await repository.can_user_access_objective(uuid4(), uuid4()) is False
        assert await repository.can_user_edit_objective(uuid4(), owner) is True
