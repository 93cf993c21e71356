"""PostgreSQL implementation of OkrRepository.

Progress is never computed in SQL; rows are loaded and passed through
``okrhub.core.okr.progress`` so every adapter reports identical numbers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from okrhub.adapters.db.app_db import AppDatabase
from okrhub.adapters.postgres.base import (
    QueryParams,
    dt,
    ms,
    order_clause,
    page_clause,
    search_clause,
    set_clause,
    storage_errors,
    where_clause,
)
from okrhub.core.exceptions import NotFoundError, OkrRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.okr import access
from okrhub.core.okr.progress import build_dashboard_stats, objective_progress, progress_of
from okrhub.core.okr.types import (
    KEY_RESULT_SORT_FIELDS,
    OBJECTIVE_SORT_FIELDS,
    CreateKeyResultParams,
    CreateObjectiveParams,
    DashboardStats,
    KeyResult,
    KeyResultStatus,
    KeyResultType,
    KeyResultWithProgress,
    ListKeyResultsQuery,
    ListObjectivesQuery,
    Objective,
    ObjectiveStatus,
    ObjectiveType,
    ObjectiveWithKeyResults,
    UpdateKeyResultParams,
    UpdateObjectiveParams,
)
from okrhub.core.pagination import Page

OBJECTIVE_COLUMNS = (
    "id, title, description, type, owner_id, team_id, parent_id, start_date, end_date,"
    " status, created_at, updated_at"
)
KEY_RESULT_COLUMNS = (
    "id, objective_id, title, description, type, target_value, current_value, unit,"
    " start_date, end_date, status, created_at, updated_at"
)
OBJECTIVE_SORT_COLUMNS = {name: name for name in OBJECTIVE_SORT_FIELDS}
KEY_RESULT_SORT_COLUMNS = {name: name for name in KEY_RESULT_SORT_FIELDS}

_REQUIRED_OBJECTIVE_FIELDS = frozenset({"title", "type", "start_date", "end_date", "status"})
_REQUIRED_KEY_RESULT_FIELDS = frozenset(
    {"title", "type", "target_value", "current_value", "start_date", "end_date", "status"}
)


def _to_columns(changes: dict[str, Any], required: frozenset[str]) -> dict[str, Any]:
    """Convert a partial update into column values."""
    columns = {}
    for name, value in changes.items():
        if value is None and name in required:
            continue
        if isinstance(value, Enum):
            value = value.value
        elif isinstance(value, datetime):
            value = ms(value)
        columns[name] = value
    return columns


class PostgresOkrRepository:
    """PostgreSQL implementation of OKR repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_objective(self, row: dict[str, Any]) -> Objective:
        """Convert database row to Objective."""
        return Objective(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            type=ObjectiveType(row["type"]),
            owner_id=row["owner_id"],
            team_id=row["team_id"],
            parent_id=row["parent_id"],
            start_date=dt(row["start_date"]),
            end_date=dt(row["end_date"]),
            status=ObjectiveStatus(row["status"]),
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    def _row_to_key_result(self, row: dict[str, Any]) -> KeyResult:
        """Convert database row to KeyResult."""
        return KeyResult(
            id=row["id"],
            objective_id=row["objective_id"],
            title=row["title"],
            description=row["description"],
            type=KeyResultType(row["type"]),
            target_value=row["target_value"],
            current_value=row["current_value"],
            unit=row["unit"],
            start_date=dt(row["start_date"]),
            end_date=dt(row["end_date"]),
            status=KeyResultStatus(row["status"]),
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    def _row_to_key_result_with_progress(self, row: dict[str, Any]) -> KeyResultWithProgress:
        """Convert database row to KeyResultWithProgress."""
        key_result = self._row_to_key_result(row)
        return KeyResultWithProgress(**vars(key_result), progress_percentage=progress_of(key_result))

    def _attach(
        self, objective: Objective, key_results: list[KeyResultWithProgress]
    ) -> ObjectiveWithKeyResults:
        return ObjectiveWithKeyResults(
            **vars(objective),
            key_results=key_results,
            progress_percentage=objective_progress(key_results),
        )

    async def _key_results_for(
        self, objective_ids: list[UUID]
    ) -> dict[UUID, list[KeyResultWithProgress]]:
        grouped: dict[UUID, list[KeyResultWithProgress]] = {oid: [] for oid in objective_ids}
        if not objective_ids:
            return grouped
        with storage_errors(OkrRepositoryError, "load key results"):
            rows = await self._db.fetch_all(
                f"""
                SELECT {KEY_RESULT_COLUMNS} FROM key_results
                WHERE objective_id = ANY($1::uuid[])
                ORDER BY created_at, id
                """,
                objective_ids,
            )
        for row in rows:
            grouped[row["objective_id"]].append(self._row_to_key_result_with_progress(row))
        return grouped

    def _objective_filters(self, query: ListObjectivesQuery, params: QueryParams) -> str:
        conditions = []
        if query.search:
            conditions.append(search_clause(query.search, ["title", "description"], params))
        if query.type is not None:
            conditions.append(f"type = {params.add(query.type.value)}")
        if query.status is not None:
            conditions.append(f"status = {params.add(query.status.value)}")
        if query.owner_id is not None:
            conditions.append(f"owner_id = {params.add(query.owner_id)}")
        if query.team_id is not None:
            conditions.append(f"team_id = {params.add(query.team_id)}")
        if query.start_date is not None:
            conditions.append(f"start_date >= {params.add(ms(query.start_date))}")
        if query.end_date is not None:
            conditions.append(f"end_date <= {params.add(ms(query.end_date))}")
        if query.visible_to is not None:
            conditions.append(f"(owner_id = {params.add(query.visible_to)} OR type <> 'personal')")
        return where_clause(conditions)

    # Objective operations
    async def create_objective(self, owner_id: UUID, params: CreateObjectiveParams) -> Objective:
        """Create an objective in draft status."""
        now = ms(utc_now())
        with storage_errors(OkrRepositoryError, "create objective"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO objectives
                    (id, title, description, type, owner_id, team_id, parent_id,
                     start_date, end_date, status, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, 'draft', $10, $10)
                RETURNING {OBJECTIVE_COLUMNS}
                """,
                new_id(),
                params.title,
                params.description,
                params.type.value,
                owner_id,
                params.team_id,
                params.parent_id,
                ms(params.start_date),
                ms(params.end_date),
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_objective(row)

    async def find_objective_by_id(self, objective_id: UUID) -> Objective | None:
        """Get objective by ID."""
        with storage_errors(OkrRepositoryError, "find objective"):
            row = await self._db.fetch_one(
                f"SELECT {OBJECTIVE_COLUMNS} FROM objectives WHERE id = $1", objective_id
            )
        return self._row_to_objective(row) if row else None

    async def find_objective_with_key_results(
        self, objective_id: UUID
    ) -> ObjectiveWithKeyResults | None:
        """Get objective with its key results and aggregate progress."""
        objective = await self.find_objective_by_id(objective_id)
        if objective is None:
            return None
        key_results = await self._key_results_for([objective_id])
        return self._attach(objective, key_results[objective_id])

    async def update_objective(
        self, objective_id: UUID, params: UpdateObjectiveParams
    ) -> Objective:
        """Merge the provided fields into an objective."""
        columns = _to_columns(params.changes(), _REQUIRED_OBJECTIVE_FIELDS)
        query_params = QueryParams()
        assignments = set_clause({**columns, "updated_at": ms(utc_now())}, query_params)
        with storage_errors(OkrRepositoryError, "update objective"):
            row = await self._db.execute_returning(
                f"""
                UPDATE objectives SET {assignments}
                WHERE id = {query_params.add(objective_id)}
                RETURNING {OBJECTIVE_COLUMNS}
                """,
                *query_params.values,
            )
        if not row:
            raise NotFoundError("Objective not found")
        return self._row_to_objective(row)

    async def delete_objective(self, objective_id: UUID) -> None:
        """Delete an objective and its key results in one transaction."""
        with storage_errors(OkrRepositoryError, "delete objective"):
            async with self._db.transaction() as conn:
                await conn.execute("DELETE FROM key_results WHERE objective_id = $1", objective_id)
                status = await conn.execute("DELETE FROM objectives WHERE id = $1", objective_id)
        if status == "DELETE 0":
            raise NotFoundError("Objective not found")

    async def list_objectives(self, query: ListObjectivesQuery) -> Page[Objective]:
        """List objectives matching the query."""
        params = QueryParams()
        where = self._objective_filters(query, params)
        order = order_clause(query.pagination, OBJECTIVE_SORT_COLUMNS)
        with storage_errors(OkrRepositoryError, "list objectives"):
            count = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM objectives {where}", *params.values
            )
            page = page_clause(query.pagination, params)
            rows = await self._db.fetch_all(
                f"SELECT {OBJECTIVE_COLUMNS} FROM objectives {where} {order} {page}",
                *params.values,
            )
        return Page(items=[self._row_to_objective(r) for r in rows], count=count or 0)

    async def list_objectives_with_key_results(
        self, query: ListObjectivesQuery
    ) -> Page[ObjectiveWithKeyResults]:
        """List objectives with their key results and progress."""
        page = await self.list_objectives(query)
        key_results = await self._key_results_for([o.id for o in page.items])
        return Page(
            items=[self._attach(o, key_results[o.id]) for o in page.items],
            count=page.count,
        )

    async def get_objective_progress(self, objective_id: UUID) -> float:
        """Aggregate progress of an objective."""
        objective = await self.find_objective_with_key_results(objective_id)
        if objective is None:
            raise NotFoundError("Objective not found")
        return objective.progress_percentage

    # Key result operations
    async def create_key_result(self, params: CreateKeyResultParams) -> KeyResult:
        """Create a key result with current value 0."""
        now = ms(utc_now())
        with storage_errors(OkrRepositoryError, "create key result"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO key_results
                    (id, objective_id, title, description, type, target_value, current_value,
                     unit, start_date, end_date, status, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, 0, $7, $8, $9, 'active', $10, $10)
                RETURNING {KEY_RESULT_COLUMNS}
                """,
                new_id(),
                params.objective_id,
                params.title,
                params.description,
                params.type.value,
                params.target_value,
                params.unit,
                ms(params.start_date),
                ms(params.end_date),
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_key_result(row)

    async def find_key_result_by_id(self, key_result_id: UUID) -> KeyResultWithProgress | None:
        """Get key result by ID with its progress."""
        with storage_errors(OkrRepositoryError, "find key result"):
            row = await self._db.fetch_one(
                f"SELECT {KEY_RESULT_COLUMNS} FROM key_results WHERE id = $1", key_result_id
            )
        return self._row_to_key_result_with_progress(row) if row else None

    async def update_key_result(
        self, key_result_id: UUID, params: UpdateKeyResultParams
    ) -> KeyResult:
        """Merge the provided fields into a key result."""
        columns = _to_columns(params.changes(), _REQUIRED_KEY_RESULT_FIELDS)
        query_params = QueryParams()
        assignments = set_clause({**columns, "updated_at": ms(utc_now())}, query_params)
        with storage_errors(OkrRepositoryError, "update key result"):
            row = await self._db.execute_returning(
                f"""
                UPDATE key_results SET {assignments}
                WHERE id = {query_params.add(key_result_id)}
                RETURNING {KEY_RESULT_COLUMNS}
                """,
                *query_params.values,
            )
        if not row:
            raise NotFoundError("Key result not found")
        return self._row_to_key_result(row)

    async def update_key_result_progress(
        self, key_result_id: UUID, current_value: float
    ) -> KeyResult:
        """Set the current value."""
        with storage_errors(OkrRepositoryError, "update key result progress"):
            row = await self._db.execute_returning(
                f"""
                UPDATE key_results SET current_value = $2, updated_at = $3
                WHERE id = $1
                RETURNING {KEY_RESULT_COLUMNS}
                """,
                key_result_id,
                current_value,
                ms(utc_now()),
            )
        if not row:
            raise NotFoundError("Key result not found")
        return self._row_to_key_result(row)

    async def delete_key_result(self, key_result_id: UUID) -> None:
        """Delete a key result."""
        with storage_errors(OkrRepositoryError, "delete key result"):
            status = await self._db.execute("DELETE FROM key_results WHERE id = $1", key_result_id)
        if status == "DELETE 0":
            raise NotFoundError("Key result not found")

    async def list_key_results(self, query: ListKeyResultsQuery) -> Page[KeyResultWithProgress]:
        """List key results matching the query.

        Progress bounds are applied after loading, since progress is derived
        in Python; the page is then sliced from the filtered rows.
        """
        params = QueryParams()
        conditions = []
        if query.search:
            conditions.append(search_clause(query.search, ["title", "description"], params))
        if query.objective_id is not None:
            conditions.append(f"objective_id = {params.add(query.objective_id)}")
        if query.type is not None:
            conditions.append(f"type = {params.add(query.type.value)}")
        if query.status is not None:
            conditions.append(f"status = {params.add(query.status.value)}")
        where = where_clause(conditions)
        order = order_clause(query.pagination, KEY_RESULT_SORT_COLUMNS)
        by_progress = query.progress_min is not None or query.progress_max is not None

        with storage_errors(OkrRepositoryError, "list key results"):
            if by_progress:
                rows = await self._db.fetch_all(
                    f"SELECT {KEY_RESULT_COLUMNS} FROM key_results {where} {order}",
                    *params.values,
                )
            else:
                count = await self._db.fetch_value(
                    f"SELECT COUNT(*) FROM key_results {where}", *params.values
                )
                page = page_clause(query.pagination, params)
                rows = await self._db.fetch_all(
                    f"SELECT {KEY_RESULT_COLUMNS} FROM key_results {where} {order} {page}",
                    *params.values,
                )

        items = [self._row_to_key_result_with_progress(r) for r in rows]
        if not by_progress:
            return Page(items=items, count=count or 0)

        items = [
            kr
            for kr in items
            if (query.progress_min is None or kr.progress_percentage >= query.progress_min)
            and (query.progress_max is None or kr.progress_percentage <= query.progress_max)
        ]
        start = query.pagination.offset
        return Page(items=items[start : start + query.pagination.limit], count=len(items))

    async def list_key_results_by_objective(
        self, objective_id: UUID
    ) -> list[KeyResultWithProgress]:
        """All key results of an objective, oldest first."""
        key_results = await self._key_results_for([objective_id])
        return key_results[objective_id]

    # Aggregates
    async def get_dashboard_stats(
        self, user_id: UUID, team_id: UUID | None = None
    ) -> DashboardStats:
        """Dashboard counters over the user's objectives."""
        params = QueryParams()
        conditions = [f"owner_id = {params.add(user_id)}"]
        if team_id is not None:
            conditions.append(f"team_id = {params.add(team_id)}")
        with storage_errors(OkrRepositoryError, "load dashboard"):
            rows = await self._db.fetch_all(
                f"SELECT {OBJECTIVE_COLUMNS} FROM objectives {where_clause(conditions)}",
                *params.values,
            )
        objectives = [self._row_to_objective(r) for r in rows]
        key_results = await self._key_results_for([o.id for o in objectives])
        return build_dashboard_stats(self._attach(o, key_results[o.id]) for o in objectives)

    # Access predicates
    async def is_objective_owner(self, objective_id: UUID, user_id: UUID) -> bool:
        """True if the user owns the objective."""
        return access.is_owner(await self.find_objective_by_id(objective_id), user_id)

    async def can_user_access_objective(self, objective_id: UUID, user_id: UUID) -> bool:
        """True for the owner, or for anyone on team/organization objectives."""
        return access.can_access(await self.find_objective_by_id(objective_id), user_id)

    async def can_user_edit_objective(self, objective_id: UUID, user_id: UUID) -> bool:
        """True only for the owner."""
        return access.can_edit(await self.find_objective_by_id(objective_id), user_id)
