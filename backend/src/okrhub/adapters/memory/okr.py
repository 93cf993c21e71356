"""In-memory OKR repository."""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from okrhub.adapters.memory.store import MemoryStore, matches_search, paginate
from okrhub.core.exceptions import NotFoundError, OkrRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.okr import access
from okrhub.core.okr.progress import build_dashboard_stats, objective_progress, progress_of
from okrhub.core.okr.types import (
    CreateKeyResultParams,
    CreateObjectiveParams,
    DashboardStats,
    KeyResult,
    KeyResultStatus,
    KeyResultWithProgress,
    ListKeyResultsQuery,
    ListObjectivesQuery,
    Objective,
    ObjectiveStatus,
    ObjectiveWithKeyResults,
    UpdateKeyResultParams,
    UpdateObjectiveParams,
)
from okrhub.core.pagination import Page

# Columns that may not be written as NULL through a partial update
_REQUIRED_OBJECTIVE_FIELDS = frozenset({"title", "type", "start_date", "end_date", "status"})
_REQUIRED_KEY_RESULT_FIELDS = frozenset(
    {"title", "type", "target_value", "current_value", "start_date", "end_date", "status"}
)


def _with_progress(key_result: KeyResult) -> KeyResultWithProgress:
    return KeyResultWithProgress(**vars(key_result), progress_percentage=progress_of(key_result))


def _writable(changes: dict[str, object], required: frozenset[str]) -> dict[str, object]:
    return {k: v for k, v in changes.items() if v is not None or k not in required}


class InMemoryOkrRepository:
    """OKR repository backed by a ``MemoryStore``."""

    def __init__(self, store: MemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    def _get_objective(self, objective_id: UUID) -> Objective:
        objective = self._store.objectives.get(objective_id)
        if objective is None:
            raise NotFoundError("Objective not found")
        return objective

    def _get_key_result(self, key_result_id: UUID) -> KeyResult:
        key_result = self._store.key_results.get(key_result_id)
        if key_result is None:
            raise NotFoundError("Key result not found")
        return key_result

    def _key_results_of(self, objective_id: UUID) -> list[KeyResultWithProgress]:
        children = [kr for kr in self._store.key_results.values() if kr.objective_id == objective_id]
        children.sort(key=lambda kr: kr.created_at)
        return [_with_progress(kr) for kr in children]

    def _with_key_results(self, objective: Objective) -> ObjectiveWithKeyResults:
        key_results = self._key_results_of(objective.id)
        return ObjectiveWithKeyResults(
            **vars(objective),
            key_results=key_results,
            progress_percentage=objective_progress(key_results),
        )

    def _check_references(self, team_id: UUID | None, parent_id: UUID | None) -> None:
        if team_id is not None and team_id not in self._store.teams:
            raise OkrRepositoryError("Objective team does not exist")
        if parent_id is not None and parent_id not in self._store.objectives:
            raise OkrRepositoryError("Parent objective does not exist")

    # Objective operations
    async def create_objective(self, owner_id: UUID, params: CreateObjectiveParams) -> Objective:
        """Create an objective in draft status."""
        if owner_id not in self._store.users:
            raise OkrRepositoryError("Objective owner does not exist")
        self._check_references(params.team_id, params.parent_id)
        now = utc_now()
        objective = Objective(
            id=new_id(),
            title=params.title,
            description=params.description,
            type=params.type,
            owner_id=owner_id,
            team_id=params.team_id,
            parent_id=params.parent_id,
            start_date=params.start_date,
            end_date=params.end_date,
            status=ObjectiveStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        self._store.objectives[objective.id] = objective
        return objective

    async def find_objective_by_id(self, objective_id: UUID) -> Objective | None:
        """Get objective by ID."""
        return self._store.objectives.get(objective_id)

    async def find_objective_with_key_results(
        self, objective_id: UUID
    ) -> ObjectiveWithKeyResults | None:
        """Get objective with its key results and aggregate progress."""
        objective = self._store.objectives.get(objective_id)
        return self._with_key_results(objective) if objective else None

    async def update_objective(
        self, objective_id: UUID, params: UpdateObjectiveParams
    ) -> Objective:
        """Merge the provided fields into an objective."""
        objective = self._get_objective(objective_id)
        changes = _writable(params.changes(), _REQUIRED_OBJECTIVE_FIELDS)
        self._check_references(changes.get("team_id"), changes.get("parent_id"))
        updated = replace(objective, **changes, updated_at=utc_now())
        self._store.objectives[objective_id] = updated
        return updated

    async def delete_objective(self, objective_id: UUID) -> None:
        """Delete an objective and its key results.

        Child objectives are detached rather than deleted.
        """
        self._get_objective(objective_id)
        for key_result in self._key_results_of(objective_id):
            del self._store.key_results[key_result.id]
        del self._store.objectives[objective_id]
        for child in list(self._store.objectives.values()):
            if child.parent_id == objective_id:
                self._store.objectives[child.id] = replace(child, parent_id=None)

    def _filter_objectives(self, query: ListObjectivesQuery) -> list[Objective]:
        return [
            o
            for o in self._store.objectives.values()
            if matches_search(query.search, o.title, o.description)
            and (query.type is None or o.type == query.type)
            and (query.status is None or o.status == query.status)
            and (query.owner_id is None or o.owner_id == query.owner_id)
            and (query.team_id is None or o.team_id == query.team_id)
            and (query.start_date is None or o.start_date >= query.start_date)
            and (query.end_date is None or o.end_date <= query.end_date)
            and (query.visible_to is None or access.can_access(o, query.visible_to))
        ]

    async def list_objectives(self, query: ListObjectivesQuery) -> Page[Objective]:
        """List objectives matching the query."""
        return paginate(self._filter_objectives(query), query.pagination)

    async def list_objectives_with_key_results(
        self, query: ListObjectivesQuery
    ) -> Page[ObjectiveWithKeyResults]:
        """List objectives with their key results and progress."""
        page = await self.list_objectives(query)
        return Page(items=[self._with_key_results(o) for o in page.items], count=page.count)

    async def get_objective_progress(self, objective_id: UUID) -> float:
        """Aggregate progress of an objective."""
        self._get_objective(objective_id)
        return objective_progress(self._key_results_of(objective_id))

    # Key result operations
    async def create_key_result(self, params: CreateKeyResultParams) -> KeyResult:
        """Create a key result with current value 0."""
        if params.objective_id not in self._store.objectives:
            raise OkrRepositoryError("Key result objective does not exist")
        now = utc_now()
        key_result = KeyResult(
            id=new_id(),
            objective_id=params.objective_id,
            title=params.title,
            description=params.description,
            type=params.type,
            target_value=params.target_value,
            current_value=0.0,
            unit=params.unit,
            start_date=params.start_date,
            end_date=params.end_date,
            status=KeyResultStatus.ACTIVE,
            created_at=now,
            updated_at=now,
        )
        self._store.key_results[key_result.id] = key_result
        return key_result

    async def find_key_result_by_id(self, key_result_id: UUID) -> KeyResultWithProgress | None:
        """Get key result by ID with its progress."""
        key_result = self._store.key_results.get(key_result_id)
        return _with_progress(key_result) if key_result else None

    async def update_key_result(
        self, key_result_id: UUID, params: UpdateKeyResultParams
    ) -> KeyResult:
        """Merge the provided fields into a key result."""
        key_result = self._get_key_result(key_result_id)
        changes = _writable(params.changes(), _REQUIRED_KEY_RESULT_FIELDS)
        updated = replace(key_result, **changes, updated_at=utc_now())
        self._store.key_results[key_result_id] = updated
        return updated

    async def update_key_result_progress(
        self, key_result_id: UUID, current_value: float
    ) -> KeyResult:
        """Set the current value."""
        key_result = self._get_key_result(key_result_id)
        updated = replace(key_result, current_value=current_value, updated_at=utc_now())
        self._store.key_results[key_result_id] = updated
        return updated

    async def delete_key_result(self, key_result_id: UUID) -> None:
        """Delete a key result."""
        self._get_key_result(key_result_id)
        del self._store.key_results[key_result_id]

    async def list_key_results(self, query: ListKeyResultsQuery) -> Page[KeyResultWithProgress]:
        """List key results matching the query."""
        key_results = [
            _with_progress(kr)
            for kr in self._store.key_results.values()
            if matches_search(query.search, kr.title, kr.description)
            and (query.objective_id is None or kr.objective_id == query.objective_id)
            and (query.type is None or kr.type == query.type)
            and (query.status is None or kr.status == query.status)
        ]
        key_results = [
            kr
            for kr in key_results
            if (query.progress_min is None or kr.progress_percentage >= query.progress_min)
            and (query.progress_max is None or kr.progress_percentage <= query.progress_max)
        ]
        return paginate(key_results, query.pagination)

    async def list_key_results_by_objective(
        self, objective_id: UUID
    ) -> list[KeyResultWithProgress]:
        """All key results of an objective, oldest first."""
        return self._key_results_of(objective_id)

    # Aggregates
    async def get_dashboard_stats(
        self, user_id: UUID, team_id: UUID | None = None
    ) -> DashboardStats:
        """Dashboard counters over the user's objectives."""
        owned = [
            self._with_key_results(o)
            for o in self._store.objectives.values()
            if o.owner_id == user_id and (team_id is None or o.team_id == team_id)
        ]
        return build_dashboard_stats(owned)

    # Access predicates
    async def is_objective_owner(self, objective_id: UUID, user_id: UUID) -> bool:
        """True if the user owns the objective."""
        return access.is_owner(self._store.objectives.get(objective_id), user_id)

    async def can_user_access_objective(self, objective_id: UUID, user_id: UUID) -> bool:
        """True for the owner, or for anyone on team/organization objectives."""
        return access.can_access(self._store.objectives.get(objective_id), user_id)

    async def can_user_edit_objective(self, objective_id: UUID, user_id: UUID) -> bool:
        """True only for the owner."""
        return access.can_edit(self._store.objectives.get(objective_id), user_id)
