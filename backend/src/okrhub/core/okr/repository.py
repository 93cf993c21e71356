"""OKR repository protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from okrhub.core.okr.types import (
    CreateKeyResultParams,
    CreateObjectiveParams,
    DashboardStats,
    KeyResult,
    KeyResultWithProgress,
    ListKeyResultsQuery,
    ListObjectivesQuery,
    Objective,
    ObjectiveWithKeyResults,
    UpdateKeyResultParams,
    UpdateObjectiveParams,
)
from okrhub.core.pagination import Page


@runtime_checkable
class OkrRepository(Protocol):
    """Protocol for objectives and key results.

    Implementations raise ``OkrRepositoryError`` on storage failure and
    ``NotFoundError`` when mutating a record that does not exist. Progress
    values are computed with ``okrhub.core.okr.progress`` so every adapter
    reports the same numbers.
    """

    # Objective operations
    async def create_objective(self, owner_id: UUID, params: CreateObjectiveParams) -> Objective:
        """Create an objective in ``draft`` status."""
        ...

    async def find_objective_by_id(self, objective_id: UUID) -> Objective | None:
        """Get objective by ID."""
        ...

    async def find_objective_with_key_results(
        self, objective_id: UUID
    ) -> ObjectiveWithKeyResults | None:
        """Get objective with its key results and aggregate progress."""
        ...

    async def update_objective(
        self, objective_id: UUID, params: UpdateObjectiveParams
    ) -> Objective:
        """Merge the provided fields into an objective."""
        ...

    async def delete_objective(self, objective_id: UUID) -> None:
        """Delete an objective and all of its key results atomically."""
        ...

    async def list_objectives(self, query: ListObjectivesQuery) -> Page[Objective]:
        """List objectives matching the query."""
        ...

    async def list_objectives_with_key_results(
        self, query: ListObjectivesQuery
    ) -> Page[ObjectiveWithKeyResults]:
        """List objectives with their key results and progress."""
        ...

    async def get_objective_progress(self, objective_id: UUID) -> float:
        """Aggregate progress of an objective (0 when it has no key results)."""
        ...

    # Key result operations
    async def create_key_result(self, params: CreateKeyResultParams) -> KeyResult:
        """Create a key result with ``current_value`` 0 and status ``active``."""
        ...

    async def find_key_result_by_id(self, key_result_id: UUID) -> KeyResultWithProgress | None:
        """Get key result by ID with its unclamped progress."""
        ...

    async def update_key_result(
        self, key_result_id: UUID, params: UpdateKeyResultParams
    ) -> KeyResult:
        """Merge the provided fields into a key result."""
        ...

    async def update_key_result_progress(
        self, key_result_id: UUID, current_value: float
    ) -> KeyResult:
        """Set the current value. The status is left unchanged."""
        ...

    async def delete_key_result(self, key_result_id: UUID) -> None:
        """Delete a key result."""
        ...

    async def list_key_results(self, query: ListKeyResultsQuery) -> Page[KeyResultWithProgress]:
        """List key results matching the query."""
        ...

    async def list_key_results_by_objective(
        self, objective_id: UUID
    ) -> list[KeyResultWithProgress]:
        """All key results of an objective, oldest first."""
        ...

    # Aggregates
    async def get_dashboard_stats(
        self, user_id: UUID, team_id: UUID | None = None
    ) -> DashboardStats:
        """Dashboard counters over the user's objectives, optionally one team's."""
        ...

    # Access predicates
    async def is_objective_owner(self, objective_id: UUID, user_id: UUID) -> bool:
        """True if the user owns the objective. False if it does not exist."""
        ...

    async def can_user_access_objective(self, objective_id: UUID, user_id: UUID) -> bool:
        """True for the owner, or for anyone on team/organization objectives."""
        ...

    async def can_user_edit_objective(self, objective_id: UUID, user_id: UUID) -> bool:
        """True only for the owner."""
        ...
