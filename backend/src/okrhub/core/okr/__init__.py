"""OKR domain: objectives, key results and progress."""

from okrhub.core.okr.progress import (
    ProgressBucket,
    build_dashboard_stats,
    key_result_progress,
    objective_progress,
    progress_bucket,
)
from okrhub.core.okr.repository import OkrRepository
from okrhub.core.okr.types import (
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

__all__ = [
    "Objective",
    "ObjectiveType",
    "ObjectiveStatus",
    "ObjectiveWithKeyResults",
    "KeyResult",
    "KeyResultType",
    "KeyResultStatus",
    "KeyResultWithProgress",
    "DashboardStats",
    "CreateObjectiveParams",
    "UpdateObjectiveParams",
    "CreateKeyResultParams",
    "UpdateKeyResultParams",
    "ListObjectivesQuery",
    "ListKeyResultsQuery",
    "OkrRepository",
    "ProgressBucket",
    "key_result_progress",
    "objective_progress",
    "progress_bucket",
    "build_dashboard_stats",
]
