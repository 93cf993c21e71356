"""OKR domain types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from okrhub.core.ids import ensure_utc
from okrhub.core.pagination import Pagination

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000
UNIT_MAX_LENGTH = 20

OBJECTIVE_SORT_FIELDS = frozenset({"title", "start_date", "end_date", "created_at", "updated_at"})
KEY_RESULT_SORT_FIELDS = OBJECTIVE_SORT_FIELDS | {"current_value", "target_value"}

UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


class ObjectiveType(str, Enum):
    """Visibility scope of an objective."""

    PERSONAL = "personal"
    TEAM = "team"
    ORGANIZATION = "organization"


class ObjectiveStatus(str, Enum):
    """Objective lifecycle. Any value may be set through an update."""

    DRAFT = "draft"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class KeyResultType(str, Enum):
    """How a key result's progress is measured."""

    PERCENTAGE = "percentage"
    NUMBER = "number"
    BOOLEAN = "boolean"


class KeyResultStatus(str, Enum):
    """Key result lifecycle. Reaching the target does not change it."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass
class Objective:
    """A goal with a date range, owned by one user."""

    id: UUID
    title: str
    description: str | None
    type: ObjectiveType
    owner_id: UUID
    team_id: UUID | None
    parent_id: UUID | None
    start_date: datetime
    end_date: datetime
    status: ObjectiveStatus
    created_at: datetime
    updated_at: datetime


@dataclass
class KeyResult:
    """A measurable sub-goal of an objective."""

    id: UUID
    objective_id: UUID
    title: str
    description: str | None
    type: KeyResultType
    target_value: float
    current_value: float
    unit: str | None
    start_date: datetime
    end_date: datetime
    status: KeyResultStatus
    created_at: datetime
    updated_at: datetime


@dataclass
class KeyResultWithProgress(KeyResult):
    """Key result with its derived progress (not clamped for percentages)."""

    progress_percentage: float


@dataclass
class ObjectiveWithKeyResults(Objective):
    """Objective with its key results and aggregate progress (0-100)."""

    key_results: list[KeyResultWithProgress] = field(default_factory=list)
    progress_percentage: float = 0.0


@dataclass
class DashboardStats:
    """Counters shown on the OKR dashboard."""

    total_objectives: int = 0
    active_objectives: int = 0
    completed_objectives: int = 0
    total_key_results: int = 0
    completed_key_results: int = 0
    average_progress: int = 0
    on_track: int = 0
    at_risk: int = 0
    behind: int = 0


class CreateObjectiveParams(BaseModel):
    """Fields for creating an objective. The owner is the acting user."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    type: ObjectiveType
    team_id: UUID | None = None
    parent_id: UUID | None = None
    start_date: UtcDatetime
    end_date: UtcDatetime


class UpdateObjectiveParams(BaseModel):
    """Partial objective update.

    Only fields explicitly set are written, so ``team_id=None`` clears the
    team while omitting it keeps the current one.
    """

    model_config = ConfigDict(frozen=True)

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    type: ObjectiveType | None = None
    team_id: UUID | None = None
    parent_id: UUID | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    status: ObjectiveStatus | None = None

    def changes(self) -> dict[str, object]:
        """Fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)


class CreateKeyResultParams(BaseModel):
    """Fields for creating a key result. ``current_value`` always starts at 0."""

    model_config = ConfigDict(frozen=True)

    objective_id: UUID
    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    type: KeyResultType
    target_value: float
    unit: str | None = Field(default=None, max_length=UNIT_MAX_LENGTH)
    start_date: UtcDatetime
    end_date: UtcDatetime


class UpdateKeyResultParams(BaseModel):
    """Partial key result update.

    The current value is not editable here; it changes only through
    ``update_key_result_progress``, which validates it against the type.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    title: str | None = Field(default=None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    type: KeyResultType | None = None
    target_value: float | None = None
    unit: str | None = Field(default=None, max_length=UNIT_MAX_LENGTH)
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    status: KeyResultStatus | None = None

    def changes(self) -> dict[str, object]:
        """Fields explicitly provided by the caller."""
        return self.model_dump(exclude_unset=True)


class ListObjectivesQuery(BaseModel):
    """Filters, sort and page for listing objectives."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination()
    search: str | None = None
    type: ObjectiveType | None = None
    status: ObjectiveStatus | None = None
    owner_id: UUID | None = None
    team_id: UUID | None = None
    start_date: UtcDatetime | None = None
    end_date: UtcDatetime | None = None
    visible_to: UUID | None = None

    @model_validator(mode="after")
    def _check_sort_field(self) -> ListObjectivesQuery:
        if self.pagination.order_by not in OBJECTIVE_SORT_FIELDS:
            raise ValueError(f"Cannot sort objectives by '{self.pagination.order_by}'")
        return self


class ListKeyResultsQuery(BaseModel):
    """Filters, sort and page for listing key results."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination()
    search: str | None = None
    objective_id: UUID | None = None
    type: KeyResultType | None = None
    status: KeyResultStatus | None = None
    progress_min: float | None = None
    progress_max: float | None = None

    @model_validator(mode="after")
    def _check_sort_field(self) -> ListKeyResultsQuery:
        if self.pagination.order_by not in KEY_RESULT_SORT_FIELDS:
            raise ValueError(f"Cannot sort key results by '{self.pagination.order_by}'")
        return self
