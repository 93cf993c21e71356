"""Objective API routes."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict

from okrhub.core.context import Context
from okrhub.core.okr.types import (
    CreateObjectiveParams,
    KeyResultStatus,
    KeyResultType,
    ListObjectivesQuery,
    ObjectiveStatus,
    ObjectiveType,
    UpdateObjectiveParams,
)
from okrhub.core.pagination import MAX_PAGE_SIZE, Pagination, SortOrder
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.entrypoints.api.middleware.auth import SessionDep
from okrhub.services import okr as okr_service

router = APIRouter(prefix="/objectives", tags=["objectives"])

ContextDep = Annotated[Context, Depends(get_context)]

SORT_PATTERN = "^(title|start_date|end_date|created_at|updated_at)$"


class KeyResultResponse(BaseModel):
    """Key result response."""

    model_config = ConfigDict(from_attributes=True)

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
    progress_percentage: float | None = None


class ObjectiveResponse(BaseModel):
    """Objective response.

    ``progress_percentage`` and ``key_results`` are filled on reads; writes
    return the bare record.
    """

    model_config = ConfigDict(from_attributes=True)

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
    progress_percentage: float | None = None
    key_results: list[KeyResultResponse] = []


class ObjectiveListResponse(BaseModel):
    """Response for listing objectives."""

    objectives: list[ObjectiveResponse]
    total: int
    page: int
    limit: int


@router.get("/", response_model=ObjectiveListResponse)
async def list_objectives(
    session: SessionDep,
    context: ContextDep,
    search: str | None = None,
    objective_type: ObjectiveType | None = Query(default=None, alias="type"),
    objective_status: ObjectiveStatus | None = Query(default=None, alias="status"),
    owner_id: UUID | None = None,
    team_id: UUID | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    include_key_results: bool = False,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
    order_by: str = Query(default="created_at", pattern=SORT_PATTERN),
    order: SortOrder = SortOrder.DESC,
) -> ObjectiveListResponse:
    """List the objectives visible to the current user."""
    query = ListObjectivesQuery(
        search=search,
        type=objective_type,
        status=objective_status,
        owner_id=owner_id,
        team_id=team_id,
        start_date=start_date,
        end_date=end_date,
        pagination=Pagination(page=page, limit=limit, order_by=order_by, order=order),
    )
    result = unwrap(
        await okr_service.list_objectives(
            context, session.user_id, query, include_key_results=include_key_results
        )
    )
    return ObjectiveListResponse(
        objectives=[ObjectiveResponse.model_validate(o) for o in result.items],
        total=result.count,
        page=page,
        limit=limit,
    )


@router.post("/", response_model=ObjectiveResponse, status_code=status.HTTP_201_CREATED)
async def create_objective(
    body: CreateObjectiveParams, session: SessionDep, context: ContextDep
) -> ObjectiveResponse:
    """Create an objective owned by the current user."""
    objective = unwrap(await okr_service.create_objective(context, session.user_id, body))
    return ObjectiveResponse.model_validate(objective)


@router.get("/{objective_id}", response_model=ObjectiveResponse)
async def get_objective(
    objective_id: UUID, session: SessionDep, context: ContextDep
) -> ObjectiveResponse:
    """Get an objective with its key results and progress."""
    objective = unwrap(await okr_service.get_objective(context, objective_id, session.user_id))
    return ObjectiveResponse.model_validate(objective)


@router.patch("/{objective_id}", response_model=ObjectiveResponse)
async def update_objective(
    objective_id: UUID,
    body: UpdateObjectiveParams,
    session: SessionDep,
    context: ContextDep,
) -> ObjectiveResponse:
    """Update an objective. Only fields present in the body change."""
    objective = unwrap(
        await okr_service.update_objective(context, objective_id, session.user_id, body)
    )
    return ObjectiveResponse.model_validate(objective)


@router.delete("/{objective_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_objective(
    objective_id: UUID, session: SessionDep, context: ContextDep
) -> Response:
    """Delete an objective and its key results."""
    unwrap(await okr_service.delete_objective(context, objective_id, session.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
