"""Dashboard API route."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from okrhub.core.context import Context
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.entrypoints.api.middleware.auth import SessionDep
from okrhub.services import okr as okr_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])

ContextDep = Annotated[Context, Depends(get_context)]


class DashboardResponse(BaseModel):
    """Dashboard statistics response."""

    model_config = ConfigDict(from_attributes=True)

    total_objectives: int
    active_objectives: int
    completed_objectives: int
    total_key_results: int
    completed_key_results: int
    average_progress: int
    on_track: int
    at_risk: int
    behind: int


@router.get("/", response_model=DashboardResponse)
async def get_dashboard(
    session: SessionDep,
    context: ContextDep,
    team_id: UUID | None = None,
) -> DashboardResponse:
    """OKR statistics for the current user, optionally within one team."""
    stats = unwrap(await okr_service.get_okr_dashboard(context, session.user_id, team_id))
    return DashboardResponse.model_validate(stats)
