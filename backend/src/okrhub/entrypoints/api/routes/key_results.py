"""Key result API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from okrhub.core.context import Context
from okrhub.core.okr.types import CreateKeyResultParams, UpdateKeyResultParams
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.entrypoints.api.middleware.auth import SessionDep
from okrhub.entrypoints.api.routes.objectives import KeyResultResponse
from okrhub.services import okr as okr_service

router = APIRouter(prefix="/key-results", tags=["key-results"])

ContextDep = Annotated[Context, Depends(get_context)]


class ProgressUpdate(BaseModel):
    """Progress update request."""

    current_value: float = Field(ge=0)


@router.post("/", response_model=KeyResultResponse, status_code=status.HTTP_201_CREATED)
async def create_key_result(
    body: CreateKeyResultParams, session: SessionDep, context: ContextDep
) -> KeyResultResponse:
    """Add a key result to one of the current user's objectives."""
    key_result = unwrap(await okr_service.create_key_result(context, session.user_id, body))
    return KeyResultResponse.model_validate(key_result)


@router.get("/{key_result_id}", response_model=KeyResultResponse)
async def get_key_result(
    key_result_id: UUID, session: SessionDep, context: ContextDep
) -> KeyResultResponse:
    """Get a key result with its progress."""
    key_result = unwrap(await okr_service.get_key_result(context, key_result_id, session.user_id))
    return KeyResultResponse.model_validate(key_result)


@router.patch("/{key_result_id}", response_model=KeyResultResponse)
async def update_key_result(
    key_result_id: UUID,
    body: UpdateKeyResultParams,
    session: SessionDep,
    context: ContextDep,
) -> KeyResultResponse:
    """Update a key result."""
    key_result = unwrap(
        await okr_service.update_key_result(context, key_result_id, session.user_id, body)
    )
    return KeyResultResponse.model_validate(key_result)


@router.put("/{key_result_id}/progress", response_model=KeyResultResponse)
async def update_progress(
    key_result_id: UUID,
    body: ProgressUpdate,
    session: SessionDep,
    context: ContextDep,
) -> KeyResultResponse:
    """Record a new current value."""
    key_result = unwrap(
        await okr_service.update_key_result_progress(
            context, key_result_id, session.user_id, body.current_value
        )
    )
    return KeyResultResponse.model_validate(key_result)


@router.delete("/{key_result_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_key_result(
    key_result_id: UUID, session: SessionDep, context: ContextDep
) -> Response:
    """Delete a key result."""
    unwrap(await okr_service.delete_key_result(context, key_result_id, session.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
