"""User API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from okrhub.core.context import Context
from okrhub.core.pagination import MAX_PAGE_SIZE, Pagination
from okrhub.core.users.types import ChangePasswordParams, ListUsersQuery, UpdateUserParams
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.entrypoints.api.middleware.auth import SessionDep
from okrhub.entrypoints.api.routes.auth import UserResponse
from okrhub.services import users as users_service

router = APIRouter(prefix="/users", tags=["users"])

ContextDep = Annotated[Context, Depends(get_context)]


class UserListResponse(BaseModel):
    """Response for listing users."""

    users: list[UserResponse]
    total: int


@router.get("/", response_model=UserListResponse)
async def list_users(
    session: SessionDep,
    context: ContextDep,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
) -> UserListResponse:
    """List users, optionally filtered by name or email."""
    query = ListUsersQuery(search=search, pagination=Pagination(page=page, limit=limit))
    result = unwrap(await users_service.list_users(context, query))
    return UserListResponse(
        users=[UserResponse.model_validate(u) for u in result.items],
        total=result.count,
    )


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    body: UpdateUserParams, session: SessionDep, context: ContextDep
) -> UserResponse:
    """Update the current user's profile."""
    user = unwrap(await users_service.update_profile(context, session.user_id, body))
    return UserResponse.model_validate(user)


@router.post("/me/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    body: ChangePasswordParams, session: SessionDep, context: ContextDep
) -> Response:
    """Change the current user's password."""
    unwrap(await users_service.change_password(context, session.user_id, body))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(session: SessionDep, context: ContextDep) -> Response:
    """Delete the current user's account."""
    unwrap(await users_service.delete_user(context, session.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: UUID, session: SessionDep, context: ContextDep) -> UserResponse:
    """Get a user by ID."""
    user = unwrap(await users_service.get_user(context, user_id))
    return UserResponse.model_validate(user)
