"""Teams API routes: teams, memberships and invitations."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from okrhub.core.context import Context
from okrhub.core.pagination import MAX_PAGE_SIZE, Pagination
from okrhub.core.rbac.permissions import DefaultRole
from okrhub.core.teams.types import (
    AddTeamMemberInput,
    CreateTeamParams,
    InvitationStatus,
    InviteToTeamInput,
    ListTeamsQuery,
    MemberStatus,
    UpdateTeamParams,
)
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.entrypoints.api.middleware.auth import SessionDep
from okrhub.services import teams as teams_service

router = APIRouter(prefix="/teams", tags=["teams"])

ContextDep = Annotated[Context, Depends(get_context)]


class TeamResponse(BaseModel):
    """Team response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime
    member_count: int | None = None
    active_okr_count: int | None = None


class TeamListResponse(BaseModel):
    """Response for listing teams."""

    teams: list[TeamResponse]
    total: int


class TeamMemberResponse(BaseModel):
    """Team membership response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    team_id: UUID
    user_id: UUID
    role_id: UUID
    invited_by_id: UUID | None
    invited_at: datetime | None
    joined_at: datetime | None
    status: MemberStatus
    created_at: datetime


class TeamMemberListResponse(BaseModel):
    """Response for listing team members."""

    members: list[TeamMemberResponse]
    total: int


class TeamMemberAdd(BaseModel):
    """Add member request."""

    user_id: UUID
    role: DefaultRole = DefaultRole.MEMBER


class TeamMemberRoleUpdate(BaseModel):
    """Change member role request."""

    role: DefaultRole


class InvitationCreate(BaseModel):
    """Invite by email request."""

    email: EmailStr
    role: DefaultRole = DefaultRole.MEMBER


class InvitationAccept(BaseModel):
    """Accept invitation request."""

    token: str = Field(min_length=1)


class InvitationResponse(BaseModel):
    """Invitation response. The token is only delivered by email."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    team_id: UUID
    email: str
    role_id: UUID
    invited_by_id: UUID
    expires_at: datetime
    status: InvitationStatus
    created_at: datetime


class InvitationListResponse(BaseModel):
    """Response for listing invitations."""

    invitations: list[InvitationResponse]
    total: int


@router.get("/", response_model=TeamListResponse)
async def list_teams(
    session: SessionDep,
    context: ContextDep,
    search: str | None = None,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=MAX_PAGE_SIZE),
) -> TeamListResponse:
    """List the teams the current user belongs to."""
    query = ListTeamsQuery(
        search=search,
        member_id=session.user_id,
        pagination=Pagination(page=page, limit=limit),
    )
    result = unwrap(await teams_service.list_teams(context, query))
    return TeamListResponse(
        teams=[TeamResponse.model_validate(t) for t in result.items],
        total=result.count,
    )


@router.post("/", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(
    body: CreateTeamParams, session: SessionDep, context: ContextDep
) -> TeamResponse:
    """Create a team. The creator becomes its admin."""
    team = unwrap(await teams_service.create_team(context, session.user_id, body))
    return TeamResponse.model_validate(team)


@router.post("/invitations/accept", response_model=TeamMemberResponse)
async def accept_invitation(
    body: InvitationAccept, session: SessionDep, context: ContextDep
) -> TeamMemberResponse:
    """Join a team with an invitation token."""
    member = unwrap(
        await teams_service.accept_team_invitation(context, session.user_id, body.token)
    )
    return TeamMemberResponse.model_validate(member)


@router.delete("/invitations/{invitation_id}", response_model=InvitationResponse)
async def cancel_invitation(
    invitation_id: UUID, session: SessionDep, context: ContextDep
) -> InvitationResponse:
    """Cancel a pending invitation."""
    invitation = unwrap(
        await teams_service.cancel_team_invitation(context, session.user_id, invitation_id)
    )
    return InvitationResponse.model_validate(invitation)


@router.get("/{team_id}", response_model=TeamResponse)
async def get_team(team_id: UUID, session: SessionDep, context: ContextDep) -> TeamResponse:
    """Get a team by ID."""
    team = unwrap(await teams_service.get_team(context, team_id, session.user_id))
    return TeamResponse.model_validate(team)


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: UUID, body: UpdateTeamParams, session: SessionDep, context: ContextDep
) -> TeamResponse:
    """Update a team's name or description."""
    team = unwrap(await teams_service.update_team(context, team_id, session.user_id, body))
    return TeamResponse.model_validate(team)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(team_id: UUID, session: SessionDep, context: ContextDep) -> Response:
    """Delete a team. Only its creator may do this."""
    unwrap(await teams_service.delete_team(context, team_id, session.user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{team_id}/members", response_model=TeamMemberListResponse)
async def list_members(
    team_id: UUID,
    session: SessionDep,
    context: ContextDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_PAGE_SIZE),
) -> TeamMemberListResponse:
    """List the active members of a team."""
    result = unwrap(
        await teams_service.list_team_members(context, team_id, session.user_id, page, limit)
    )
    return TeamMemberListResponse(
        members=[TeamMemberResponse.model_validate(m) for m in result.items],
        total=result.count,
    )


@router.post(
    "/{team_id}/members",
    response_model=TeamMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member(
    team_id: UUID, body: TeamMemberAdd, session: SessionDep, context: ContextDep
) -> TeamMemberResponse:
    """Add an existing user to the team."""
    params = AddTeamMemberInput(team_id=team_id, user_id=body.user_id, role=body.role)
    member = unwrap(await teams_service.add_team_member(context, session.user_id, params))
    return TeamMemberResponse.model_validate(member)


@router.put("/{team_id}/members/{user_id}/role", response_model=TeamMemberResponse)
async def update_member_role(
    team_id: UUID,
    user_id: UUID,
    body: TeamMemberRoleUpdate,
    session: SessionDep,
    context: ContextDep,
) -> TeamMemberResponse:
    """Change a member's role."""
    member = unwrap(
        await teams_service.update_team_member_role(
            context, session.user_id, team_id, user_id, body.role
        )
    )
    return TeamMemberResponse.model_validate(member)


@router.delete("/{team_id}/members/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    team_id: UUID, user_id: UUID, session: SessionDep, context: ContextDep
) -> Response:
    """Remove a member, or leave the team when removing yourself."""
    unwrap(await teams_service.remove_team_member(context, session.user_id, team_id, user_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{team_id}/invitations", response_model=InvitationListResponse)
async def list_invitations(
    team_id: UUID,
    session: SessionDep,
    context: ContextDep,
    invitation_status: InvitationStatus | None = Query(default=None, alias="status"),
) -> InvitationListResponse:
    """List a team's invitations."""
    result = unwrap(
        await teams_service.list_team_invitations(
            context, team_id, session.user_id, invitation_status
        )
    )
    return InvitationListResponse(
        invitations=[InvitationResponse.model_validate(i) for i in result.items],
        total=result.count,
    )


@router.post(
    "/{team_id}/invitations",
    response_model=InvitationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def invite(
    team_id: UUID, body: InvitationCreate, session: SessionDep, context: ContextDep
) -> InvitationResponse:
    """Invite someone to the team by email."""
    params = InviteToTeamInput(team_id=team_id, email=body.email, role=body.role)
    invitation = unwrap(await teams_service.invite_to_team(context, session.user_id, params))
    return InvitationResponse.model_validate(invitation)
