"""Team use cases.

Every mutation asks ``TeamAuthorizer`` first; callers are never trusted to
have checked permissions themselves.
"""

from __future__ import annotations

from uuid import UUID

import structlog

from okrhub.core.auth.tokens import generate_token, get_expiry, is_expired
from okrhub.core.context import Context
from okrhub.core.exceptions import (
    AuthorizationError,
    ConflictError,
    EmailServiceError,
    NotFoundError,
    ValidationError,
)
from okrhub.core.pagination import Page, Pagination, SortOrder
from okrhub.core.rbac.permissions import DefaultRole, TeamPermission
from okrhub.core.rbac.types import Role
from okrhub.core.teams.types import (
    AddMemberParams,
    AddTeamMemberInput,
    CreateInvitationParams,
    CreateTeamParams,
    InvitationStatus,
    InviteToTeamInput,
    ListInvitationsQuery,
    ListMembersQuery,
    ListTeamsQuery,
    MemberStatus,
    Team,
    TeamInvitation,
    TeamMember,
    TeamWithStats,
    UpdateMemberParams,
    UpdateTeamParams,
)
from okrhub.services.base import use_case

logger = structlog.get_logger()


async def _role_by_name(ctx: Context, role: DefaultRole) -> Role:
    found = await ctx.role_repository.find_role_by_name(role.value)
    if found is None:
        raise NotFoundError(f"Role '{role.value}' not found")
    return found


@use_case
async def create_team(ctx: Context, user_id: UUID, params: CreateTeamParams) -> Team:
    """Create a team; the creator joins it as an active admin.

    Raises:
        NotFoundError: If the creator does not exist.
    """
    creator = await ctx.user_repository.find_by_id(user_id)
    if creator is None:
        raise NotFoundError("User not found")

    admin = await _role_by_name(ctx, DefaultRole.ADMIN)
    team = await ctx.team_repository.create(user_id, params)
    await ctx.team_repository.add_member(
        AddMemberParams(team_id=team.id, user_id=user_id, role_id=admin.id)
    )
    logger.info("team_created", team_id=str(team.id), created_by=str(user_id))
    return team


@use_case
async def get_team(ctx: Context, team_id: UUID, requester_id: UUID) -> TeamWithStats:
    """Get a team with its counters. Only the creator and members may look."""
    await ctx.team_authorizer.require_member(team_id, requester_id)
    team = await ctx.team_repository.find_by_id_with_stats(team_id)
    if team is None:
        raise NotFoundError("Team not found")
    return team


@use_case
async def list_teams(ctx: Context, query: ListTeamsQuery) -> Page[TeamWithStats]:
    """List teams, e.g. those a user belongs to via ``member_id``."""
    return await ctx.team_repository.list(query)


@use_case
async def update_team(
    ctx: Context, team_id: UUID, requester_id: UUID, params: UpdateTeamParams
) -> Team:
    """Rename or re-describe a team. Requires ``team:edit``."""
    await ctx.team_authorizer.require_permission(team_id, requester_id, TeamPermission.TEAM_EDIT)
    team = await ctx.team_repository.update(team_id, params)
    logger.info("team_updated", team_id=str(team_id), updated_by=str(requester_id))
    return team


@use_case
async def delete_team(ctx: Context, team_id: UUID, requester_id: UUID) -> None:
    """Delete a team with its members and invitations. Creator only."""
    await ctx.team_authorizer.require_creator(team_id, requester_id)
    await ctx.team_repository.delete(team_id)
    logger.info("team_deleted", team_id=str(team_id), deleted_by=str(requester_id))


@use_case
async def add_team_member(
    ctx: Context, requester_id: UUID, params: AddTeamMemberInput
) -> TeamMember:
    """Add an existing user to a team directly, skipping the invitation step.

    Raises:
        AuthorizationError: If the requester may not invite or grant the role.
        NotFoundError: If the team, role or user does not exist.
        ConflictError: If the user already has a membership.
    """
    authorizer = ctx.team_authorizer
    await authorizer.require_permission(params.team_id, requester_id, TeamPermission.MEMBER_INVITE)
    role = await _role_by_name(ctx, params.role)
    await authorizer.ensure_can_grant(params.team_id, requester_id, role.id)

    user = await ctx.user_repository.find_by_id(params.user_id)
    if user is None:
        raise NotFoundError("User not found")

    if await ctx.team_repository.find_member(params.team_id, params.user_id) is not None:
        raise ConflictError("User is already a member of this team")

    member = await ctx.team_repository.add_member(
        AddMemberParams(
            team_id=params.team_id,
            user_id=params.user_id,
            role_id=role.id,
            invited_by_id=requester_id,
        )
    )
    logger.info(
        "team_member_added",
        team_id=str(params.team_id),
        user_id=str(params.user_id),
        role=role.name,
    )
    return member


@use_case
async def invite_to_team(
    ctx: Context, requester_id: UUID, params: InviteToTeamInput
) -> TeamInvitation:
    """Create an invitation and email its acceptance link.

    A failed email is logged; the invitation stays valid.

    Raises:
        AuthorizationError: If the requester may not invite or grant the role.
        NotFoundError: If the team or role does not exist.
        ConflictError: If the address already belongs to an active member.
    """
    authorizer = ctx.team_authorizer
    team = await authorizer.get_team(params.team_id)
    await authorizer.require_permission(team.id, requester_id, TeamPermission.MEMBER_INVITE)
    role = await _role_by_name(ctx, params.role)
    await authorizer.ensure_can_grant(team.id, requester_id, role.id)

    invitee = await ctx.user_repository.find_by_email(params.email)
    if invitee is not None and await ctx.team_repository.is_user_member(team.id, invitee.id):
        raise ConflictError("User is already a member of this team")

    invitation = await ctx.team_repository.create_invitation(
        CreateInvitationParams(
            team_id=team.id,
            email=params.email,
            role_id=role.id,
            invited_by_id=requester_id,
            token=generate_token(),
            expires_at=get_expiry(ctx.settings.invitation_ttl),
        )
    )

    inviter = await ctx.user_repository.find_by_id(requester_id)
    try:
        await ctx.email_service.send_team_invitation(
            to=invitation.email,
            team_name=team.name,
            inviter_name=inviter.name if inviter else "A teammate",
            invitation_url=ctx.settings.link("/team/join", invitation.token),
        )
    except EmailServiceError as e:
        logger.warning(
            "team_invitation_email_failed",
            invitation_id=str(invitation.id),
            error=e.message,
        )

    logger.info("team_invitation_created", team_id=str(team.id), invitation_id=str(invitation.id))
    return invitation


@use_case
async def accept_team_invitation(ctx: Context, user_id: UUID, token: str) -> TeamMember:
    """Join a team with an invitation token.

    The token works once: after acceptance, cancellation or expiry it is inert.

    Raises:
        NotFoundError: If the token or user is unknown.
        ValidationError: If the invitation is not pending or has expired.
        AuthorizationError: If the invitation was addressed to another email.
        ConflictError: If the user is already an active member.
    """
    invitation = await ctx.team_repository.find_invitation_by_token(token)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationError("Invitation is no longer valid")
    if is_expired(invitation.expires_at):
        await ctx.team_repository.update_invitation_status(invitation.id, InvitationStatus.EXPIRED)
        raise ValidationError("Invitation has expired")

    user = await ctx.user_repository.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found")
    if user.email.lower() != invitation.email.lower():
        raise AuthorizationError("Invitation was sent to a different email")

    existing = await ctx.team_repository.find_member(invitation.team_id, user_id)
    if existing is None:
        member = await ctx.team_repository.add_member(
            AddMemberParams(
                team_id=invitation.team_id,
                user_id=user_id,
                role_id=invitation.role_id,
                invited_by_id=invitation.invited_by_id,
            )
        )
    elif existing.status == MemberStatus.ACTIVE:
        raise ConflictError("User is already a member of this team")
    else:
        member = await ctx.team_repository.update_member(
            existing.id,
            UpdateMemberParams(role_id=invitation.role_id, status=MemberStatus.ACTIVE),
        )

    await ctx.team_repository.update_invitation_status(invitation.id, InvitationStatus.ACCEPTED)
    logger.info("team_invitation_accepted", invitation_id=str(invitation.id), user_id=str(user_id))
    return member


@use_case
async def cancel_team_invitation(
    ctx: Context, requester_id: UUID, invitation_id: UUID
) -> TeamInvitation:
    """Withdraw a pending invitation. Requires ``team:member:invite``."""
    invitation = await ctx.team_repository.find_invitation_by_id(invitation_id)
    if invitation is None:
        raise NotFoundError("Invitation not found")
    await ctx.team_authorizer.require_permission(
        invitation.team_id, requester_id, TeamPermission.MEMBER_INVITE
    )
    if invitation.status != InvitationStatus.PENDING:
        raise ValidationError("Invitation is no longer valid")
    return await ctx.team_repository.update_invitation_status(
        invitation.id, InvitationStatus.CANCELLED
    )


@use_case
async def list_team_invitations(
    ctx: Context,
    team_id: UUID,
    requester_id: UUID,
    status: InvitationStatus | None = None,
) -> Page[TeamInvitation]:
    """List a team's invitations. Requires ``team:member:invite``."""
    await ctx.team_authorizer.require_permission(
        team_id, requester_id, TeamPermission.MEMBER_INVITE
    )
    return await ctx.team_repository.list_invitations(
        team_id, ListInvitationsQuery(status=status)
    )


@use_case
async def list_team_members(
    ctx: Context,
    team_id: UUID,
    requester_id: UUID,
    page: int = 1,
    limit: int = 50,
) -> Page[TeamMember]:
    """List the active members of a team, oldest first."""
    await ctx.team_authorizer.require_member(team_id, requester_id)
    return await ctx.team_repository.list_members(
        team_id,
        ListMembersQuery(
            pagination=Pagination(page=page, limit=limit, order_by="created_at", order=SortOrder.ASC),
            status=MemberStatus.ACTIVE,
        ),
    )


@use_case
async def remove_team_member(
    ctx: Context, requester_id: UUID, team_id: UUID, user_id: UUID
) -> None:
    """Remove a user from a team.

    Members may always leave. Removing someone else requires
    ``team:member:remove`` and a role at least as strong as theirs. The
    creator can never be removed. Pending invitations are left untouched.
    """
    authorizer = ctx.team_authorizer
    team = await authorizer.get_team(team_id)
    if user_id == team.created_by_id:
        raise AuthorizationError("Cannot remove the team creator")

    member = await ctx.team_repository.find_member(team_id, user_id)
    if requester_id != user_id:
        await authorizer.require_permission(team_id, requester_id, TeamPermission.MEMBER_REMOVE)
        if member is not None:
            await authorizer.ensure_can_grant(team_id, requester_id, member.role_id)
    if member is None:
        raise NotFoundError("Team member not found")

    await ctx.team_repository.remove_member(member.id)
    logger.info(
        "team_member_removed",
        team_id=str(team_id),
        user_id=str(user_id),
        removed_by=str(requester_id),
    )


@use_case
async def update_team_member_role(
    ctx: Context,
    requester_id: UUID,
    team_id: UUID,
    user_id: UUID,
    role: DefaultRole,
) -> TeamMember:
    """Change a member's role. Requires ``team:member:edit``.

    The requester must be able to grant both the member's current role and
    the new one.
    """
    authorizer = ctx.team_authorizer
    team = await authorizer.get_team(team_id)
    if user_id == team.created_by_id:
        raise AuthorizationError("Cannot change the team creator's role")
    await authorizer.require_permission(team_id, requester_id, TeamPermission.MEMBER_EDIT)

    member = await ctx.team_repository.find_member(team_id, user_id)
    if member is None:
        raise NotFoundError("Team member not found")

    new_role = await _role_by_name(ctx, role)
    await authorizer.ensure_can_grant(team_id, requester_id, member.role_id)
    await authorizer.ensure_can_grant(team_id, requester_id, new_role.id)
    return await ctx.team_repository.update_member(member.id, UpdateMemberParams(role_id=new_role.id))
