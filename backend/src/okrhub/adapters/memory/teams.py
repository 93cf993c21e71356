"""In-memory team repository."""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from okrhub.adapters.memory.store import MemoryStore, matches_search, paginate
from okrhub.core.exceptions import NotFoundError, TeamRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.okr.types import ObjectiveStatus
from okrhub.core.pagination import Page
from okrhub.core.teams.types import (
    AddMemberParams,
    CreateInvitationParams,
    CreateTeamParams,
    InvitationStatus,
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


class InMemoryTeamRepository:
    """Team repository backed by a ``MemoryStore``."""

    def __init__(self, store: MemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    def _get(self, team_id: UUID) -> Team:
        team = self._store.teams.get(team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    def _with_stats(self, team: Team) -> TeamWithStats:
        member_count = sum(
            1
            for m in self._store.members.values()
            if m.team_id == team.id and m.status == MemberStatus.ACTIVE
        )
        active_okr_count = sum(
            1
            for o in self._store.objectives.values()
            if o.team_id == team.id and o.status == ObjectiveStatus.ACTIVE
        )
        return TeamWithStats(
            **vars(team), member_count=member_count, active_okr_count=active_okr_count
        )

    # Team operations
    async def create(self, created_by_id: UUID, params: CreateTeamParams) -> Team:
        """Create a team."""
        if created_by_id not in self._store.users:
            raise TeamRepositoryError("Team creator does not exist")
        now = utc_now()
        team = Team(
            id=new_id(),
            name=params.name,
            description=params.description,
            created_by_id=created_by_id,
            created_at=now,
            updated_at=now,
        )
        self._store.teams[team.id] = team
        return team

    async def find_by_id(self, team_id: UUID) -> Team | None:
        """Get team by ID."""
        return self._store.teams.get(team_id)

    async def find_by_id_with_stats(self, team_id: UUID) -> TeamWithStats | None:
        """Get team by ID with member and active OKR counts."""
        team = self._store.teams.get(team_id)
        return self._with_stats(team) if team else None

    async def update(self, team_id: UUID, params: UpdateTeamParams) -> Team:
        """Apply a partial update to a team."""
        team = self._get(team_id)
        changes = params.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        updated = replace(team, **changes, updated_at=utc_now())
        self._store.teams[team_id] = updated
        return updated

    async def delete(self, team_id: UUID) -> None:
        """Delete a team with its members and invitations.

        Objectives of the team survive with ``team_id`` cleared.
        """
        self._get(team_id)
        del self._store.teams[team_id]
        for member in [m for m in self._store.members.values() if m.team_id == team_id]:
            del self._store.members[member.id]
        for invitation in [i for i in self._store.invitations.values() if i.team_id == team_id]:
            del self._store.invitations[invitation.id]
        for objective in list(self._store.objectives.values()):
            if objective.team_id == team_id:
                self._store.objectives[objective.id] = replace(objective, team_id=None)

    async def list(self, query: ListTeamsQuery) -> Page[TeamWithStats]:
        """List teams."""
        member_team_ids = None
        if query.member_id is not None:
            member_team_ids = {
                m.team_id
                for m in self._store.members.values()
                if m.user_id == query.member_id and m.status == MemberStatus.ACTIVE
            }
        teams = [
            self._with_stats(t)
            for t in self._store.teams.values()
            if matches_search(query.search, t.name, t.description)
            and (query.owner_id is None or t.created_by_id == query.owner_id)
            and (member_team_ids is None or t.id in member_team_ids)
        ]
        return paginate(teams, query.pagination)

    # Member operations
    async def add_member(self, params: AddMemberParams) -> TeamMember:
        """Insert a membership."""
        self._get(params.team_id)
        if params.user_id not in self._store.users:
            raise TeamRepositoryError("Member user does not exist")
        if params.role_id not in self._store.roles:
            raise TeamRepositoryError("Member role does not exist")
        if await self.find_member(params.team_id, params.user_id) is not None:
            raise TeamRepositoryError("User already has a membership in this team")
        now = utc_now()
        member = TeamMember(
            id=new_id(),
            team_id=params.team_id,
            user_id=params.user_id,
            role_id=params.role_id,
            invited_by_id=params.invited_by_id,
            invited_at=now if params.invited_by_id else None,
            joined_at=now if params.status == MemberStatus.ACTIVE else None,
            status=params.status,
            created_at=now,
            updated_at=now,
        )
        self._store.members[member.id] = member
        return member

    async def find_member(self, team_id: UUID, user_id: UUID) -> TeamMember | None:
        """Get the membership of a user in a team."""
        return next(
            (
                m
                for m in self._store.members.values()
                if m.team_id == team_id and m.user_id == user_id
            ),
            None,
        )

    async def find_member_by_id(self, member_id: UUID) -> TeamMember | None:
        """Get membership by ID."""
        return self._store.members.get(member_id)

    async def update_member(self, member_id: UUID, params: UpdateMemberParams) -> TeamMember:
        """Change role or status."""
        member = self._store.members.get(member_id)
        if member is None:
            raise NotFoundError("Team member not found")
        if params.role_id is not None and params.role_id not in self._store.roles:
            raise TeamRepositoryError("Member role does not exist")
        now = utc_now()
        updated = replace(
            member,
            role_id=params.role_id or member.role_id,
            status=params.status or member.status,
            updated_at=now,
        )
        if params.status == MemberStatus.ACTIVE and member.status != MemberStatus.ACTIVE:
            updated = replace(updated, joined_at=now)
        self._store.members[member_id] = updated
        return updated

    async def remove_member(self, member_id: UUID) -> None:
        """Hard-delete a membership."""
        if self._store.members.pop(member_id, None) is None:
            raise NotFoundError("Team member not found")

    async def list_members(self, team_id: UUID, query: ListMembersQuery) -> Page[TeamMember]:
        """List members of a team."""
        members = [
            m
            for m in self._store.members.values()
            if m.team_id == team_id
            and (query.status is None or m.status == query.status)
            and (query.role_id is None or m.role_id == query.role_id)
        ]
        return paginate(members, query.pagination)

    # Invitation operations
    async def create_invitation(self, params: CreateInvitationParams) -> TeamInvitation:
        """Store an invitation."""
        self._get(params.team_id)
        if await self.find_invitation_by_token(params.token) is not None:
            raise TeamRepositoryError("Invitation token already exists")
        now = utc_now()
        invitation = TeamInvitation(
            id=new_id(),
            team_id=params.team_id,
            email=params.email,
            role_id=params.role_id,
            invited_by_id=params.invited_by_id,
            token=params.token,
            expires_at=params.expires_at,
            status=InvitationStatus.PENDING,
            created_at=now,
            updated_at=now,
        )
        self._store.invitations[invitation.id] = invitation
        return invitation

    async def find_invitation_by_token(self, token: str) -> TeamInvitation | None:
        """Get invitation by token."""
        return next((i for i in self._store.invitations.values() if i.token == token), None)

    async def find_invitation_by_id(self, invitation_id: UUID) -> TeamInvitation | None:
        """Get invitation by ID."""
        return self._store.invitations.get(invitation_id)

    async def update_invitation_status(
        self, invitation_id: UUID, status: InvitationStatus
    ) -> TeamInvitation:
        """Move an invitation to a new status."""
        invitation = self._store.invitations.get(invitation_id)
        if invitation is None:
            raise NotFoundError("Invitation not found")
        updated = replace(invitation, status=status, updated_at=utc_now())
        self._store.invitations[invitation_id] = updated
        return updated

    async def list_invitations(
        self, team_id: UUID, query: ListInvitationsQuery
    ) -> Page[TeamInvitation]:
        """List invitations of a team."""
        invitations = [
            i
            for i in self._store.invitations.values()
            if i.team_id == team_id and (query.status is None or i.status == query.status)
        ]
        return paginate(invitations, query.pagination)

    # Membership lookups
    async def is_user_member(self, team_id: UUID, user_id: UUID) -> bool:
        """Check for an active membership."""
        member = await self.find_member(team_id, user_id)
        return member is not None and member.status == MemberStatus.ACTIVE

    async def get_user_role_in_team(self, team_id: UUID, user_id: UUID) -> UUID | None:
        """Get the role ID of the user's active membership."""
        member = await self.find_member(team_id, user_id)
        if member is None or member.status != MemberStatus.ACTIVE:
            return None
        return member.role_id
