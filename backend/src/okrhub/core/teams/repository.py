"""Team repository protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from okrhub.core.pagination import Page
from okrhub.core.teams.types import (
    AddMemberParams,
    CreateInvitationParams,
    CreateTeamParams,
    InvitationStatus,
    ListInvitationsQuery,
    ListMembersQuery,
    ListTeamsQuery,
    Team,
    TeamInvitation,
    TeamMember,
    TeamWithStats,
    UpdateMemberParams,
    UpdateTeamParams,
)


@runtime_checkable
class TeamRepository(Protocol):
    """Protocol for teams, memberships and invitations.

    Implementations raise ``TeamRepositoryError`` on storage failure and
    ``NotFoundError`` when mutating a record that does not exist. They do not
    check permissions; that is the job of ``TeamAuthorizer``.
    """

    # Team operations
    async def create(self, created_by_id: UUID, params: CreateTeamParams) -> Team:
        """Create a team."""
        ...

    async def find_by_id(self, team_id: UUID) -> Team | None:
        """Get team by ID."""
        ...

    async def find_by_id_with_stats(self, team_id: UUID) -> TeamWithStats | None:
        """Get team by ID with member and active OKR counts."""
        ...

    async def update(self, team_id: UUID, params: UpdateTeamParams) -> Team:
        """Apply a partial update to a team."""
        ...

    async def delete(self, team_id: UUID) -> None:
        """Delete a team with its members and invitations."""
        ...

    async def list(self, query: ListTeamsQuery) -> Page[TeamWithStats]:
        """List teams."""
        ...

    # Member operations
    async def add_member(self, params: AddMemberParams) -> TeamMember:
        """Insert a membership. A second record for the same pair fails."""
        ...

    async def find_member(self, team_id: UUID, user_id: UUID) -> TeamMember | None:
        """Get the membership of a user in a team, whatever its status."""
        ...

    async def find_member_by_id(self, member_id: UUID) -> TeamMember | None:
        """Get membership by ID."""
        ...

    async def update_member(self, member_id: UUID, params: UpdateMemberParams) -> TeamMember:
        """Change role or status. Becoming active stamps ``joined_at``."""
        ...

    async def remove_member(self, member_id: UUID) -> None:
        """Hard-delete a membership."""
        ...

    async def list_members(self, team_id: UUID, query: ListMembersQuery) -> Page[TeamMember]:
        """List members of a team."""
        ...

    # Invitation operations
    async def create_invitation(self, params: CreateInvitationParams) -> TeamInvitation:
        """Store an invitation."""
        ...

    async def find_invitation_by_token(self, token: str) -> TeamInvitation | None:
        """Get invitation by token."""
        ...

    async def find_invitation_by_id(self, invitation_id: UUID) -> TeamInvitation | None:
        """Get invitation by ID."""
        ...

    async def update_invitation_status(
        self, invitation_id: UUID, status: InvitationStatus
    ) -> TeamInvitation:
        """Move an invitation to a new status."""
        ...

    async def list_invitations(
        self, team_id: UUID, query: ListInvitationsQuery
    ) -> Page[TeamInvitation]:
        """List invitations of a team."""
        ...

    # Membership lookups
    async def is_user_member(self, team_id: UUID, user_id: UUID) -> bool:
        """Check for an active membership."""
        ...

    async def get_user_role_in_team(self, team_id: UUID, user_id: UUID) -> UUID | None:
        """Get the role ID of the user's active membership."""
        ...
