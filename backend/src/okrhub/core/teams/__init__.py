"""Team domain types, ports and authorization."""

from okrhub.core.teams.authorization import TeamAuthorizer
from okrhub.core.teams.repository import TeamRepository
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

__all__ = [
    "Team",
    "TeamWithStats",
    "TeamMember",
    "TeamInvitation",
    "MemberStatus",
    "InvitationStatus",
    "CreateTeamParams",
    "UpdateTeamParams",
    "AddMemberParams",
    "UpdateMemberParams",
    "CreateInvitationParams",
    "ListTeamsQuery",
    "ListMembersQuery",
    "ListInvitationsQuery",
    "AddTeamMemberInput",
    "InviteToTeamInput",
    "TeamRepository",
    "TeamAuthorizer",
]
