"""Team domain types."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from okrhub.core.pagination import Pagination, SortOrder
from okrhub.core.rbac.permissions import DefaultRole

TEAM_NAME_MAX_LENGTH = 100
TEAM_DESCRIPTION_MAX_LENGTH = 500


class MemberStatus(str, Enum):
    """Lifecycle of a team membership."""

    INVITED = "invited"
    ACTIVE = "active"
    INACTIVE = "inactive"


class InvitationStatus(str, Enum):
    """Lifecycle of a team invitation.

    Only ``pending`` invitations can be acted upon; every other state is final.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass
class Team:
    """A team of users working on shared objectives."""

    id: UUID
    name: str
    description: str | None
    created_by_id: UUID
    created_at: datetime
    updated_at: datetime


@dataclass
class TeamWithStats(Team):
    """Team with membership and OKR counters."""

    member_count: int
    active_okr_count: int


@dataclass
class TeamMember:
    """A user's membership in a team."""

    id: UUID
    team_id: UUID
    user_id: UUID
    role_id: UUID
    invited_by_id: UUID | None
    invited_at: datetime | None
    joined_at: datetime | None
    status: MemberStatus
    created_at: datetime
    updated_at: datetime


@dataclass
class TeamInvitation:
    """An emailed, token-based invitation to join a team."""

    id: UUID
    team_id: UUID
    email: str
    role_id: UUID
    invited_by_id: UUID
    token: str
    expires_at: datetime
    status: InvitationStatus
    created_at: datetime
    updated_at: datetime


class CreateTeamParams(BaseModel):
    """Fields for creating a team."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=TEAM_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEAM_DESCRIPTION_MAX_LENGTH)


class UpdateTeamParams(BaseModel):
    """Partial team update."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, min_length=1, max_length=TEAM_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=TEAM_DESCRIPTION_MAX_LENGTH)


class AddMemberParams(BaseModel):
    """Fields for inserting a membership record."""

    model_config = ConfigDict(frozen=True)

    team_id: UUID
    user_id: UUID
    role_id: UUID
    invited_by_id: UUID | None = None
    status: MemberStatus = MemberStatus.ACTIVE


class UpdateMemberParams(BaseModel):
    """Partial membership update."""

    model_config = ConfigDict(frozen=True)

    role_id: UUID | None = None
    status: MemberStatus | None = None


class CreateInvitationParams(BaseModel):
    """Fields for inserting an invitation."""

    model_config = ConfigDict(frozen=True)

    team_id: UUID
    email: EmailStr
    role_id: UUID
    invited_by_id: UUID
    token: str
    expires_at: datetime


class ListTeamsQuery(BaseModel):
    """Filters for listing teams."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination()
    search: str | None = None
    owner_id: UUID | None = None
    member_id: UUID | None = None


class ListMembersQuery(BaseModel):
    """Filters for listing the members of one team."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination(order=SortOrder.ASC)
    status: MemberStatus | None = None
    role_id: UUID | None = None


class ListInvitationsQuery(BaseModel):
    """Filters for listing the invitations of one team."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination()
    status: InvitationStatus | None = None


class AddTeamMemberInput(BaseModel):
    """Direct-add request: the user joins immediately."""

    model_config = ConfigDict(frozen=True)

    team_id: UUID
    user_id: UUID
    role: DefaultRole = DefaultRole.MEMBER


class InviteToTeamInput(BaseModel):
    """Invitation request addressed to an email."""

    model_config = ConfigDict(frozen=True)

    team_id: UUID
    email: EmailStr
    role: DefaultRole = DefaultRole.MEMBER
