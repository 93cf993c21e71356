"""Tests for the in-memory team repository."""

from collections.abc import Awaitable, Callable
from datetime import timedelta
from uuid import UUID

import pytest
from okrhub.core.auth.tokens import generate_token, get_expiry
from okrhub.core.context import Context
from okrhub.core.exceptions import TeamRepositoryError
from okrhub.core.okr.types import Objective, ObjectiveStatus, ObjectiveType, UpdateObjectiveParams
from okrhub.core.rbac.permissions import DefaultRole
from okrhub.core.teams.types import (
    AddMemberParams,
    CreateInvitationParams,
    CreateTeamParams,
    ListTeamsQuery,
    MemberStatus,
    UpdateMemberParams,
)
from okrhub.core.users.types import User

MakeUser = Callable[..., Awaitable[User]]
MakeObjective = Callable[..., Awaitable[Objective]]


async def member_role_id(context: Context) -> UUID:
    """ID of the seeded member role."""
    role = await context.role_repository.find_role_by_name(DefaultRole.MEMBER.value)
    assert role is not None
    return role.id


class TestMembership:
    """Tests for adding and removing members."""

    async def test_add_then_remove_leaves_no_membership(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """After add and remove, find_member returns None."""
        owner = await make_user("owner@example.com")
        user = await make_user("member@example.com")
        repo = context.team_repository
        team = await repo.create(owner.id, CreateTeamParams(name="Platform"))

        member = await repo.add_member(
            AddMemberParams(team_id=team.id, user_id=user.id, role_id=await member_role_id(context))
        )
        await repo.remove_member(member.id)

        assert await repo.find_member(team.id, user.id) is None
        assert await repo.is_user_member(team.id, user.id) is False

    async def test_duplicate_membership_rejected(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """A user has at most one membership per team."""
        owner = await make_user("owner@example.com")
        repo = context.team_repository
        team = await repo.create(owner.id, CreateTeamParams(name="Platform"))
        params = AddMemberParams(
            team_id=team.id, user_id=owner.id, role_id=await member_role_id(context)
        )
        await repo.add_member(params)

        with pytest.raises(TeamRepositoryError):
            await repo.add_member(params)

    async def test_inactive_member_is_not_a_member(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """Only active memberships count for membership checks."""
        owner = await make_user("owner@example.com")
        user = await make_user("member@example.com")
        repo = context.team_repository
        team = await repo.create(owner.id, CreateTeamParams(name="Platform"))
        role_id = await member_role_id(context)
        member = await repo.add_member(
            AddMemberParams(team_id=team.id, user_id=user.id, role_id=role_id)
        )

        await repo.update_member(member.id, UpdateMemberParams(status=MemberStatus.INACTIVE))

        assert await repo.is_user_member(team.id, user.id) is False
        assert await repo.get_user_role_in_team(team.id, user.id) is None

    async def test_invited_member_gets_joined_at_on_activation(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """joined_at is set when an invited membership becomes active."""
        owner = await make_user("owner@example.com")
        user = await make_user("member@example.com")
        repo = context.team_repository
        team = await repo.create(owner.id, CreateTeamParams(name="Platform"))
        member = await repo.add_member(
            AddMemberParams(
                team_id=team.id,
                user_id=user.id,
                role_id=await member_role_id(context),
                invited_by_id=owner.id,
                status=MemberStatus.INVITED,
            )
        )
        assert member.joined_at is None
        assert member.invited_at is not None

        active = await repo.update_member(member.id, UpdateMemberParams(status=MemberStatus.ACTIVE))

        assert active.joined_at is not None


class TestDeleteTeam:
    """Tests for team deletion."""

    async def test_cascades_members_and_invitations(
        self, context: Context, make_user: MakeUser, make_objective: MakeObjective
    ) -> None:
        """Members and invitations go with the team; objectives lose the team."""
        owner = await make_user("owner@example.com")
        repo = context.team_repository
        team = await repo.create(owner.id, CreateTeamParams(name="Platform"))
        role_id = await member_role_id(context)
        await repo.add_member(AddMemberParams(team_id=team.id, user_id=owner.id, role_id=role_id))
        invitation = await repo.create_invitation(
            CreateInvitationParams(
                team_id=team.id,
                email="new@example.com",
                role_id=role_id,
                invited_by_id=owner.id,
                token=generate_token(),
                expires_at=get_expiry(timedelta(days=7)),
            )
        )
        objective = await make_objective(
            owner.id, objective_type=ObjectiveType.TEAM, team_id=team.id
        )

        await repo.delete(team.id)

        assert await repo.find_by_id(team.id) is None
        assert await repo.find_member(team.id, owner.id) is None
        assert await repo.find_invitation_by_id(invitation.id) is None
        reloaded = await context.okr_repository.find_objective_by_id(objective.id)
        assert reloaded is not None
        assert reloaded.team_id is None


class TestListTeams:
    """Tests for listing teams."""

    async def test_member_filter_and_stats(
        self, context: Context, make_user: MakeUser, make_objective: MakeObjective
    ) -> None:
        """member_id keeps teams with an active membership; stats are counted."""
        owner = await make_user("owner@example.com")
        repo = context.team_repository
        mine = await repo.create(owner.id, CreateTeamParams(name="Mine"))
        await repo.create(owner.id, CreateTeamParams(name="Not joined"))
        await repo.add_member(
            AddMemberParams(team_id=mine.id, user_id=owner.id, role_id=await member_role_id(context))
        )
        objective = await make_objective(
            owner.id, objective_type=ObjectiveType.TEAM, team_id=mine.id
        )
        await context.okr_repository.update_objective(
            objective.id, UpdateObjectiveParams(status=ObjectiveStatus.ACTIVE)
        )

        page = await repo.list(ListTeamsQuery(member_id=owner.id))

        assert page.count == 1
        assert page.items[0].name == "Mine"
        assert page.items[0].member_count == 1
        assert page.items[0].active_okr_count == 1
