"""Tests for TeamAuthorizer."""

from collections.abc import Awaitable, Callable

import pytest
from okrhub.core.context import Context
from okrhub.core.exceptions import AuthorizationError, NotFoundError
from okrhub.core.ids import new_id
from okrhub.core.rbac.permissions import DefaultRole, TeamPermission
from okrhub.core.rbac.types import CreateRoleParams
from okrhub.core.teams.types import AddMemberParams, CreateTeamParams, MemberStatus
from okrhub.core.users.types import User

MakeUser = Callable[..., Awaitable[User]]


class TestRequirePermission:
    """Tests for require_permission."""

    async def test_creator_always_passes(self, context: Context, make_user: MakeUser) -> None:
        """The creator needs no membership to act."""
        creator = await make_user("creator@example.com")
        team = await context.team_repository.create(creator.id, CreateTeamParams(name="Core"))

        member = await context.team_authorizer.require_permission(
            team.id, creator.id, TeamPermission.TEAM_DELETE
        )

        assert member is None

    async def test_invited_member_is_denied(self, context: Context, make_user: MakeUser) -> None:
        """A membership that is not active grants nothing."""
        creator = await make_user("creator@example.com")
        user = await make_user("user@example.com")
        team = await context.team_repository.create(creator.id, CreateTeamParams(name="Core"))
        admin = await context.role_repository.find_role_by_name(DefaultRole.ADMIN.value)
        assert admin is not None
        await context.team_repository.add_member(
            AddMemberParams(
                team_id=team.id, user_id=user.id, role_id=admin.id, status=MemberStatus.INVITED
            )
        )

        with pytest.raises(AuthorizationError):
            await context.team_authorizer.require_permission(
                team.id, user.id, TeamPermission.TEAM_VIEW
            )

    async def test_missing_team(self, context: Context, make_user: MakeUser) -> None:
        """An unknown team is NotFound."""
        user = await make_user("user@example.com")

        with pytest.raises(NotFoundError):
            await context.team_authorizer.require_permission(
                new_id(), user.id, TeamPermission.TEAM_VIEW
            )


class TestEnsureCanGrant:
    """Tests for ensure_can_grant."""

    async def test_cannot_grant_role_with_extra_permissions(
        self, context: Context, make_user: MakeUser
    ) -> None:
        """A custom inviter role cannot hand out member, which holds more."""
        creator = await make_user("creator@example.com")
        inviter = await make_user("inviter@example.com")
        roles = context.role_repository
        team = await context.team_repository.create(creator.id, CreateTeamParams(name="Core"))
        inviter_role = await roles.create_role(CreateRoleParams(name="inviter"))
        granted = []
        for permission in (TeamPermission.MEMBER_INVITE, TeamPermission.TEAM_VIEW):
            found = await roles.find_permission_by_name(permission.value)
            assert found is not None
            granted.append(found.id)
        await roles.assign_permissions_to_role(inviter_role.id, granted)
        await context.team_repository.add_member(
            AddMemberParams(team_id=team.id, user_id=inviter.id, role_id=inviter_role.id)
        )
        member_role = await roles.find_role_by_name(DefaultRole.MEMBER.value)
        assert member_role is not None

        with pytest.raises(AuthorizationError):
            await context.team_authorizer.ensure_can_grant(team.id, inviter.id, member_role.id)
        await context.team_authorizer.ensure_can_grant(team.id, inviter.id, inviter_role.id)
