"""Centralized team authorization.

Every team mutation goes through ``TeamAuthorizer``. The checks live here
rather than in routes, so a caller that forgets to pre-check cannot escalate
privileges.
"""

from __future__ import annotations

from uuid import UUID

import structlog

from okrhub.core.exceptions import AuthorizationError, NotFoundError
from okrhub.core.rbac.permissions import TeamPermission
from okrhub.core.rbac.repository import RoleRepository
from okrhub.core.teams.repository import TeamRepository
from okrhub.core.teams.types import MemberStatus, Team, TeamMember

logger = structlog.get_logger()


class TeamAuthorizer:
    """Answers "may user U do action A on team T"."""

    def __init__(self, teams: TeamRepository, roles: RoleRepository) -> None:
        """Initialize with the stores needed to resolve memberships and roles.

        Args:
            teams: Team repository.
            roles: Role repository.
        """
        self._teams = teams
        self._roles = roles

    async def get_team(self, team_id: UUID) -> Team:
        """Load a team or raise NotFoundError."""
        team = await self._teams.find_by_id(team_id)
        if team is None:
            raise NotFoundError("Team not found")
        return team

    async def require_creator(self, team_id: UUID, user_id: UUID) -> Team:
        """Require the user to be the team's creator.

        Raises:
            NotFoundError: If the team does not exist.
            AuthorizationError: If the user did not create the team.
        """
        team = await self.get_team(team_id)
        if team.created_by_id != user_id:
            logger.warning("team_creator_required", team_id=str(team_id), user_id=str(user_id))
            raise AuthorizationError("Only the team creator can perform this action")
        return team

    async def require_member(self, team_id: UUID, user_id: UUID) -> Team:
        """Require the creator or an active member.

        Raises:
            NotFoundError: If the team does not exist.
            AuthorizationError: If the user has no active membership.
        """
        team = await self.get_team(team_id)
        if team.created_by_id == user_id:
            return team
        if not await self._teams.is_user_member(team_id, user_id):
            raise AuthorizationError("Access denied - not a team member")
        return team

    async def require_permission(
        self,
        team_id: UUID,
        user_id: UUID,
        permission: TeamPermission,
    ) -> TeamMember | None:
        """Require the user's role in the team to grant a permission.

        The creator always passes. Anyone else needs an active membership
        whose role holds ``permission``.

        Returns:
            The acting membership, or None when the creator acts without one.

        Raises:
            NotFoundError: If the team does not exist.
            AuthorizationError: If the permission is not granted.
        """
        team = await self.get_team(team_id)
        member = await self._teams.find_member(team_id, user_id)
        if team.created_by_id == user_id:
            return member

        if member is None or member.status != MemberStatus.ACTIVE:
            logger.warning(
                "team_access_denied",
                team_id=str(team_id),
                user_id=str(user_id),
                permission=permission.value,
            )
            raise AuthorizationError("Access denied - not a team member")

        if not await self._roles.has_permission(member.role_id, permission.value):
            logger.warning(
                "team_permission_denied",
                team_id=str(team_id),
                user_id=str(user_id),
                permission=permission.value,
            )
            raise AuthorizationError(f"Missing permission: {permission.value}")
        return member

    async def ensure_can_grant(self, team_id: UUID, user_id: UUID, role_id: UUID) -> None:
        """Require that the user holds every permission of the role being granted.

        Stops a member with invite rights from handing out admin.

        Raises:
            NotFoundError: If the team or role does not exist.
            AuthorizationError: If the role exceeds the user's own permissions.
        """
        team = await self.get_team(team_id)
        target = await self._roles.find_role_with_permissions(role_id)
        if target is None:
            raise NotFoundError("Role not found")
        if team.created_by_id == user_id:
            return

        own_role_id = await self._teams.get_user_role_in_team(team_id, user_id)
        if own_role_id is None:
            raise AuthorizationError("Access denied - not a team member")
        own = {p.name for p in await self._roles.get_role_permissions(own_role_id)}
        if not target.permission_names <= own:
            logger.warning(
                "role_grant_denied",
                team_id=str(team_id),
                user_id=str(user_id),
                role=target.name,
            )
            raise AuthorizationError(f"Cannot grant role '{target.name}'")
