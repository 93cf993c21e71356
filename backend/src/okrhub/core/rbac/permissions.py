"""Built-in permissions and the default role catalogue."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

import structlog

from okrhub.core.rbac.types import CreatePermissionParams, CreateRoleParams

if TYPE_CHECKING:
    from okrhub.core.rbac.repository import RoleRepository

logger = structlog.get_logger()


class TeamPermission(str, Enum):
    """Capability strings checked by the authorization layer."""

    TEAM_CREATE = "team:create"
    TEAM_VIEW = "team:view"
    TEAM_EDIT = "team:edit"
    TEAM_DELETE = "team:delete"
    MEMBER_INVITE = "team:member:invite"
    MEMBER_VIEW = "team:member:view"
    MEMBER_EDIT = "team:member:edit"
    MEMBER_REMOVE = "team:member:remove"
    OKR_CREATE = "okr:create"
    OKR_VIEW = "okr:view"
    OKR_EDIT = "okr:edit"
    OKR_DELETE = "okr:delete"
    KEY_RESULT_CREATE = "key_result:create"
    KEY_RESULT_VIEW = "key_result:view"
    KEY_RESULT_EDIT = "key_result:edit"
    KEY_RESULT_DELETE = "key_result:delete"
    KEY_RESULT_UPDATE_PROGRESS = "key_result:update_progress"
    USER_VIEW = "user:view"
    USER_EDIT = "user:edit"
    MANAGE_ORGANIZATION_OBJECTIVES = "manage_organization_objectives"


class DefaultRole(str, Enum):
    """Roles seeded at startup."""

    ADMIN = "admin"
    MEMBER = "member"
    VIEWER = "viewer"


DEFAULT_ROLE_PERMISSIONS: dict[DefaultRole, frozenset[TeamPermission]] = {
    DefaultRole.ADMIN: frozenset(TeamPermission),
    DefaultRole.MEMBER: frozenset(
        {
            TeamPermission.TEAM_VIEW,
            TeamPermission.MEMBER_VIEW,
            TeamPermission.OKR_CREATE,
            TeamPermission.OKR_VIEW,
            TeamPermission.OKR_EDIT,
            TeamPermission.KEY_RESULT_CREATE,
            TeamPermission.KEY_RESULT_VIEW,
            TeamPermission.KEY_RESULT_EDIT,
            TeamPermission.KEY_RESULT_UPDATE_PROGRESS,
            TeamPermission.USER_VIEW,
        }
    ),
    DefaultRole.VIEWER: frozenset(
        {
            TeamPermission.TEAM_VIEW,
            TeamPermission.MEMBER_VIEW,
            TeamPermission.OKR_VIEW,
            TeamPermission.KEY_RESULT_VIEW,
            TeamPermission.USER_VIEW,
        }
    ),
}

DEFAULT_ROLE_DESCRIPTIONS: dict[DefaultRole, str] = {
    DefaultRole.ADMIN: "Full control over the team and its OKRs",
    DefaultRole.MEMBER: "Can create and update OKRs",
    DefaultRole.VIEWER: "Read-only access",
}


async def ensure_default_roles(role_repository: RoleRepository) -> None:
    """Create the built-in permissions and roles if they are missing.

    Safe to run on every startup; existing records are left alone and only
    missing role/permission links are added.

    Args:
        role_repository: Role store to seed.
    """
    permission_ids = {}
    for permission in TeamPermission:
        existing = await role_repository.find_permission_by_name(permission.value)
        if existing is None:
            existing = await role_repository.create_permission(
                CreatePermissionParams(name=permission.value)
            )
            logger.info("permission_seeded", permission=permission.value)
        permission_ids[permission] = existing.id

    for role_name, granted in DEFAULT_ROLE_PERMISSIONS.items():
        existing_role = await role_repository.find_role_by_name(role_name.value)
        role = (
            await role_repository.find_role_with_permissions(existing_role.id)
            if existing_role is not None
            else None
        )
        if role is None:
            created = await role_repository.create_role(
                CreateRoleParams(
                    name=role_name.value,
                    description=DEFAULT_ROLE_DESCRIPTIONS[role_name],
                )
            )
            missing = sorted(granted, key=lambda p: p.value)
            role_id = created.id
            logger.info("role_seeded", role=role_name.value)
        else:
            missing = sorted(
                (p for p in granted if p.value not in role.permission_names),
                key=lambda p: p.value,
            )
            role_id = role.id

        if missing:
            await role_repository.assign_permissions_to_role(
                role_id, [permission_ids[p] for p in missing]
            )
