"""RBAC domain types, catalogue and ports."""

from okrhub.core.rbac.permissions import (
    DEFAULT_ROLE_PERMISSIONS,
    DefaultRole,
    TeamPermission,
    ensure_default_roles,
)
from okrhub.core.rbac.repository import RoleRepository
from okrhub.core.rbac.types import (
    CreatePermissionParams,
    CreateRoleParams,
    ListPermissionsQuery,
    ListRolesQuery,
    Permission,
    Role,
    RoleWithPermissions,
    UpdatePermissionParams,
    UpdateRoleParams,
)

__all__ = [
    "Role",
    "Permission",
    "RoleWithPermissions",
    "CreateRoleParams",
    "UpdateRoleParams",
    "CreatePermissionParams",
    "UpdatePermissionParams",
    "ListRolesQuery",
    "ListPermissionsQuery",
    "RoleRepository",
    "TeamPermission",
    "DefaultRole",
    "DEFAULT_ROLE_PERMISSIONS",
    "ensure_default_roles",
]
