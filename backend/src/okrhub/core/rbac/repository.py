"""Role repository protocol."""

from __future__ import annotations

from typing import Protocol, runtime_checkable
from uuid import UUID

from okrhub.core.pagination import Page
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


@runtime_checkable
class RoleRepository(Protocol):
    """Protocol for role and permission storage.

    Role names and permission names are unique; creating a duplicate raises
    ``RoleRepositoryError`` and leaves the existing record untouched.
    Mutating a missing record raises ``NotFoundError``.
    """

    # Role operations
    async def create_role(self, params: CreateRoleParams) -> Role:
        """Create a role."""
        ...

    async def find_role_by_id(self, role_id: UUID) -> Role | None:
        """Get role by ID."""
        ...

    async def find_role_by_name(self, name: str) -> Role | None:
        """Get role by its unique name."""
        ...

    async def find_role_with_permissions(self, role_id: UUID) -> RoleWithPermissions | None:
        """Get role by ID with its permissions."""
        ...

    async def update_role(self, role_id: UUID, params: UpdateRoleParams) -> Role:
        """Apply a partial update to a role."""
        ...

    async def delete_role(self, role_id: UUID) -> None:
        """Delete a role and its permission links."""
        ...

    async def list_roles(self, query: ListRolesQuery) -> Page[Role]:
        """List roles."""
        ...

    async def list_roles_with_permissions(
        self, query: ListRolesQuery
    ) -> Page[RoleWithPermissions]:
        """List roles including their permissions."""
        ...

    # Permission operations
    async def create_permission(self, params: CreatePermissionParams) -> Permission:
        """Create a permission."""
        ...

    async def find_permission_by_id(self, permission_id: UUID) -> Permission | None:
        """Get permission by ID."""
        ...

    async def find_permission_by_name(self, name: str) -> Permission | None:
        """Get permission by its unique name."""
        ...

    async def update_permission(
        self, permission_id: UUID, params: UpdatePermissionParams
    ) -> Permission:
        """Apply a partial update to a permission."""
        ...

    async def delete_permission(self, permission_id: UUID) -> None:
        """Delete a permission and its role links."""
        ...

    async def list_permissions(self, query: ListPermissionsQuery) -> Page[Permission]:
        """List permissions."""
        ...

    # Role/permission association
    async def assign_permissions_to_role(
        self, role_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Grant permissions to a role. Already granted ones are ignored."""
        ...

    async def remove_permissions_from_role(
        self, role_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Revoke permissions from a role."""
        ...

    async def get_role_permissions(self, role_id: UUID) -> list[Permission]:
        """Get the permissions granted to a role."""
        ...

    async def has_permission(self, role_id: UUID, permission_name: str) -> bool:
        """Check whether a role grants a permission."""
        ...

    async def get_user_permissions(
        self, user_id: UUID, team_id: UUID | None = None
    ) -> list[Permission]:
        """Get the distinct permissions a user holds through active memberships.

        Args:
            user_id: The user.
            team_id: Restrict to the membership in this team.
        """
        ...
