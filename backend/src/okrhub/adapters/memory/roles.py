"""In-memory role and permission repository."""

from __future__ import annotations

from dataclasses import replace
from uuid import UUID

from okrhub.adapters.memory.store import MemoryStore, matches_search, paginate
from okrhub.core.exceptions import NotFoundError, RoleRepositoryError
from okrhub.core.ids import new_id, utc_now
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
from okrhub.core.teams.types import MemberStatus


class InMemoryRoleRepository:
    """Role repository backed by a ``MemoryStore``.

    Enforces the same unique names as the ``roles`` and ``permissions``
    tables; a rejected insert leaves the store unchanged.
    """

    def __init__(self, store: MemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    def _role_name_taken(self, name: str, exclude: UUID | None = None) -> bool:
        return any(r.name == name and r.id != exclude for r in self._store.roles.values())

    def _permission_name_taken(self, name: str, exclude: UUID | None = None) -> bool:
        return any(p.name == name and p.id != exclude for p in self._store.permissions.values())

    def _with_permissions(self, role: Role) -> RoleWithPermissions:
        return RoleWithPermissions(**vars(role), permissions=self._permissions_of(role.id))

    def _permissions_of(self, role_id: UUID) -> list[Permission]:
        permissions = [
            self._store.permissions[permission_id]
            for linked_role_id, permission_id in self._store.role_permissions
            if linked_role_id == role_id
        ]
        return sorted(permissions, key=lambda p: p.name)

    # Role operations
    async def create_role(self, params: CreateRoleParams) -> Role:
        """Create a role."""
        if self._role_name_taken(params.name):
            raise RoleRepositoryError(f"Role '{params.name}' already exists")
        now = utc_now()
        role = Role(
            id=new_id(),
            name=params.name,
            description=params.description,
            created_at=now,
            updated_at=now,
        )
        self._store.roles[role.id] = role
        return role

    async def find_role_by_id(self, role_id: UUID) -> Role | None:
        """Get role by ID."""
        return self._store.roles.get(role_id)

    async def find_role_by_name(self, name: str) -> Role | None:
        """Get role by its unique name."""
        return next((r for r in self._store.roles.values() if r.name == name), None)

    async def find_role_with_permissions(self, role_id: UUID) -> RoleWithPermissions | None:
        """Get role by ID with its permissions."""
        role = self._store.roles.get(role_id)
        return self._with_permissions(role) if role else None

    async def update_role(self, role_id: UUID, params: UpdateRoleParams) -> Role:
        """Apply a partial update to a role."""
        role = self._store.roles.get(role_id)
        if role is None:
            raise NotFoundError("Role not found")
        changes = params.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        elif self._role_name_taken(changes["name"], exclude=role_id):
            raise RoleRepositoryError(f"Role '{changes['name']}' already exists")
        updated = replace(role, **changes, updated_at=utc_now())
        self._store.roles[role_id] = updated
        return updated

    async def delete_role(self, role_id: UUID) -> None:
        """Delete a role and its permission links."""
        if role_id not in self._store.roles:
            raise NotFoundError("Role not found")
        if any(m.role_id == role_id for m in self._store.members.values()):
            raise RoleRepositoryError("Role is still assigned to team members")
        del self._store.roles[role_id]
        self._store.role_permissions = {
            link for link in self._store.role_permissions if link[0] != role_id
        }

    async def list_roles(self, query: ListRolesQuery) -> Page[Role]:
        """List roles."""
        roles = [
            r for r in self._store.roles.values() if matches_search(query.search, r.name, r.description)
        ]
        return paginate(roles, query.pagination)

    async def list_roles_with_permissions(
        self, query: ListRolesQuery
    ) -> Page[RoleWithPermissions]:
        """List roles including their permissions."""
        page = await self.list_roles(query)
        return Page(items=[self._with_permissions(r) for r in page.items], count=page.count)

    # Permission operations
    async def create_permission(self, params: CreatePermissionParams) -> Permission:
        """Create a permission."""
        if self._permission_name_taken(params.name):
            raise RoleRepositoryError(f"Permission '{params.name}' already exists")
        now = utc_now()
        permission = Permission(
            id=new_id(),
            name=params.name,
            description=params.description,
            created_at=now,
            updated_at=now,
        )
        self._store.permissions[permission.id] = permission
        return permission

    async def find_permission_by_id(self, permission_id: UUID) -> Permission | None:
        """Get permission by ID."""
        return self._store.permissions.get(permission_id)

    async def find_permission_by_name(self, name: str) -> Permission | None:
        """Get permission by its unique name."""
        return next((p for p in self._store.permissions.values() if p.name == name), None)

    async def update_permission(
        self, permission_id: UUID, params: UpdatePermissionParams
    ) -> Permission:
        """Apply a partial update to a permission."""
        permission = self._store.permissions.get(permission_id)
        if permission is None:
            raise NotFoundError("Permission not found")
        changes = params.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        elif self._permission_name_taken(changes["name"], exclude=permission_id):
            raise RoleRepositoryError(f"Permission '{changes['name']}' already exists")
        updated = replace(permission, **changes, updated_at=utc_now())
        self._store.permissions[permission_id] = updated
        return updated

    async def delete_permission(self, permission_id: UUID) -> None:
        """Delete a permission and its role links."""
        if self._store.permissions.pop(permission_id, None) is None:
            raise NotFoundError("Permission not found")
        self._store.role_permissions = {
            link for link in self._store.role_permissions if link[1] != permission_id
        }

    async def list_permissions(self, query: ListPermissionsQuery) -> Page[Permission]:
        """List permissions."""
        permissions = [
            p
            for p in self._store.permissions.values()
            if matches_search(query.search, p.name, p.description)
        ]
        return paginate(permissions, query.pagination)

    # Role/permission association
    async def assign_permissions_to_role(
        self, role_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Grant permissions to a role."""
        if role_id not in self._store.roles:
            raise NotFoundError("Role not found")
        missing = [p for p in permission_ids if p not in self._store.permissions]
        if missing:
            raise RoleRepositoryError(f"Unknown permission IDs: {', '.join(map(str, missing))}")
        self._store.role_permissions.update((role_id, p) for p in permission_ids)

    async def remove_permissions_from_role(
        self, role_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Revoke permissions from a role."""
        revoked = {(role_id, p) for p in permission_ids}
        self._store.role_permissions -= revoked

    async def get_role_permissions(self, role_id: UUID) -> list[Permission]:
        """Get the permissions granted to a role."""
        return self._permissions_of(role_id)

    async def has_permission(self, role_id: UUID, permission_name: str) -> bool:
        """Check whether a role grants a permission."""
        return any(p.name == permission_name for p in self._permissions_of(role_id))

    async def get_user_permissions(
        self, user_id: UUID, team_id: UUID | None = None
    ) -> list[Permission]:
        """Get the distinct permissions a user holds through active memberships."""
        role_ids = {
            m.role_id
            for m in self._store.members.values()
            if m.user_id == user_id
            and m.status == MemberStatus.ACTIVE
            and (team_id is None or m.team_id == team_id)
        }
        distinct = {p.id: p for role_id in role_ids for p in self._permissions_of(role_id)}
        return sorted(distinct.values(), key=lambda p: p.name)
