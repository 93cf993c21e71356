"""PostgreSQL implementation of RoleRepository."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from okrhub.adapters.db.app_db import AppDatabase
from okrhub.adapters.postgres.base import (
    QueryParams,
    dt,
    ms,
    order_clause,
    page_clause,
    search_clause,
    set_clause,
    storage_errors,
    where_clause,
)
from okrhub.core.exceptions import NotFoundError, RoleRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.pagination import Page, Pagination
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

COLUMNS = "id, name, description, created_at, updated_at"
SORT_COLUMNS = {"name": "name", "created_at": "created_at", "updated_at": "updated_at"}


class PostgresRoleRepository:
    """PostgreSQL implementation of role and permission repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_role(self, row: dict[str, Any]) -> Role:
        """Convert database row to Role."""
        return Role(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    def _row_to_permission(self, row: dict[str, Any]) -> Permission:
        """Convert database row to Permission."""
        return Permission(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    async def _insert(self, table: str, name: str, description: str | None) -> dict[str, Any]:
        now = ms(utc_now())
        row = await self._db.execute_returning(
            f"""
            INSERT INTO {table} (id, name, description, created_at, updated_at)
            VALUES ($1, $2, $3, $4, $4)
            RETURNING {COLUMNS}
            """,
            new_id(),
            name,
            description,
            now,
        )
        assert row is not None, "INSERT RETURNING should always return a row"
        return row

    async def _update(
        self, table: str, record_id: UUID, changes: dict[str, Any]
    ) -> dict[str, Any] | None:
        if changes.get("name") is None:
            changes.pop("name", None)
        params = QueryParams()
        assignments = set_clause({**changes, "updated_at": ms(utc_now())}, params)
        return await self._db.execute_returning(
            f"""
            UPDATE {table} SET {assignments}
            WHERE id = {params.add(record_id)}
            RETURNING {COLUMNS}
            """,
            *params.values,
        )

    async def _list(
        self, table: str, search: str | None, pagination: Pagination
    ) -> tuple[list[dict[str, Any]], int]:
        params = QueryParams()
        conditions = []
        if search:
            conditions.append(search_clause(search, ["name", "description"], params))
        where = where_clause(conditions)
        order = order_clause(pagination, SORT_COLUMNS)
        count = await self._db.fetch_value(f"SELECT COUNT(*) FROM {table} {where}", *params.values)
        page = page_clause(pagination, params)
        rows = await self._db.fetch_all(
            f"SELECT {COLUMNS} FROM {table} {where} {order} {page}", *params.values
        )
        return rows, count or 0

    # Role operations
    async def create_role(self, params: CreateRoleParams) -> Role:
        """Create a role."""
        with storage_errors(RoleRepositoryError, f"create role '{params.name}'"):
            row = await self._insert("roles", params.name, params.description)
        return self._row_to_role(row)

    async def find_role_by_id(self, role_id: UUID) -> Role | None:
        """Get role by ID."""
        with storage_errors(RoleRepositoryError, "find role"):
            row = await self._db.fetch_one(f"SELECT {COLUMNS} FROM roles WHERE id = $1", role_id)
        return self._row_to_role(row) if row else None

    async def find_role_by_name(self, name: str) -> Role | None:
        """Get role by its unique name."""
        with storage_errors(RoleRepositoryError, "find role"):
            row = await self._db.fetch_one(f"SELECT {COLUMNS} FROM roles WHERE name = $1", name)
        return self._row_to_role(row) if row else None

    async def find_role_with_permissions(self, role_id: UUID) -> RoleWithPermissions | None:
        """Get role by ID with its permissions."""
        role = await self.find_role_by_id(role_id)
        if role is None:
            return None
        return RoleWithPermissions(**vars(role), permissions=await self.get_role_permissions(role_id))

    async def update_role(self, role_id: UUID, params: UpdateRoleParams) -> Role:
        """Apply a partial update to a role."""
        with storage_errors(RoleRepositoryError, "update role"):
            row = await self._update("roles", role_id, params.model_dump(exclude_unset=True))
        if not row:
            raise NotFoundError("Role not found")
        return self._row_to_role(row)

    async def delete_role(self, role_id: UUID) -> None:
        """Delete a role; its permission links cascade."""
        with storage_errors(RoleRepositoryError, "delete role"):
            status = await self._db.execute("DELETE FROM roles WHERE id = $1", role_id)
        if status == "DELETE 0":
            raise NotFoundError("Role not found")

    async def list_roles(self, query: ListRolesQuery) -> Page[Role]:
        """List roles."""
        with storage_errors(RoleRepositoryError, "list roles"):
            rows, count = await self._list("roles", query.search, query.pagination)
        return Page(items=[self._row_to_role(r) for r in rows], count=count)

    async def list_roles_with_permissions(
        self, query: ListRolesQuery
    ) -> Page[RoleWithPermissions]:
        """List roles including their permissions."""
        page = await self.list_roles(query)
        items = [
            RoleWithPermissions(**vars(role), permissions=await self.get_role_permissions(role.id))
            for role in page.items
        ]
        return Page(items=items, count=page.count)

    # Permission operations
    async def create_permission(self, params: CreatePermissionParams) -> Permission:
        """Create a permission."""
        with storage_errors(RoleRepositoryError, f"create permission '{params.name}'"):
            row = await self._insert("permissions", params.name, params.description)
        return self._row_to_permission(row)

    async def find_permission_by_id(self, permission_id: UUID) -> Permission | None:
        """Get permission by ID."""
        with storage_errors(RoleRepositoryError, "find permission"):
            row = await self._db.fetch_one(
                f"SELECT {COLUMNS} FROM permissions WHERE id = $1", permission_id
            )
        return self._row_to_permission(row) if row else None

    async def find_permission_by_name(self, name: str) -> Permission | None:
        """Get permission by its unique name."""
        with storage_errors(RoleRepositoryError, "find permission"):
            row = await self._db.fetch_one(
                f"SELECT {COLUMNS} FROM permissions WHERE name = $1", name
            )
        return self._row_to_permission(row) if row else None

    async def update_permission(
        self, permission_id: UUID, params: UpdatePermissionParams
    ) -> Permission:
        """Apply a partial update to a permission."""
        with storage_errors(RoleRepositoryError, "update permission"):
            row = await self._update(
                "permissions", permission_id, params.model_dump(exclude_unset=True)
            )
        if not row:
            raise NotFoundError("Permission not found")
        return self._row_to_permission(row)

    async def delete_permission(self, permission_id: UUID) -> None:
        """Delete a permission; its role links cascade."""
        with storage_errors(RoleRepositoryError, "delete permission"):
            status = await self._db.execute("DELETE FROM permissions WHERE id = $1", permission_id)
        if status == "DELETE 0":
            raise NotFoundError("Permission not found")

    async def list_permissions(self, query: ListPermissionsQuery) -> Page[Permission]:
        """List permissions."""
        with storage_errors(RoleRepositoryError, "list permissions"):
            rows, count = await self._list("permissions", query.search, query.pagination)
        return Page(items=[self._row_to_permission(r) for r in rows], count=count)

    # Role/permission association
    async def assign_permissions_to_role(
        self, role_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Grant permissions to a role in one transaction."""
        now = ms(utc_now())
        with storage_errors(RoleRepositoryError, "assign permissions"):
            async with self._db.transaction() as conn:
                for permission_id in permission_ids:
                    await conn.execute(
                        """
                        INSERT INTO role_permissions
                            (id, role_id, permission_id, created_at, updated_at)
                        VALUES ($1, $2, $3, $4, $4)
                        ON CONFLICT (role_id, permission_id) DO NOTHING
                        """,
                        new_id(),
                        role_id,
                        permission_id,
                        now,
                    )

    async def remove_permissions_from_role(
        self, role_id: UUID, permission_ids: list[UUID]
    ) -> None:
        """Revoke permissions from a role."""
        with storage_errors(RoleRepositoryError, "remove permissions"):
            await self._db.execute(
                "DELETE FROM role_permissions WHERE role_id = $1 AND permission_id = ANY($2::uuid[])",
                role_id,
                permission_ids,
            )

    async def get_role_permissions(self, role_id: UUID) -> list[Permission]:
        """Get the permissions granted to a role."""
        with storage_errors(RoleRepositoryError, "load role permissions"):
            rows = await self._db.fetch_all(
                """
                SELECT p.id, p.name, p.description, p.created_at, p.updated_at
                FROM permissions p
                JOIN role_permissions rp ON rp.permission_id = p.id
                WHERE rp.role_id = $1
                ORDER BY p.name
                """,
                role_id,
            )
        return [self._row_to_permission(r) for r in rows]

    async def has_permission(self, role_id: UUID, permission_name: str) -> bool:
        """Check whether a role grants a permission."""
        with storage_errors(RoleRepositoryError, "check permission"):
            row = await self._db.fetch_one(
                """
                SELECT 1 AS granted
                FROM role_permissions rp
                JOIN permissions p ON p.id = rp.permission_id
                WHERE rp.role_id = $1 AND p.name = $2
                """,
                role_id,
                permission_name,
            )
        return row is not None

    async def get_user_permissions(
        self, user_id: UUID, team_id: UUID | None = None
    ) -> list[Permission]:
        """Get the distinct permissions a user holds through active memberships."""
        params = QueryParams()
        conditions = [f"tm.user_id = {params.add(user_id)}", "tm.status = 'active'"]
        if team_id is not None:
            conditions.append(f"tm.team_id = {params.add(team_id)}")
        with storage_errors(RoleRepositoryError, "load user permissions"):
            rows = await self._db.fetch_all(
                f"""
                SELECT DISTINCT p.id, p.name, p.description, p.created_at, p.updated_at
                FROM team_members tm
                JOIN role_permissions rp ON rp.role_id = tm.role_id
                JOIN permissions p ON p.id = rp.permission_id
                {where_clause(conditions)}
                ORDER BY p.name
                """,
                *params.values,
            )
        return [self._row_to_permission(r) for r in rows]
