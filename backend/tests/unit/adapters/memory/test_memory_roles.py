"""Tests for the in-memory role repository."""

import pytest
from okrhub.adapters.memory import InMemoryRoleRepository, MemoryStore
from okrhub.core.exceptions import RoleRepositoryError
from okrhub.core.rbac.permissions import DEFAULT_ROLE_PERMISSIONS, DefaultRole, ensure_default_roles
from okrhub.core.rbac.types import CreatePermissionParams, CreateRoleParams, ListRolesQuery


@pytest.fixture
def repository() -> InMemoryRoleRepository:
    """Create repository over an empty store."""
    return InMemoryRoleRepository(MemoryStore())


class TestCreateRole:
    """Tests for create_role."""

    async def test_duplicate_name_fails(self, repository: InMemoryRoleRepository) -> None:
        """The second role with the same name fails; the first is untouched."""
        first = await repository.create_role(
            CreateRoleParams(name="reviewer", description="Reviews OKRs")
        )

        with pytest.raises(RoleRepositoryError):
            await repository.create_role(CreateRoleParams(name="reviewer"))

        found = await repository.find_role_by_name("reviewer")
        assert found == first
        page = await repository.list_roles(ListRolesQuery())
        assert page.count == 1


class TestPermissions:
    """Tests for role/permission links."""

    async def test_assign_and_check(self, repository: InMemoryRoleRepository) -> None:
        """Assigned permissions are reported in name order."""
        role = await repository.create_role(CreateRoleParams(name="reviewer"))
        write = await repository.create_permission(CreatePermissionParams(name="okr:edit"))
        read = await repository.create_permission(CreatePermissionParams(name="okr:view"))

        await repository.assign_permissions_to_role(role.id, [read.id, write.id])

        assert await repository.has_permission(role.id, "okr:view") is True
        names = [p.name for p in await repository.get_role_permissions(role.id)]
        assert names == ["okr:edit", "okr:view"]

        await repository.remove_permissions_from_role(role.id, [write.id])

        assert await repository.has_permission(role.id, "okr:edit") is False


class TestEnsureDefaultRoles:
    """Tests for seeding the default roles."""

    async def test_seeds_once(self, repository: InMemoryRoleRepository) -> None:
        """Running the seed twice creates each role once with its permissions."""
        await ensure_default_roles(repository)
        await ensure_default_roles(repository)

        page = await repository.list_roles(ListRolesQuery())
        assert page.count == len(DefaultRole)
        for role_name, granted in DEFAULT_ROLE_PERMISSIONS.items():
            role = await repository.find_role_by_name(role_name.value)
            assert role is not None
            with_permissions = await repository.find_role_with_permissions(role.id)
            assert with_permissions is not None
            assert with_permissions.permission_names == {p.value for p in granted}
