"""RBAC domain types."""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from okrhub.core.pagination import Pagination

ROLE_NAME_MAX_LENGTH = 50
PERMISSION_NAME_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 200


@dataclass
class Permission:
    """A named capability, e.g. ``okr:edit``."""

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class Role:
    """A named bundle of permissions assigned to team members."""

    id: UUID
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


@dataclass
class RoleWithPermissions(Role):
    """Role together with its permission set."""

    permissions: list[Permission] = field(default_factory=list)

    @property
    def permission_names(self) -> set[str]:
        """Names of the granted permissions."""
        return {p.name for p in self.permissions}


class CreateRoleParams(BaseModel):
    """Fields for creating a role."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=ROLE_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)


class UpdateRoleParams(BaseModel):
    """Partial role update."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, min_length=1, max_length=ROLE_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)


class CreatePermissionParams(BaseModel):
    """Fields for creating a permission."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1, max_length=PERMISSION_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)


class UpdatePermissionParams(BaseModel):
    """Partial permission update."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, min_length=1, max_length=PERMISSION_NAME_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)


class ListRolesQuery(BaseModel):
    """Filters for listing roles."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination(order_by="name", order="asc")
    search: str | None = None


class ListPermissionsQuery(BaseModel):
    """Filters for listing permissions."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination(order_by="name", order="asc")
    search: str | None = None
