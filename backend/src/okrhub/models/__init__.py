"""SQLAlchemy models for the application database."""

from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from okrhub.models.base import BaseModel
from okrhub.models.okr import KeyResult, Objective
from okrhub.models.rbac import Permission, Role, RolePermission
from okrhub.models.team import Team, TeamInvitation, TeamMember
from okrhub.models.user import Session, User


def schema_statements() -> list[str]:
    """Render idempotent PostgreSQL DDL for every table, parents first."""
    dialect = postgresql.dialect()
    statements = []
    for table in BaseModel.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in sorted(table.indexes, key=lambda i: str(i.name)):
            statements.append(
                str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect))
            )
    return statements


__all__ = [
    "BaseModel",
    "User",
    "Session",
    "Role",
    "Permission",
    "RolePermission",
    "Team",
    "TeamMember",
    "TeamInvitation",
    "Objective",
    "KeyResult",
    "schema_statements",
]
