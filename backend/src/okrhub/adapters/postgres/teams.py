"""PostgreSQL implementation of TeamRepository."""

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
from okrhub.core.exceptions import NotFoundError, TeamRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.pagination import Page
from okrhub.core.teams.types import (
    AddMemberParams,
    CreateInvitationParams,
    CreateTeamParams,
    InvitationStatus,
    ListInvitationsQuery,
    ListMembersQuery,
    ListTeamsQuery,
    MemberStatus,
    Team,
    TeamInvitation,
    TeamMember,
    TeamWithStats,
    UpdateMemberParams,
    UpdateTeamParams,
)

TEAM_COLUMNS = "id, name, description, created_by_id, created_at, updated_at"
TEAM_STATS_COLUMNS = f"""{TEAM_COLUMNS},
    (SELECT COUNT(*) FROM team_members tm
     WHERE tm.team_id = teams.id AND tm.status = 'active') AS member_count,
    (SELECT COUNT(*) FROM objectives o
     WHERE o.team_id = teams.id AND o.status = 'active') AS active_okr_count"""
MEMBER_COLUMNS = (
    "id, team_id, user_id, role_id, invited_by_id, invited_at, joined_at, status,"
    " created_at, updated_at"
)
INVITATION_COLUMNS = (
    "id, team_id, email, role_id, invited_by_id, token, expires_at, status,"
    " created_at, updated_at"
)
TEAM_SORT_COLUMNS = {"name": "name", "created_at": "created_at", "updated_at": "updated_at"}
MEMBER_SORT_COLUMNS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "joined_at": "joined_at",
}
INVITATION_SORT_COLUMNS = {
    "email": "email",
    "expires_at": "expires_at",
    "created_at": "created_at",
    "updated_at": "updated_at",
}


class PostgresTeamRepository:
    """PostgreSQL implementation of team repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_team(self, row: dict[str, Any]) -> Team:
        """Convert database row to Team."""
        return Team(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            created_by_id=row["created_by_id"],
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    def _row_to_team_with_stats(self, row: dict[str, Any]) -> TeamWithStats:
        """Convert database row with counters to TeamWithStats."""
        return TeamWithStats(
            **vars(self._row_to_team(row)),
            member_count=row["member_count"],
            active_okr_count=row["active_okr_count"],
        )

    def _row_to_member(self, row: dict[str, Any]) -> TeamMember:
        """Convert database row to TeamMember."""
        return TeamMember(
            id=row["id"],
            team_id=row["team_id"],
            user_id=row["user_id"],
            role_id=row["role_id"],
            invited_by_id=row["invited_by_id"],
            invited_at=dt(row["invited_at"]),
            joined_at=dt(row["joined_at"]),
            status=MemberStatus(row["status"]),
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    def _row_to_invitation(self, row: dict[str, Any]) -> TeamInvitation:
        """Convert database row to TeamInvitation."""
        return TeamInvitation(
            id=row["id"],
            team_id=row["team_id"],
            email=row["email"],
            role_id=row["role_id"],
            invited_by_id=row["invited_by_id"],
            token=row["token"],
            expires_at=dt(row["expires_at"]),
            status=InvitationStatus(row["status"]),
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    # Team operations
    async def create(self, created_by_id: UUID, params: CreateTeamParams) -> Team:
        """Create a team."""
        now = ms(utc_now())
        with storage_errors(TeamRepositoryError, "create team"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO teams (id, name, description, created_by_id, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $5)
                RETURNING {TEAM_COLUMNS}
                """,
                new_id(),
                params.name,
                params.description,
                created_by_id,
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_team(row)

    async def find_by_id(self, team_id: UUID) -> Team | None:
        """Get team by ID."""
        with storage_errors(TeamRepositoryError, "find team"):
            row = await self._db.fetch_one(
                f"SELECT {TEAM_COLUMNS} FROM teams WHERE id = $1", team_id
            )
        return self._row_to_team(row) if row else None

    async def find_by_id_with_stats(self, team_id: UUID) -> TeamWithStats | None:
        """Get team by ID with member and active OKR counts."""
        with storage_errors(TeamRepositoryError, "find team"):
            row = await self._db.fetch_one(
                f"SELECT {TEAM_STATS_COLUMNS} FROM teams WHERE id = $1", team_id
            )
        return self._row_to_team_with_stats(row) if row else None

    async def update(self, team_id: UUID, params: UpdateTeamParams) -> Team:
        """Apply a partial update to a team."""
        changes = params.model_dump(exclude_unset=True)
        if changes.get("name") is None:
            changes.pop("name", None)
        query_params = QueryParams()
        assignments = set_clause({**changes, "updated_at": ms(utc_now())}, query_params)
        with storage_errors(TeamRepositoryError, "update team"):
            row = await self._db.execute_returning(
                f"""
                UPDATE teams SET {assignments}
                WHERE id = {query_params.add(team_id)}
                RETURNING {TEAM_COLUMNS}
                """,
                *query_params.values,
            )
        if not row:
            raise NotFoundError("Team not found")
        return self._row_to_team(row)

    async def delete(self, team_id: UUID) -> None:
        """Delete a team; members and invitations cascade, objectives are detached."""
        with storage_errors(TeamRepositoryError, "delete team"):
            status = await self._db.execute("DELETE FROM teams WHERE id = $1", team_id)
        if status == "DELETE 0":
            raise NotFoundError("Team not found")

    async def list(self, query: ListTeamsQuery) -> Page[TeamWithStats]:
        """List teams."""
        params = QueryParams()
        conditions = []
        if query.search:
            conditions.append(search_clause(query.search, ["name", "description"], params))
        if query.owner_id is not None:
            conditions.append(f"created_by_id = {params.add(query.owner_id)}")
        if query.member_id is not None:
            conditions.append(
                f"""id IN (SELECT team_id FROM team_members
                    WHERE user_id = {params.add(query.member_id)} AND status = 'active')"""
            )
        where = where_clause(conditions)
        order = order_clause(query.pagination, TEAM_SORT_COLUMNS)

        with storage_errors(TeamRepositoryError, "list teams"):
            count = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM teams {where}", *params.values
            )
            page = page_clause(query.pagination, params)
            rows = await self._db.fetch_all(
                f"SELECT {TEAM_STATS_COLUMNS} FROM teams {where} {order} {page}",
                *params.values,
            )
        return Page(items=[self._row_to_team_with_stats(r) for r in rows], count=count or 0)

    # Member operations
    async def add_member(self, params: AddMemberParams) -> TeamMember:
        """Insert a membership."""
        now = ms(utc_now())
        with storage_errors(TeamRepositoryError, "add team member"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO team_members
                    (id, team_id, user_id, role_id, invited_by_id, invited_at, joined_at,
                     status, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $9)
                RETURNING {MEMBER_COLUMNS}
                """,
                new_id(),
                params.team_id,
                params.user_id,
                params.role_id,
                params.invited_by_id,
                now if params.invited_by_id else None,
                now if params.status == MemberStatus.ACTIVE else None,
                params.status.value,
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_member(row)

    async def find_member(self, team_id: UUID, user_id: UUID) -> TeamMember | None:
        """Get the membership of a user in a team."""
        with storage_errors(TeamRepositoryError, "find team member"):
            row = await self._db.fetch_one(
                f"SELECT {MEMBER_COLUMNS} FROM team_members WHERE team_id = $1 AND user_id = $2",
                team_id,
                user_id,
            )
        return self._row_to_member(row) if row else None

    async def find_member_by_id(self, member_id: UUID) -> TeamMember | None:
        """Get membership by ID."""
        with storage_errors(TeamRepositoryError, "find team member"):
            row = await self._db.fetch_one(
                f"SELECT {MEMBER_COLUMNS} FROM team_members WHERE id = $1", member_id
            )
        return self._row_to_member(row) if row else None

    async def update_member(self, member_id: UUID, params: UpdateMemberParams) -> TeamMember:
        """Change role or status; becoming active stamps ``joined_at``."""
        now = ms(utc_now())
        columns: dict[str, Any] = {"updated_at": now}
        if params.role_id is not None:
            columns["role_id"] = params.role_id
        if params.status is not None:
            columns["status"] = params.status.value

        query_params = QueryParams()
        assignments = set_clause(columns, query_params)
        if params.status == MemberStatus.ACTIVE:
            assignments += (
                f", joined_at = CASE WHEN status = 'active' THEN joined_at"
                f" ELSE {query_params.add(now)} END"
            )
        with storage_errors(TeamRepositoryError, "update team member"):
            row = await self._db.execute_returning(
                f"""
                UPDATE team_members SET {assignments}
                WHERE id = {query_params.add(member_id)}
                RETURNING {MEMBER_COLUMNS}
                """,
                *query_params.values,
            )
        if not row:
            raise NotFoundError("Team member not found")
        return self._row_to_member(row)

    async def remove_member(self, member_id: UUID) -> None:
        """Hard-delete a membership."""
        with storage_errors(TeamRepositoryError, "remove team member"):
            status = await self._db.execute("DELETE FROM team_members WHERE id = $1", member_id)
        if status == "DELETE 0":
            raise NotFoundError("Team member not found")

    async def list_members(self, team_id: UUID, query: ListMembersQuery) -> Page[TeamMember]:
        """List members of a team."""
        params = QueryParams()
        conditions = [f"team_id = {params.add(team_id)}"]
        if query.status is not None:
            conditions.append(f"status = {params.add(query.status.value)}")
        if query.role_id is not None:
            conditions.append(f"role_id = {params.add(query.role_id)}")
        where = where_clause(conditions)
        order = order_clause(query.pagination, MEMBER_SORT_COLUMNS)

        with storage_errors(TeamRepositoryError, "list team members"):
            count = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM team_members {where}", *params.values
            )
            page = page_clause(query.pagination, params)
            rows = await self._db.fetch_all(
                f"SELECT {MEMBER_COLUMNS} FROM team_members {where} {order} {page}",
                *params.values,
            )
        return Page(items=[self._row_to_member(r) for r in rows], count=count or 0)

    # Invitation operations
    async def create_invitation(self, params: CreateInvitationParams) -> TeamInvitation:
        """Store an invitation."""
        now = ms(utc_now())
        with storage_errors(TeamRepositoryError, "create invitation"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO team_invitations
                    (id, team_id, email, role_id, invited_by_id, token, expires_at, status,
                     created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $6, $7, 'pending', $8, $8)
                RETURNING {INVITATION_COLUMNS}
                """,
                new_id(),
                params.team_id,
                params.email,
                params.role_id,
                params.invited_by_id,
                params.token,
                ms(params.expires_at),
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_invitation(row)

    async def find_invitation_by_token(self, token: str) -> TeamInvitation | None:
        """Get invitation by token."""
        with storage_errors(TeamRepositoryError, "find invitation"):
            row = await self._db.fetch_one(
                f"SELECT {INVITATION_COLUMNS} FROM team_invitations WHERE token = $1", token
            )
        return self._row_to_invitation(row) if row else None

    async def find_invitation_by_id(self, invitation_id: UUID) -> TeamInvitation | None:
        """Get invitation by ID."""
        with storage_errors(TeamRepositoryError, "find invitation"):
            row = await self._db.fetch_one(
                f"SELECT {INVITATION_COLUMNS} FROM team_invitations WHERE id = $1",
                invitation_id,
            )
        return self._row_to_invitation(row) if row else None

    async def update_invitation_status(
        self, invitation_id: UUID, status: InvitationStatus
    ) -> TeamInvitation:
        """Move an invitation to a new status."""
        with storage_errors(TeamRepositoryError, "update invitation"):
            row = await self._db.execute_returning(
                f"""
                UPDATE team_invitations SET status = $2, updated_at = $3
                WHERE id = $1
                RETURNING {INVITATION_COLUMNS}
                """,
                invitation_id,
                status.value,
                ms(utc_now()),
            )
        if not row:
            raise NotFoundError("Invitation not found")
        return self._row_to_invitation(row)

    async def list_invitations(
        self, team_id: UUID, query: ListInvitationsQuery
    ) -> Page[TeamInvitation]:
        """List invitations of a team."""
        params = QueryParams()
        conditions = [f"team_id = {params.add(team_id)}"]
        if query.status is not None:
            conditions.append(f"status = {params.add(query.status.value)}")
        where = where_clause(conditions)
        order = order_clause(query.pagination, INVITATION_SORT_COLUMNS)

        with storage_errors(TeamRepositoryError, "list invitations"):
            count = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM team_invitations {where}", *params.values
            )
            page = page_clause(query.pagination, params)
            rows = await self._db.fetch_all(
                f"SELECT {INVITATION_COLUMNS} FROM team_invitations {where} {order} {page}",
                *params.values,
            )
        return Page(items=[self._row_to_invitation(r) for r in rows], count=count or 0)

    # Membership lookups
    async def is_user_member(self, team_id: UUID, user_id: UUID) -> bool:
        """Check for an active membership."""
        return await self.get_user_role_in_team(team_id, user_id) is not None

    async def get_user_role_in_team(self, team_id: UUID, user_id: UUID) -> UUID | None:
        """Get the role ID of the user's active membership."""
        with storage_errors(TeamRepositoryError, "find team role"):
            row = await self._db.fetch_one(
                """
                SELECT role_id FROM team_members
                WHERE team_id = $1 AND user_id = $2 AND status = 'active'
                """,
                team_id,
                user_id,
            )
        return row["role_id"] if row else None
