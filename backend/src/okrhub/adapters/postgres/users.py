"""PostgreSQL implementation of UserRepository."""

from __future__ import annotations

from datetime import datetime
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
from okrhub.core.exceptions import NotFoundError, UserRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.pagination import Page
from okrhub.core.users.types import (
    CreateUserParams,
    ListUsersQuery,
    UpdateUserParams,
    User,
    UserWithPassword,
)

USER_COLUMNS = "id, email, name, avatar_url, email_verified, created_at, updated_at"
SORT_COLUMNS = {
    "name": "name",
    "email": "email",
    "created_at": "created_at",
    "updated_at": "updated_at",
}


class PostgresUserRepository:
    """PostgreSQL implementation of user repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_user(self, row: dict[str, Any]) -> User:
        """Convert database row to User."""
        return User(
            id=row["id"],
            email=row["email"],
            name=row["name"],
            avatar_url=row.get("avatar_url"),
            email_verified=row["email_verified"],
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    async def _touch(self, user_id: UUID, columns: dict[str, Any], action: str) -> None:
        params = QueryParams()
        assignments = set_clause({**columns, "updated_at": ms(utc_now())}, params)
        with storage_errors(UserRepositoryError, action):
            status = await self._db.execute(
                f"UPDATE users SET {assignments} WHERE id = {params.add(user_id)}",
                *params.values,
            )
        if status == "UPDATE 0":
            raise NotFoundError("User not found")

    async def create(self, params: CreateUserParams) -> User:
        """Insert a user."""
        now = ms(utc_now())
        with storage_errors(UserRepositoryError, "create user"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO users (id, email, name, hashed_password, email_verified,
                                   created_at, updated_at)
                VALUES ($1, $2, $3, $4, false, $5, $5)
                RETURNING {USER_COLUMNS}
                """,
                new_id(),
                params.email,
                params.name,
                params.hashed_password,
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_user(row)

    async def find_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        with storage_errors(UserRepositoryError, "find user"):
            row = await self._db.fetch_one(
                f"SELECT {USER_COLUMNS} FROM users WHERE id = $1",
                user_id,
            )
        return self._row_to_user(row) if row else None

    async def find_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        with storage_errors(UserRepositoryError, "find user"):
            row = await self._db.fetch_one(
                f"SELECT {USER_COLUMNS} FROM users WHERE lower(email) = lower($1)",
                email,
            )
        return self._row_to_user(row) if row else None

    async def find_by_email_for_auth(self, email: str) -> UserWithPassword | None:
        """Get user by email including the password hash."""
        with storage_errors(UserRepositoryError, "find user"):
            row = await self._db.fetch_one(
                f"""
                SELECT {USER_COLUMNS}, hashed_password
                FROM users WHERE lower(email) = lower($1)
                """,
                email,
            )
        if not row:
            return None
        user = self._row_to_user(row)
        return UserWithPassword(**vars(user), hashed_password=row["hashed_password"])

    async def find_by_email_verification_token(self, token: str) -> User | None:
        """Get the user holding an email verification token."""
        with storage_errors(UserRepositoryError, "find user"):
            row = await self._db.fetch_one(
                f"SELECT {USER_COLUMNS} FROM users WHERE email_verification_token = $1",
                token,
            )
        return self._row_to_user(row) if row else None

    async def find_by_password_reset_token(self, token: str) -> User | None:
        """Get the user holding an unexpired password reset token."""
        with storage_errors(UserRepositoryError, "find user"):
            row = await self._db.fetch_one(
                f"""
                SELECT {USER_COLUMNS} FROM users
                WHERE password_reset_token = $1 AND password_reset_expires_at > $2
                """,
                token,
                ms(utc_now()),
            )
        return self._row_to_user(row) if row else None

    async def update(self, user_id: UUID, params: UpdateUserParams) -> User:
        """Apply a partial update."""
        changes = {
            k: v
            for k, v in params.model_dump(exclude_unset=True).items()
            if v is not None or k == "avatar_url"
        }
        if not changes:
            user = await self.find_by_id(user_id)
            if user is None:
                raise NotFoundError("User not found")
            return user

        query_params = QueryParams()
        assignments = set_clause({**changes, "updated_at": ms(utc_now())}, query_params)
        with storage_errors(UserRepositoryError, "update user"):
            row = await self._db.execute_returning(
                f"""
                UPDATE users SET {assignments}
                WHERE id = {query_params.add(user_id)}
                RETURNING {USER_COLUMNS}
                """,
                *query_params.values,
            )
        if not row:
            raise NotFoundError("User not found")
        return self._row_to_user(row)

    async def delete(self, user_id: UUID) -> None:
        """Delete a user; sessions, memberships and created teams cascade."""
        with storage_errors(UserRepositoryError, "delete user"):
            status = await self._db.execute("DELETE FROM users WHERE id = $1", user_id)
        if status == "DELETE 0":
            raise NotFoundError("User not found")

    async def list(self, query: ListUsersQuery) -> Page[User]:
        """List users matching the query."""
        params = QueryParams()
        conditions = []
        if query.search:
            conditions.append(search_clause(query.search, ["name", "email"], params))
        if query.email_verified is not None:
            conditions.append(f"email_verified = {params.add(query.email_verified)}")
        where = where_clause(conditions)
        order = order_clause(query.pagination, SORT_COLUMNS)

        with storage_errors(UserRepositoryError, "list users"):
            count = await self._db.fetch_value(
                f"SELECT COUNT(*) FROM users {where}", *params.values
            )
            page = page_clause(query.pagination, params)
            rows = await self._db.fetch_all(
                f"SELECT {USER_COLUMNS} FROM users {where} {order} {page}",
                *params.values,
            )
        return Page(items=[self._row_to_user(r) for r in rows], count=count or 0)

    async def set_email_verified(self, user_id: UUID, verified: bool) -> None:
        """Set the email-verified flag."""
        await self._touch(user_id, {"email_verified": verified}, "verify email")

    async def set_email_verification_token(self, user_id: UUID, token: str | None) -> None:
        """Store or clear the email verification token."""
        await self._touch(
            user_id, {"email_verification_token": token}, "store verification token"
        )

    async def set_password_reset_token(
        self,
        user_id: UUID,
        token: str | None,
        expires_at: datetime | None,
    ) -> None:
        """Store or clear the password reset token and its expiry."""
        await self._touch(
            user_id,
            {"password_reset_token": token, "password_reset_expires_at": ms(expires_at)},
            "store password reset token",
        )

    async def change_password(self, user_id: UUID, hashed_password: str) -> None:
        """Replace the stored password hash."""
        await self._touch(user_id, {"hashed_password": hashed_password}, "change password")
