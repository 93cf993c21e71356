"""PostgreSQL implementation of SessionRepository."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from okrhub.adapters.db.app_db import AppDatabase
from okrhub.adapters.postgres.base import dt, ms, storage_errors
from okrhub.core.auth.types import Session, SessionWithUser
from okrhub.core.exceptions import NotFoundError, SessionRepositoryError
from okrhub.core.ids import new_id, utc_now
from okrhub.core.users.types import User

SESSION_COLUMNS = "id, user_id, token, expires_at, created_at, updated_at"


class PostgresSessionRepository:
    """PostgreSQL implementation of session repository."""

    def __init__(self, db: AppDatabase) -> None:
        """Initialize with database connection.

        Args:
            db: Application database instance.
        """
        self._db = db

    def _row_to_session(self, row: dict[str, Any]) -> Session:
        """Convert database row to Session."""
        return Session(
            id=row["id"],
            user_id=row["user_id"],
            token=row["token"],
            expires_at=dt(row["expires_at"]),
            created_at=dt(row["created_at"]),
            updated_at=dt(row["updated_at"]),
        )

    async def create(self, user_id: UUID, token: str, expires_at: datetime) -> Session:
        """Create a session."""
        now = ms(utc_now())
        with storage_errors(SessionRepositoryError, "create session"):
            row = await self._db.execute_returning(
                f"""
                INSERT INTO sessions (id, user_id, token, expires_at, created_at, updated_at)
                VALUES ($1, $2, $3, $4, $5, $5)
                RETURNING {SESSION_COLUMNS}
                """,
                new_id(),
                user_id,
                token,
                ms(expires_at),
                now,
            )
        assert row is not None, "INSERT RETURNING should always return a row"
        return self._row_to_session(row)

    async def find_by_token(self, token: str) -> Session | None:
        """Get session by token."""
        with storage_errors(SessionRepositoryError, "find session"):
            row = await self._db.fetch_one(
                f"SELECT {SESSION_COLUMNS} FROM sessions WHERE token = $1",
                token,
            )
        return self._row_to_session(row) if row else None

    async def find_by_token_with_user(self, token: str) -> SessionWithUser | None:
        """Get session by token joined with its user."""
        with storage_errors(SessionRepositoryError, "find session"):
            row = await self._db.fetch_one(
                """
                SELECT s.id, s.user_id, s.token, s.expires_at, s.created_at, s.updated_at,
                       u.email AS user_email, u.name AS user_name,
                       u.avatar_url AS user_avatar_url,
                       u.email_verified AS user_email_verified,
                       u.created_at AS user_created_at, u.updated_at AS user_updated_at
                FROM sessions s
                JOIN users u ON u.id = s.user_id
                WHERE s.token = $1
                """,
                token,
            )
        if not row:
            return None
        user = User(
            id=row["user_id"],
            email=row["user_email"],
            name=row["user_name"],
            avatar_url=row["user_avatar_url"],
            email_verified=row["user_email_verified"],
            created_at=dt(row["user_created_at"]),
            updated_at=dt(row["user_updated_at"]),
        )
        return SessionWithUser(**vars(self._row_to_session(row)), user=user)

    async def find_by_user_id(self, user_id: UUID) -> list[Session]:
        """Get all sessions of a user."""
        with storage_errors(SessionRepositoryError, "list sessions"):
            rows = await self._db.fetch_all(
                f"SELECT {SESSION_COLUMNS} FROM sessions WHERE user_id = $1 ORDER BY created_at",
                user_id,
            )
        return [self._row_to_session(r) for r in rows]

    async def update(self, session_id: UUID, expires_at: datetime) -> Session:
        """Move a session's expiry."""
        with storage_errors(SessionRepositoryError, "update session"):
            row = await self._db.execute_returning(
                f"""
                UPDATE sessions SET expires_at = $2, updated_at = $3
                WHERE id = $1
                RETURNING {SESSION_COLUMNS}
                """,
                session_id,
                ms(expires_at),
                ms(utc_now()),
            )
        if not row:
            raise NotFoundError("Session not found")
        return self._row_to_session(row)

    async def delete(self, session_id: UUID) -> None:
        """Delete a session by ID."""
        with storage_errors(SessionRepositoryError, "delete session"):
            status = await self._db.execute("DELETE FROM sessions WHERE id = $1", session_id)
        if status == "DELETE 0":
            raise NotFoundError("Session not found")

    async def delete_by_token(self, token: str) -> None:
        """Delete a session by token."""
        with storage_errors(SessionRepositoryError, "delete session"):
            await self._db.execute("DELETE FROM sessions WHERE token = $1", token)

    async def delete_by_user_id(self, user_id: UUID) -> None:
        """Delete every session of a user."""
        with storage_errors(SessionRepositoryError, "delete sessions"):
            await self._db.execute("DELETE FROM sessions WHERE user_id = $1", user_id)

    async def delete_expired(self) -> int:
        """Delete expired sessions."""
        with storage_errors(SessionRepositoryError, "delete expired sessions"):
            status = await self._db.execute(
                "DELETE FROM sessions WHERE expires_at <= $1",
                ms(utc_now()),
            )
        # status looks like "DELETE 3"
        return int(status.split()[-1])

    async def is_valid(self, token: str) -> bool:
        """Check whether a token belongs to an unexpired session."""
        with storage_errors(SessionRepositoryError, "check session"):
            row = await self._db.fetch_one(
                "SELECT 1 AS ok FROM sessions WHERE token = $1 AND expires_at > $2",
                token,
                ms(utc_now()),
            )
        return row is not None
