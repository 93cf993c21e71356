"""Session repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from okrhub.core.auth.types import Session, SessionWithUser


@runtime_checkable
class SessionRepository(Protocol):
    """Protocol for session storage.

    Implementations raise ``SessionRepositoryError`` on storage failure.
    """

    async def create(self, user_id: UUID, token: str, expires_at: datetime) -> Session:
        """Create a session. Duplicate tokens raise SessionRepositoryError."""
        ...

    async def find_by_token(self, token: str) -> Session | None:
        """Get session by token."""
        ...

    async def find_by_token_with_user(self, token: str) -> SessionWithUser | None:
        """Get session by token joined with its user."""
        ...

    async def find_by_user_id(self, user_id: UUID) -> list[Session]:
        """Get all sessions of a user."""
        ...

    async def update(self, session_id: UUID, expires_at: datetime) -> Session:
        """Move a session's expiry."""
        ...

    async def delete(self, session_id: UUID) -> None:
        """Delete a session by ID."""
        ...

    async def delete_by_token(self, token: str) -> None:
        """Delete a session by token. Unknown tokens are ignored."""
        ...

    async def delete_by_user_id(self, user_id: UUID) -> None:
        """Delete every session of a user."""
        ...

    async def delete_expired(self) -> int:
        """Delete expired sessions and return how many were removed."""
        ...

    async def is_valid(self, token: str) -> bool:
        """Check whether a token belongs to an unexpired session."""
        ...
