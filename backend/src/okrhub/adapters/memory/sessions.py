"""In-memory session repository."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from uuid import UUID

from okrhub.adapters.memory.store import MemoryStore
from okrhub.core.auth.tokens import is_expired
from okrhub.core.auth.types import Session, SessionWithUser
from okrhub.core.exceptions import NotFoundError, SessionRepositoryError
from okrhub.core.ids import new_id, utc_now


class InMemorySessionRepository:
    """Session repository backed by a ``MemoryStore``."""

    def __init__(self, store: MemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    def _by_token(self, token: str) -> Session | None:
        return next((s for s in self._store.sessions.values() if s.token == token), None)

    async def create(self, user_id: UUID, token: str, expires_at: datetime) -> Session:
        """Create a session."""
        if user_id not in self._store.users:
            raise SessionRepositoryError("Session user does not exist")
        if self._by_token(token) is not None:
            raise SessionRepositoryError("Session token already exists")
        now = utc_now()
        session = Session(
            id=new_id(),
            user_id=user_id,
            token=token,
            expires_at=expires_at,
            created_at=now,
            updated_at=now,
        )
        self._store.sessions[session.id] = session
        return session

    async def find_by_token(self, token: str) -> Session | None:
        """Get session by token."""
        return self._by_token(token)

    async def find_by_token_with_user(self, token: str) -> SessionWithUser | None:
        """Get session by token joined with its user."""
        session = self._by_token(token)
        if session is None:
            return None
        user = self._store.users.get(session.user_id)
        if user is None:
            return None
        return SessionWithUser(**vars(session), user=user.to_user())

    async def find_by_user_id(self, user_id: UUID) -> list[Session]:
        """Get all sessions of a user."""
        return sorted(
            (s for s in self._store.sessions.values() if s.user_id == user_id),
            key=lambda s: s.created_at,
        )

    async def update(self, session_id: UUID, expires_at: datetime) -> Session:
        """Move a session's expiry."""
        session = self._store.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        updated = replace(session, expires_at=expires_at, updated_at=utc_now())
        self._store.sessions[session_id] = updated
        return updated

    async def delete(self, session_id: UUID) -> None:
        """Delete a session by ID."""
        if self._store.sessions.pop(session_id, None) is None:
            raise NotFoundError("Session not found")

    async def delete_by_token(self, token: str) -> None:
        """Delete a session by token."""
        session = self._by_token(token)
        if session is not None:
            del self._store.sessions[session.id]

    async def delete_by_user_id(self, user_id: UUID) -> None:
        """Delete every session of a user."""
        for session in await self.find_by_user_id(user_id):
            del self._store.sessions[session.id]

    async def delete_expired(self) -> int:
        """Delete expired sessions."""
        expired = [s.id for s in self._store.sessions.values() if is_expired(s.expires_at)]
        for session_id in expired:
            del self._store.sessions[session_id]
        return len(expired)

    async def is_valid(self, token: str) -> bool:
        """Check whether a token belongs to an unexpired session."""
        session = self._by_token(token)
        return session is not None and not is_expired(session.expires_at)
