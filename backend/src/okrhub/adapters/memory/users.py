"""In-memory user repository."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from uuid import UUID

from okrhub.adapters.memory.store import MemoryStore, matches_search, paginate
from okrhub.core.auth.tokens import is_expired
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


class InMemoryUserRepository:
    """User repository backed by a ``MemoryStore``."""

    def __init__(self, store: MemoryStore) -> None:
        """Initialize with the shared store."""
        self._store = store

    def _get(self, user_id: UUID) -> UserWithPassword:
        user = self._store.users.get(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _find_email(self, email: str) -> UserWithPassword | None:
        email = email.lower()
        return next((u for u in self._store.users.values() if u.email.lower() == email), None)

    async def create(self, params: CreateUserParams) -> User:
        """Insert a user."""
        if self._find_email(params.email) is not None:
            raise UserRepositoryError("User with this email already exists")
        now = utc_now()
        user = UserWithPassword(
            id=new_id(),
            email=params.email,
            name=params.name,
            avatar_url=None,
            email_verified=False,
            created_at=now,
            updated_at=now,
            hashed_password=params.hashed_password,
        )
        self._store.users[user.id] = user
        return user.to_user()

    async def find_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        user = self._store.users.get(user_id)
        return user.to_user() if user else None

    async def find_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        user = self._find_email(email)
        return user.to_user() if user else None

    async def find_by_email_for_auth(self, email: str) -> UserWithPassword | None:
        """Get user by email including the password hash."""
        user = self._find_email(email)
        return replace(user) if user else None

    async def find_by_email_verification_token(self, token: str) -> User | None:
        """Get the user holding an email verification token."""
        for user_id, stored in self._store.verification_tokens.items():
            if stored == token:
                return await self.find_by_id(user_id)
        return None

    async def find_by_password_reset_token(self, token: str) -> User | None:
        """Get the user holding an unexpired password reset token."""
        for user_id, (stored, expires_at) in self._store.reset_tokens.items():
            if stored == token and not is_expired(expires_at):
                return await self.find_by_id(user_id)
        return None

    async def update(self, user_id: UUID, params: UpdateUserParams) -> User:
        """Apply a partial update."""
        user = self._get(user_id)
        # Only avatar_url is nullable
        changes = {
            k: v
            for k, v in params.model_dump(exclude_unset=True).items()
            if v is not None or k == "avatar_url"
        }
        if "email" in changes:
            other = self._find_email(changes["email"])
            if other is not None and other.id != user_id:
                raise UserRepositoryError("User with this email already exists")
        updated = replace(user, **changes, updated_at=utc_now())
        self._store.users[user_id] = updated
        return updated.to_user()

    async def delete(self, user_id: UUID) -> None:
        """Delete a user with their sessions, memberships and created teams.

        Raises:
            NotFoundError: If the user does not exist.
            UserRepositoryError: If the user still owns objectives.
        """
        self._get(user_id)
        if any(o.owner_id == user_id for o in self._store.objectives.values()):
            raise UserRepositoryError("User still owns objectives")

        store = self._store
        del store.users[user_id]
        store.verification_tokens.pop(user_id, None)
        store.reset_tokens.pop(user_id, None)
        store.sessions = {k: s for k, s in store.sessions.items() if s.user_id != user_id}

        created = {t.id for t in store.teams.values() if t.created_by_id == user_id}
        store.teams = {k: t for k, t in store.teams.items() if k not in created}
        store.members = {
            k: m
            for k, m in store.members.items()
            if m.user_id != user_id and m.team_id not in created
        }
        store.invitations = {
            k: i for k, i in store.invitations.items() if i.team_id not in created
        }
        for objective in list(store.objectives.values()):
            if objective.team_id in created:
                store.objectives[objective.id] = replace(objective, team_id=None)

    async def list(self, query: ListUsersQuery) -> Page[User]:
        """List users matching the query."""
        users = [
            u.to_user()
            for u in self._store.users.values()
            if matches_search(query.search, u.name, u.email)
            and (query.email_verified is None or u.email_verified == query.email_verified)
        ]
        return paginate(users, query.pagination)

    async def set_email_verified(self, user_id: UUID, verified: bool) -> None:
        """Set the email-verified flag."""
        user = self._get(user_id)
        self._store.users[user_id] = replace(user, email_verified=verified, updated_at=utc_now())

    async def set_email_verification_token(self, user_id: UUID, token: str | None) -> None:
        """Store or clear the email verification token."""
        self._get(user_id)
        if token is None:
            self._store.verification_tokens.pop(user_id, None)
        else:
            self._store.verification_tokens[user_id] = token

    async def set_password_reset_token(
        self,
        user_id: UUID,
        token: str | None,
        expires_at: datetime | None,
    ) -> None:
        """Store or clear the password reset token and its expiry."""
        self._get(user_id)
        if token is None or expires_at is None:
            self._store.reset_tokens.pop(user_id, None)
        else:
            self._store.reset_tokens[user_id] = (token, expires_at)

    async def change_password(self, user_id: UUID, hashed_password: str) -> None:
        """Replace the stored password hash."""
        user = self._get(user_id)
        self._store.users[user_id] = replace(
            user, hashed_password=hashed_password, updated_at=utc_now()
        )
