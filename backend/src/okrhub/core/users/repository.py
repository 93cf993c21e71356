"""User repository protocol."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from okrhub.core.pagination import Page
from okrhub.core.users.types import (
    CreateUserParams,
    ListUsersQuery,
    UpdateUserParams,
    User,
    UserWithPassword,
)


@runtime_checkable
class UserRepository(Protocol):
    """Protocol for user storage.

    Implementations raise ``UserRepositoryError`` on storage failure and
    ``NotFoundError`` when mutating a user that does not exist.
    """

    async def create(self, params: CreateUserParams) -> User:
        """Insert a user. Duplicate emails raise UserRepositoryError."""
        ...

    async def find_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        ...

    async def find_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        ...

    async def find_by_email_for_auth(self, email: str) -> UserWithPassword | None:
        """Get user by email including the password hash."""
        ...

    async def find_by_email_verification_token(self, token: str) -> User | None:
        """Get the user holding an email verification token."""
        ...

    async def find_by_password_reset_token(self, token: str) -> User | None:
        """Get the user holding an unexpired password reset token."""
        ...

    async def update(self, user_id: UUID, params: UpdateUserParams) -> User:
        """Apply a partial update."""
        ...

    async def delete(self, user_id: UUID) -> None:
        """Delete a user and, by cascade, their sessions."""
        ...

    async def list(self, query: ListUsersQuery) -> Page[User]:
        """List users matching the query."""
        ...

    async def set_email_verified(self, user_id: UUID, verified: bool) -> None:
        """Set the email-verified flag."""
        ...

    async def set_email_verification_token(self, user_id: UUID, token: str | None) -> None:
        """Store or clear the email verification token."""
        ...

    async def set_password_reset_token(
        self,
        user_id: UUID,
        token: str | None,
        expires_at: datetime | None,
    ) -> None:
        """Store or clear the password reset token and its expiry."""
        ...

    async def change_password(self, user_id: UUID, hashed_password: str) -> None:
        """Replace the stored password hash."""
        ...
