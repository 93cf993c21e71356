"""User domain types."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from okrhub.core.pagination import Pagination

NAME_MAX_LENGTH = 100
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128


@dataclass
class User:
    """A registered user."""

    id: UUID
    email: str
    name: str
    avatar_url: str | None
    email_verified: bool
    created_at: datetime
    updated_at: datetime


@dataclass
class UserWithPassword(User):
    """User record including the stored password hash.

    Only returned by ``UserRepository.find_by_email_for_auth``.
    """

    hashed_password: str

    def to_user(self) -> User:
        """Drop the password hash."""
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            avatar_url=self.avatar_url,
            email_verified=self.email_verified,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class CreateUserParams(BaseModel):
    """Fields for inserting a user."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    name: str = Field(min_length=1, max_length=NAME_MAX_LENGTH)
    hashed_password: str


class UpdateUserParams(BaseModel):
    """Partial user update; only fields that are set are written."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr | None = None
    name: str | None = Field(default=None, min_length=1, max_length=NAME_MAX_LENGTH)
    avatar_url: str | None = None


class ListUsersQuery(BaseModel):
    """Filters for listing users."""

    model_config = ConfigDict(frozen=True)

    pagination: Pagination = Pagination()
    search: str | None = None
    email_verified: bool | None = None


class ChangePasswordParams(BaseModel):
    """Password change input."""

    model_config = ConfigDict(frozen=True)

    current_password: str
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
