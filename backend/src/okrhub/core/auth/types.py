"""Auth domain types."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from okrhub.core.users.types import PASSWORD_MAX_LENGTH, PASSWORD_MIN_LENGTH, User


@dataclass
class Session:
    """A login session identified by an opaque bearer token."""

    id: UUID
    user_id: UUID
    token: str
    expires_at: datetime
    created_at: datetime
    updated_at: datetime


@dataclass
class SessionWithUser(Session):
    """Session joined with its user."""

    user: User


class RegisterParams(BaseModel):
    """Self-service registration input."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    name: str = Field(min_length=1, max_length=100)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class LoginParams(BaseModel):
    """Login input."""

    model_config = ConfigDict(frozen=True)

    email: EmailStr
    password: str = Field(min_length=1)


@dataclass
class LoginResult:
    """Authenticated user and the session issued for them."""

    user: User
    session: Session


class ResetPasswordParams(BaseModel):
    """Password reset confirmation input."""

    model_config = ConfigDict(frozen=True)

    token: str = Field(min_length=1)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
