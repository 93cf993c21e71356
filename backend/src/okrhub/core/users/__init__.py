"""User domain types and ports."""

from okrhub.core.users.repository import UserRepository
from okrhub.core.users.types import (
    ChangePasswordParams,
    CreateUserParams,
    ListUsersQuery,
    UpdateUserParams,
    User,
    UserWithPassword,
)

__all__ = [
    "User",
    "UserWithPassword",
    "CreateUserParams",
    "ChangePasswordParams",
    "UpdateUserParams",
    "ListUsersQuery",
    "UserRepository",
]
