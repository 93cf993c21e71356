"""Auth domain types, ports and token helpers."""

from okrhub.core.auth.repository import SessionRepository
from okrhub.core.auth.tokens import generate_token, get_expiry, is_expired
from okrhub.core.auth.types import (
    LoginParams,
    LoginResult,
    RegisterParams,
    ResetPasswordParams,
    Session,
    SessionWithUser,
)

__all__ = [
    "Session",
    "SessionWithUser",
    "RegisterParams",
    "ResetPasswordParams",
    "LoginParams",
    "LoginResult",
    "SessionRepository",
    "generate_token",
    "get_expiry",
    "is_expired",
]
