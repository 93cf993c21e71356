"""Core domain - pure business logic with no infrastructure dependencies."""

from .context import Context, ContextSettings
from .exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    EmailServiceError,
    NotFoundError,
    OkrHubError,
    OkrRepositoryError,
    PasswordHashError,
    RepositoryError,
    RoleRepositoryError,
    SessionRepositoryError,
    TeamRepositoryError,
    UserRepositoryError,
    ValidationError,
)
from .interfaces import EmailService, PasswordHasher
from .pagination import Page, Pagination, SortOrder
from .result import Err, Ok, Result

__all__ = [
    # Context
    "Context",
    "ContextSettings",
    # Results
    "Ok",
    "Err",
    "Result",
    # Pagination
    "Page",
    "Pagination",
    "SortOrder",
    # Ports
    "EmailService",
    "PasswordHasher",
    # Exceptions
    "OkrHubError",
    "ValidationError",
    "NotFoundError",
    "AuthorizationError",
    "AuthenticationError",
    "ConflictError",
    "RepositoryError",
    "UserRepositoryError",
    "SessionRepositoryError",
    "TeamRepositoryError",
    "RoleRepositoryError",
    "OkrRepositoryError",
    "PasswordHashError",
    "EmailServiceError",
]
