"""Domain-specific exceptions.

All exceptions in okrhub inherit from OkrHubError. Repositories and ports
raise them; use cases convert them into ``Err`` results at their boundary
(see ``okrhub.services.base.use_case``), so callers outside the core only
ever see tagged results.
"""

from __future__ import annotations


class OkrHubError(Exception):
    """Base exception for all okrhub errors.

    Attributes:
        message: Human readable description, safe to show to the caller.
        cause: The underlying exception, if this error wraps one.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        """Initialize the error.

        Args:
            message: Error description.
            cause: Optional underlying exception.
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


class ValidationError(OkrHubError):
    """Input failed a domain constraint.

    Attributes:
        field: Name of the offending field, when one can be named.
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize ValidationError.

        Args:
            message: Error description.
            field: Optional name of the invalid field.
        """
        super().__init__(message)
        self.field = field


class NotFoundError(OkrHubError):
    """Referenced entity does not exist (or must not be revealed)."""

    pass


class AuthorizationError(OkrHubError):
    """The acting user is not allowed to perform the operation."""

    pass


class AuthenticationError(OkrHubError):
    """Credentials or session could not be verified."""

    pass


class ConflictError(OkrHubError):
    """The operation would duplicate an existing record."""

    pass


class RepositoryError(OkrHubError):
    """Storage-layer failure (constraint violation, connection failure)."""

    pass


class UserRepositoryError(RepositoryError):
    """User store failure."""

    pass


class SessionRepositoryError(RepositoryError):
    """Session store failure."""

    pass


class TeamRepositoryError(RepositoryError):
    """Team store failure."""

    pass


class RoleRepositoryError(RepositoryError):
    """Role or permission store failure."""

    pass


class OkrRepositoryError(RepositoryError):
    """Objective or key result store failure."""

    pass


class PasswordHashError(OkrHubError):
    """Hashing or verifying a password failed."""

    pass


class EmailServiceError(OkrHubError):
    """An email could not be delivered."""

    pass
