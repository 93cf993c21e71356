"""Translation of use case results into HTTP responses."""

from __future__ import annotations

from typing import TypeVar

import structlog
from fastapi import HTTPException, status

from okrhub.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    OkrHubError,
    RepositoryError,
    ValidationError,
)
from okrhub.core.result import Err, Result

logger = structlog.get_logger()

T = TypeVar("T")

STATUS_BY_ERROR: list[tuple[type[OkrHubError], int]] = [
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (AuthenticationError, status.HTTP_401_UNAUTHORIZED),
    (ConflictError, status.HTTP_409_CONFLICT),
]


def to_http_exception(error: OkrHubError) -> HTTPException:
    """Map a domain error to an HTTPException.

    Storage and unexpected errors become a generic 500 so internal details
    never reach the client.
    """
    if not isinstance(error, RepositoryError):
        for error_type, status_code in STATUS_BY_ERROR:
            if isinstance(error, error_type):
                headers = (
                    {"WWW-Authenticate": "Bearer"}
                    if status_code == status.HTTP_401_UNAUTHORIZED
                    else None
                )
                return HTTPException(status_code=status_code, detail=error.message, headers=headers)

    logger.error("request_failed", error_type=type(error).__name__, error=error.message)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal server error",
    )


def unwrap(result: Result[T, OkrHubError]) -> T:
    """Return the value of an ``Ok`` or raise the HTTP form of an ``Err``."""
    if isinstance(result, Err):
        raise to_http_exception(result.error)
    return result.value
