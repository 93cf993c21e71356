"""Bearer session token authentication."""

from typing import Annotated

import structlog
from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from okrhub.core.auth.types import SessionWithUser
from okrhub.core.context import Context
from okrhub.entrypoints.api.deps import get_context
from okrhub.entrypoints.api.errors import unwrap
from okrhub.services import auth as auth_service

logger = structlog.get_logger()

BEARER = HTTPBearer(auto_error=False)


async def require_session(
    context: Annotated[Context, Depends(get_context)],
    credentials: HTTPAuthorizationCredentials | None = Security(BEARER),
) -> SessionWithUser:
    """Resolve the bearer token to a live session and its user.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired.
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing session token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return unwrap(await auth_service.validate_session(context, credentials.credentials))


def bearer_token(
    credentials: HTTPAuthorizationCredentials | None = Security(BEARER),
) -> str | None:
    """Raw bearer token, if one was sent."""
    return credentials.credentials if credentials else None


SessionDep = Annotated[SessionWithUser, Depends(require_session)]
