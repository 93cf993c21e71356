"""API middleware and request dependencies."""

from .auth import SessionDep, bearer_token, require_session

__all__ = ["SessionDep", "bearer_token", "require_session"]
