"""Use-case boundary: domain exceptions in, tagged results out."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar

import structlog

from okrhub.core.exceptions import OkrHubError, RepositoryError
from okrhub.core.result import Err, Ok, Result

logger = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")


def use_case(
    func: Callable[P, Awaitable[T]],
) -> Callable[P, Awaitable[Result[T, OkrHubError]]]:
    """Turn an async use case into one that returns ``Ok``/``Err``.

    Domain errors raised anywhere below the use case become ``Err``; storage
    failures are additionally logged with their cause. Any other exception is
    a bug and propagates unchanged.
    """

    @functools.wraps(func)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T, OkrHubError]:
        try:
            return Ok(await func(*args, **kwargs))
        except RepositoryError as e:
            logger.error(
                "use_case_storage_failure",
                use_case=func.__name__,
                error=e.message,
                cause=repr(e.cause) if e.cause else None,
            )
            return Err(e)
        except OkrHubError as e:
            logger.info("use_case_rejected", use_case=func.__name__, error=e.message)
            return Err(e)

    return wrapper
