"""Tagged success/failure values returned by use cases."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E", bound=BaseException)


class UnwrapError(Exception):
    """Raised when unwrapping the wrong side of a result."""

    pass


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    def is_ok(self) -> bool:
        """Return True."""
        return True

    def is_err(self) -> bool:
        """Return False."""
        return False

    def unwrap(self) -> T:
        """Return the wrapped value."""
        return self.value

    def unwrap_err(self) -> NoReturn:
        """Fail, there is no error to return."""
        raise UnwrapError(f"called unwrap_err on Ok({self.value!r})")


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed result carrying a typed error."""

    error: E

    def is_ok(self) -> bool:
        """Return False."""
        return False

    def is_err(self) -> bool:
        """Return True."""
        return True

    def unwrap(self) -> NoReturn:
        """Fail, chaining the wrapped error."""
        raise UnwrapError(f"called unwrap on Err({self.error!r})") from self.error

    def unwrap_err(self) -> E:
        """Return the wrapped error."""
        return self.error


Result = Union[Ok[T], Err[E]]
