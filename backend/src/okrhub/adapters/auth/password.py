"""Password hashing using bcrypt."""

import asyncio

import bcrypt
import structlog

from okrhub.core.exceptions import PasswordHashError

logger = structlog.get_logger()

DEFAULT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of the password
MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


class BcryptPasswordHasher:
    """PasswordHasher backed by bcrypt.

    Hashing is CPU bound, so both operations run in a worker thread to keep
    the event loop responsive.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        """Initialize the hasher.

        Args:
            rounds: bcrypt cost factor (log2 of the iteration count).
        """
        self.rounds = rounds

    def _hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    async def hash(self, password: str) -> str:
        """Hash a password.

        Raises:
            PasswordHashError: If bcrypt rejects the input.
        """
        try:
            return await asyncio.to_thread(self._hash, password)
        except ValueError as e:
            raise PasswordHashError("Failed to hash password", cause=e) from e

    async def verify(self, password: str, hashed_password: str) -> bool:
        """Verify a password against a stored hash.

        Raises:
            PasswordHashError: If the stored hash is malformed.
        """
        try:
            return await asyncio.to_thread(
                bcrypt.checkpw, _encode(password), hashed_password.encode("utf-8")
            )
        except ValueError as e:
            logger.error("password_hash_malformed", error=str(e))
            raise PasswordHashError("Stored password hash is invalid", cause=e) from e
