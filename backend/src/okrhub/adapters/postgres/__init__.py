"""asyncpg repositories over ``AppDatabase``.

Timestamps are stored as integer epoch milliseconds; driver errors are
wrapped into the matching ``RepositoryError`` subclass.
"""

from .okr import PostgresOkrRepository
from .roles import PostgresRoleRepository
from .sessions import PostgresSessionRepository
from .teams import PostgresTeamRepository
from .users import PostgresUserRepository

__all__ = [
    "PostgresOkrRepository",
    "PostgresRoleRepository",
    "PostgresSessionRepository",
    "PostgresTeamRepository",
    "PostgresUserRepository",
]
