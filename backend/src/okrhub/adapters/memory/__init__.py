"""In-memory repositories for tests and local development.

All five repositories share one ``MemoryStore`` so cascades, member counts
and permission joins cross repository boundaries as they do in PostgreSQL.
"""

from .okr import InMemoryOkrRepository
from .roles import InMemoryRoleRepository
from .sessions import InMemorySessionRepository
from .store import MemoryStore
from .teams import InMemoryTeamRepository
from .users import InMemoryUserRepository

__all__ = [
    "MemoryStore",
    "InMemoryOkrRepository",
    "InMemoryRoleRepository",
    "InMemorySessionRepository",
    "InMemoryTeamRepository",
    "InMemoryUserRepository",
]
