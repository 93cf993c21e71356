"""Application database adapters.

Contents:
- app_db: asyncpg connection pool used by ``okrhub.adapters.postgres``
"""

from .app_db import AppDatabase

__all__ = ["AppDatabase"]
