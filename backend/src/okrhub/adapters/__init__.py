"""Adapters - Infrastructure implementations of core interfaces.

This package contains the concrete implementations of the Protocol
interfaces defined in the core module.

Adapters are organized by type:
- memory/: dict-backed repositories sharing one store
- postgres/: asyncpg repositories over AppDatabase
- db/: connection pool wrapper and schema bootstrap
- auth/: password hashing
- notifications/: outbound email
"""
