"""Secure token generation for sessions, verification and password reset.

Verification and reset tokens are stored hashed; only the emailed link
carries the plaintext token.
"""

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

from okrhub.core.ids import utc_now

# 256 bits of entropy
TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate a cryptographically secure URL-safe token."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def hash_token(token: str) -> str:
    """Hash a token for storage.

    SHA-256 keeps lookups by equality possible. The token carries enough
    entropy that a fast hash is safe here.

    Args:
        token: The plaintext token.

    Returns:
        Hex-encoded SHA-256 digest of the token.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def get_expiry(ttl: timedelta) -> datetime:
    """Calculate an expiry timestamp ``ttl`` from now.

    Args:
        ttl: Lifetime of the token or session.

    Returns:
        UTC datetime when the token expires.
    """
    return utc_now() + ttl


def is_expired(expires_at: datetime) -> bool:
    """Check if an expiry timestamp has passed.

    Args:
        expires_at: The expiry timestamp.

    Returns:
        True if the timestamp is in the past.
    """
    # Handle timezone-naive datetimes
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return datetime.now(UTC) > expires_at
