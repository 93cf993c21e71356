"""Identifier and timestamp helpers."""

import secrets
import time
from datetime import UTC, datetime, timedelta
from uuid import UUID

_TIMESTAMP_MASK = (1 << 48) - 1
_RAND_B_MASK = (1 << 62) - 1
_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_MILLISECOND = timedelta(milliseconds=1)


def new_id() -> UUID:
    """Generate a time-ordered UUID (version 7 layout).

    The 48 most significant bits hold the Unix time in milliseconds, so ids
    sort by creation time across processes.

    Returns:
        A new UUID.
    """
    unix_ms = time.time_ns() // 1_000_000
    rand = secrets.randbits(74)
    value = (unix_ms & _TIMESTAMP_MASK) << 80
    value |= 0x7 << 76
    value |= (rand >> 62) << 64
    value |= 0b10 << 62
    value |= rand & _RAND_B_MASK
    return UUID(int=value)


def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision.

    Storage keeps integer epoch milliseconds; truncating here keeps values
    identical before and after a round trip.
    """
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_epoch_ms(value: datetime) -> int:
    """Convert a datetime to integer epoch milliseconds."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return (value - _EPOCH) // _MILLISECOND


def from_epoch_ms(value: int) -> datetime:
    """Convert integer epoch milliseconds to an aware UTC datetime."""
    return _EPOCH + value * _MILLISECOND


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
