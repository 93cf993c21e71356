"""Helpers shared by the PostgreSQL repositories."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import asyncpg
import structlog

from okrhub.core.exceptions import RepositoryError, ValidationError
from okrhub.core.ids import from_epoch_ms, to_epoch_ms
from okrhub.core.pagination import Pagination, SortOrder

logger = structlog.get_logger()


@contextmanager
def storage_errors(error_cls: type[RepositoryError], action: str) -> Iterator[None]:
    """Wrap driver exceptions raised in the block into ``error_cls``.

    Args:
        error_cls: Domain repository error to raise.
        action: Short description used in the error message.
    """
    try:
        yield
    except asyncpg.UniqueViolationError as e:
        raise error_cls(f"Failed to {action}: duplicate value", cause=e) from e
    except asyncpg.ForeignKeyViolationError as e:
        raise error_cls(f"Failed to {action}: referenced record missing or in use", cause=e) from e
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error("postgres_query_failed", action=action, error=str(e))
        raise error_cls(f"Failed to {action}", cause=e) from e


def ms(value: datetime | None) -> int | None:
    """Datetime to epoch milliseconds, passing None through."""
    return to_epoch_ms(value) if value is not None else None


def dt(value: int | None) -> datetime | None:
    """Epoch milliseconds to an aware datetime, passing None through."""
    return from_epoch_ms(value) if value is not None else None


class QueryParams:
    """Collects positional arguments and hands out ``$n`` placeholders."""

    def __init__(self) -> None:
        """Start with no arguments."""
        self.values: list[Any] = []

    def add(self, value: Any) -> str:
        """Register a value and return its placeholder."""
        self.values.append(value)
        return f"${len(self.values)}"


def where_clause(conditions: list[str]) -> str:
    """Join conditions with AND, or return an empty string."""
    return f"WHERE {' AND '.join(conditions)}" if conditions else ""


def order_clause(pagination: Pagination, columns: Mapping[str, str]) -> str:
    """Build a safe ORDER BY from a whitelist of sortable columns.

    Args:
        pagination: Page request naming the sort field.
        columns: Allowed sort field names mapped to SQL expressions.

    Raises:
        ValidationError: If the field is not sortable.
    """
    column = columns.get(pagination.order_by)
    if column is None:
        raise ValidationError(f"Cannot sort by '{pagination.order_by}'", field="order_by")
    direction = "ASC" if pagination.order == SortOrder.ASC else "DESC"
    return f"ORDER BY {column} {direction}, id {direction}"


def page_clause(pagination: Pagination, params: QueryParams) -> str:
    """LIMIT/OFFSET for a page request."""
    return f"LIMIT {params.add(pagination.limit)} OFFSET {params.add(pagination.offset)}"


def set_clause(columns: Mapping[str, Any], params: QueryParams) -> str:
    """Build ``col = $n`` assignments for an UPDATE."""
    return ", ".join(f"{name} = {params.add(value)}" for name, value in columns.items())


def search_clause(search: str, columns: list[str], params: QueryParams) -> str:
    """Case-insensitive substring match of ``search`` against any column.

    ``%``, ``_`` and ``\\`` in the search text match literally.
    """
    escaped = search.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    placeholder = params.add(escaped)
    matches = " OR ".join(
        f"{column} ILIKE '%' || {placeholder} || '%' ESCAPE '\\'" for column in columns
    )
    return f"({matches})"
