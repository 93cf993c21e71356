"""Shared state for the in-memory repositories."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, TypeVar
from uuid import UUID

from okrhub.core.auth.types import Session
from okrhub.core.exceptions import ValidationError
from okrhub.core.okr.types import KeyResult, Objective
from okrhub.core.pagination import Page, Pagination, SortOrder
from okrhub.core.rbac.types import Permission, Role
from okrhub.core.teams.types import Team, TeamInvitation, TeamMember
from okrhub.core.users.types import UserWithPassword

T = TypeVar("T")


@dataclass
class MemoryStore:
    """All tables of the application as plain dicts keyed by ID.

    The repositories share one store so that cascades and joins behave the
    way they do against PostgreSQL.
    """

    users: dict[UUID, UserWithPassword] = field(default_factory=dict)
    verification_tokens: dict[UUID, str] = field(default_factory=dict)
    reset_tokens: dict[UUID, tuple[str, datetime]] = field(default_factory=dict)
    sessions: dict[UUID, Session] = field(default_factory=dict)
    teams: dict[UUID, Team] = field(default_factory=dict)
    members: dict[UUID, TeamMember] = field(default_factory=dict)
    invitations: dict[UUID, TeamInvitation] = field(default_factory=dict)
    roles: dict[UUID, Role] = field(default_factory=dict)
    permissions: dict[UUID, Permission] = field(default_factory=dict)
    role_permissions: set[tuple[UUID, UUID]] = field(default_factory=set)
    objectives: dict[UUID, Objective] = field(default_factory=dict)
    key_results: dict[UUID, KeyResult] = field(default_factory=dict)


def matches_search(search: str | None, *values: str | None) -> bool:
    """Case-insensitive substring match against any of the values."""
    if not search:
        return True
    needle = search.lower()
    return any(value is not None and needle in value.lower() for value in values)


def paginate(
    items: Iterable[T],
    pagination: Pagination,
    sort_key: Callable[[T], Any] | None = None,
) -> Page[T]:
    """Sort and slice items the way the SQL adapters do.

    Args:
        items: Items that passed the filters.
        pagination: Page request.
        sort_key: Override for reading the sort value; defaults to the
            attribute named by ``pagination.order_by``.

    Raises:
        ValidationError: If the items have no such attribute.
    """
    rows = list(items)
    if sort_key is None:
        if rows and not hasattr(rows[0], pagination.order_by):
            raise ValidationError(f"Cannot sort by '{pagination.order_by}'", field="order_by")

        def sort_key(item: T) -> Any:
            return getattr(item, pagination.order_by)

    rows.sort(key=sort_key, reverse=pagination.order == SortOrder.DESC)
    start = pagination.offset
    return Page(items=rows[start : start + pagination.limit], count=len(rows))
