"""Offset pagination shared by every list operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


class Pagination(BaseModel):
    """Page request: 1-indexed page, page size and ordering."""

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)
    order_by: str = "created_at"
    order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        """Number of rows to skip."""
        return (self.page - 1) * self.limit


@dataclass
class Page(Generic[T]):
    """One page of results.

    Attributes:
        items: Items on this page.
        count: Total number of matching items before pagination.
    """

    items: list[T] = field(default_factory=list)
    count: int = 0
